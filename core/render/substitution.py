"""Placeholder substitution back into the original template text."""

from __future__ import annotations

import re
from collections.abc import Mapping

from core.render.models import (
    SubstitutionEntry,
    SubstitutionOutput,
    SubstitutionReport,
    SubstitutionSummary,
)
from core.templates.markup import MARKER_RE


def substitute(
    template_text: str,
    alias_map: Mapping[str, str],
    values: Mapping[str, str | None],
) -> str:
    """Replace every marker whose alias is mapped with the field value."""

    return substitute_with_report(template_text, alias_map, values).text


def substitute_with_report(
    template_text: str,
    alias_map: Mapping[str, str],
    values: Mapping[str, str | None],
) -> SubstitutionOutput:
    """Replace markers in one pass over the original text.

    Rules:
    - ``{?External(A)?}`` and ``{?Editor(A)?}`` are both filled for alias ``A``.
    - Every occurrence is filled with the same value.
    - A code missing from ``values`` (or None) is filled with an empty string.
    - Markers with an unmapped alias are left untouched.
    - Inserted values are never rescanned.
    """

    alias_to_code: dict[str, str] = {}
    for code, alias in alias_map.items():
        alias_to_code.setdefault(alias, code)

    entries: list[SubstitutionEntry] = []

    def _replace(match: re.Match[str]) -> str:
        alias = match.group(2)
        code = alias_to_code.get(alias)
        if code is None:
            entries.append(
                SubstitutionEntry(
                    status="unmatched",
                    alias=alias,
                    start=match.start(),
                    end=match.end(),
                    original_text=match.group(0),
                )
            )
            return match.group(0)

        value = values.get(code)
        replacement = "" if value is None else str(value)
        entries.append(
            SubstitutionEntry(
                status="replaced",
                alias=alias,
                code=code,
                start=match.start(),
                end=match.end(),
                original_text=match.group(0),
                new_text=replacement,
            )
        )
        return replacement

    text = MARKER_RE.sub(_replace, template_text)

    replaced_count = sum(1 for entry in entries if entry.status == "replaced")
    summary = SubstitutionSummary(
        total_markers=len(entries),
        replaced_count=replaced_count,
        unmatched_count=len(entries) - replaced_count,
        missing_value_codes=[code for code in alias_map if values.get(code) is None],
    )
    return SubstitutionOutput(text=text, report=SubstitutionReport(entries=entries, summary=summary))
