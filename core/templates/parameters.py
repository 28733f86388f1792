"""Parameter element extraction for one section region."""

from __future__ import annotations

import re

from core.templates.markup import first_marker_key, has_marker, iter_elements, read_attr
from core.templates.models import DEFAULT_FIELD_NAME, ExtractionContext, Field, FieldType

PARAM_TAGS: tuple[FieldType, ...] = ("Param", "ParamText", "ParamDate", "ParamSelect", "ParamMemo")
_SELECT_TAG = "ParamSelect"

_CHOICE_CODE_RE = re.compile(r'<Param[^>]*?(?<![\w:.-])Code="\{\?(?:External|Editor)\((.*?)\)\?\}"')
_CODE_SELECTED_RE = re.compile(r'(?<![\w:.-])CodeSelected="\{\?(?:External|Editor)\((.*?)\)\?\}"')


def extract_parameters(content: str, context: ExtractionContext) -> list[Field]:
    """Extract fillable fields from ``content`` in source order.

    Rules:
    - Self-closing parameters are skipped.
    - A parameter is surfaced only when its body holds an External/Editor
      marker, or when it is a selector whose ``CodeSelected`` holds one.
    - Selectors take their code from a nested choice marker first, then from
      ``CodeSelected``, then from their own ``Code``.
    - Parameters without a resolvable code are skipped.
    - Repeated raw codes are suffixed ``_N``; the alias key gets the same
      suffix and is recorded in ``context.alias_map``.
    """

    fields: list[Field] = []

    for element in iter_elements(content, PARAM_TAGS):
        if element.self_closing:
            continue

        is_select = element.tag == _SELECT_TAG
        selected = _CODE_SELECTED_RE.search(element.attrs) if is_select else None
        if not has_marker(element.body) and selected is None:
            continue

        raw_code = read_attr(element.attrs, "Code")
        alias_key: str | None
        if is_select:
            alias_key = _choice_code_key(element.body)
            if alias_key is None and selected is not None and selected.group(1):
                alias_key = selected.group(1)
            if alias_key is not None:
                raw_code = alias_key
        else:
            alias_key = first_marker_key(element.body)

        if raw_code is None:
            continue

        code, occurrence = context.issue_code(raw_code)
        if alias_key is not None:
            context.alias_map[code] = _suffixed(alias_key, occurrence)

        dictionary = read_attr(element.attrs, "Dictionary")
        options = None
        if is_select and dictionary is not None and dictionary in context.dictionaries:
            options = tuple(context.dictionaries[dictionary])
        else:
            dictionary = None

        fields.append(
            Field(
                type=element.tag,  # type: ignore[arg-type]
                code=code,
                name=read_attr(element.attrs, "Name") or DEFAULT_FIELD_NAME,
                regex=read_attr(element.attrs, "RegEx"),
                error_text=read_attr(element.attrs, "ErrorText"),
                dictionary=dictionary,
                options=options,
            )
        )

    return fields


def _choice_code_key(body: str) -> str | None:
    match = _CHOICE_CODE_RE.search(body)
    if match is None or not match.group(1):
        return None
    return match.group(1)


def _suffixed(alias_key: str, occurrence: int) -> str:
    if occurrence == 1:
        return alias_key
    return f"{alias_key}_{occurrence}"
