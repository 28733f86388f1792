"""Human-readable run summaries for CLI output."""

from __future__ import annotations

from core.orchestrator.pipeline import FillOutput
from core.templates.models import StructureResult
from core.templates.tree import flatten_fields, iter_sections


def render_structure_summary(result: StructureResult) -> str:
    """Render one-screen structure summary."""

    fields = flatten_fields(result.structure)
    lines = ["structure_summary:"]
    lines.append(
        f"blocks={len(result.structure)} sections={sum(1 for _ in iter_sections(result.structure))} "
        f"fields={len(fields)} aliases={len(result.alias_map)}"
    )
    unaliased = [field.code for field in fields if field.code not in result.alias_map]
    if unaliased:
        lines.append(f"not_substitutable: {', '.join(unaliased)}")
    return "\n".join(lines)


def render_fill_summary(output: FillOutput) -> str:
    """Render one-screen fill summary."""

    summary = output.substitution.report.summary
    lines = ["fill_summary:"]
    lines.append(
        f"markers={summary.total_markers} replaced={summary.replaced_count} "
        f"unmatched={summary.unmatched_count}"
    )
    if summary.missing_value_codes:
        lines.append(f"filled_empty: {', '.join(summary.missing_value_codes)}")
    if output.validation_errors:
        items = ", ".join(sorted(output.validation_errors))
        lines.append(f"validation_errors (not blocking): {items}")
    return "\n".join(lines)
