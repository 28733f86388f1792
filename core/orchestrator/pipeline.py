"""Orchestration pipeline: extract -> prefill -> validate -> substitute."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from core.config.loader import load_engine_config
from core.config.models import EngineConfig
from core.profiles.prefill import Profile, build_profile_values
from core.render.models import SubstitutionOutput
from core.render.substitution import substitute_with_report
from core.templates.models import StructureResult
from core.templates.structure import extract_structure
from core.utils.errors import FieldValidationError
from core.validation.field_validator import validate_values


@dataclass
class FillOutput:
    """In-memory result of one fill run."""

    structure_result: StructureResult
    values: dict[str, str]
    substitution: SubstitutionOutput
    validation_errors: dict[str, str] = field(default_factory=dict)


def parse_template(
    template_text: str,
    dictionary_text: str,
    config: EngineConfig | None = None,
) -> StructureResult:
    """Extract the form tree using configured exclusions and form roles."""

    effective = config or load_engine_config()
    return extract_structure(
        template_text,
        dictionary_text,
        effective.excluded_codes,
        form_roles=effective.form_roles,
    )


def run_fill(
    template_text: str,
    dictionary_text: str,
    values: Mapping[str, str | None],
    config: EngineConfig | None = None,
    profile: Profile | None = None,
) -> FillOutput:
    """Fill the template with entered values.

    Profile values are applied first and explicit values override them.
    Raises ``FieldValidationError`` when validation fails and the config
    blocks on validation errors.
    """

    effective = config or load_engine_config()
    structure_result = parse_template(template_text, dictionary_text, effective)

    merged: dict[str, str] = {}
    if profile is not None:
        merged.update(build_profile_values(profile))
    for code, value in values.items():
        merged[code] = "" if value is None else str(value)

    errors = validate_values(structure_result.structure, merged)
    if errors and effective.block_on_validation_errors:
        raise FieldValidationError(
            "Field validation failed",
            errors=errors,
            structure_result=structure_result,
        )

    substitution = substitute_with_report(template_text, structure_result.alias_map, merged)
    return FillOutput(
        structure_result=structure_result,
        values=merged,
        substitution=substitution,
        validation_errors=errors,
    )
