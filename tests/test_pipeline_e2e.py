from __future__ import annotations

import pytest

from core.config.loader import load_engine_config
from core.orchestrator.pipeline import parse_template, run_fill
from core.profiles.prefill import Profile
from core.templates.tree import flatten_fields
from core.utils.errors import FieldValidationError

_TEMPLATE = r"""<?xml version="1.0" encoding="utf-8"?>
<Document>
  <Form Code="Act" Name="Акт обследования">
    <Simple Code="Inspector" Name="Инспектор">
      <Section Code="Person" Name="ФИО">
        <ParamText Code="FIO1" Name="Фамилия">{?External(FIO1)?}</ParamText>
        <ParamText Code="CertN" Name="Аттестат" RegEx="\d{2}-\d{3}" ErrorText="Формат 00-000">{?External(CertN)?}</ParamText>
      </Section>
    </Simple>
    <Simple Code="Print" Name="Печать">
      <Section><ParamText Code="Copies">{?External(Copies)?}</ParamText></Section>
    </Simple>
  </Form>
  <Signature>{?External(FIO1)?}</Signature>
</Document>
"""


def test_parse_template_applies_configured_exclusions() -> None:
    result = parse_template(_TEMPLATE, "")

    assert [field.code for field in flatten_fields(result.structure)] == ["FIO1", "CertN"]
    assert result.alias_map == {"FIO1": "FIO1", "CertN": "CertN"}


def test_run_fill_substitutes_all_occurrences() -> None:
    output = run_fill(_TEMPLATE, "", {"FIO1": "Иванов", "CertN": "77-123", "Copies": "3"})

    assert output.substitution.text.count("Иванов") == 2
    assert "77-123" in output.substitution.text
    assert "{?External(Copies)?}" in output.substitution.text
    assert "{?External(FIO1)?}" not in output.substitution.text
    assert output.validation_errors == {}
    assert output.substitution.report.summary.replaced_count == 3
    assert output.substitution.report.summary.unmatched_count == 1


def test_run_fill_blocks_on_validation_errors() -> None:
    with pytest.raises(FieldValidationError) as exc_info:
        run_fill(_TEMPLATE, "", {"FIO1": "Иванов", "CertN": "bad"})

    assert exc_info.value.errors == {"CertN": "Формат 00-000"}
    assert exc_info.value.structure_result is not None


def test_run_fill_can_substitute_despite_validation_errors() -> None:
    config = load_engine_config().model_copy(update={"block_on_validation_errors": False})

    output = run_fill(_TEMPLATE, "", {"CertN": "bad"}, config=config)

    assert output.validation_errors == {"CertN": "Формат 00-000"}
    assert "Формат 00-000\">bad</ParamText>" in output.substitution.text
    assert output.substitution.report.summary.missing_value_codes == ["FIO1"]


def test_run_fill_prefills_from_profile_and_explicit_values_win() -> None:
    profile = Profile(last_name="Петров", certificate_number="11-222")

    prefilled = run_fill(_TEMPLATE, "", {}, profile=profile)
    overridden = run_fill(_TEMPLATE, "", {"FIO1": "Сидоров"}, profile=profile)

    assert prefilled.substitution.text.count("Петров") == 2
    assert "11-222" in prefilled.substitution.text
    assert overridden.substitution.text.count("Сидоров") == 2
    assert "Петров" not in overridden.substitution.text
