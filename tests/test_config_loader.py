from __future__ import annotations

from pathlib import Path

import pytest

from core.config.loader import load_engine_config


def test_load_default_config() -> None:
    config = load_engine_config()

    assert config.form_roles == ["Act", "Info"]
    assert len(config.excluded_codes) == 16
    assert "Print" in config.excluded_codes
    assert "Conclusion" in config.excluded_codes
    assert config.block_on_validation_errors is True


def test_load_config_applies_defaults_for_missing_keys(tmp_path: Path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("excluded_codes: [A]\n", encoding="utf-8")

    config = load_engine_config(path)

    assert config.excluded_codes == ["A"]
    assert config.form_roles == ["Act", "Info"]


def test_load_config_raises_for_unknown_key(tmp_path: Path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("excluded_codes: []\nunknown: 1\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid config schema"):
        load_engine_config(path)


def test_load_config_raises_for_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("excluded_codes: [A\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML"):
        load_engine_config(path)


def test_load_config_raises_for_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must contain a mapping"):
        load_engine_config(path)


def test_load_config_raises_for_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Config file not found"):
        load_engine_config(tmp_path / "missing.yaml")
