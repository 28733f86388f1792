"""Engine configuration loading."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from core.config.models import EngineConfig


def load_engine_config(path: Path | None = None) -> EngineConfig:
    """Load and validate engine configuration from YAML."""

    config_path = path or Path(__file__).with_name("engine.yaml")

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Config file not found: {config_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in config file: {config_path}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    try:
        return EngineConfig.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid config schema: {config_path}") from exc
