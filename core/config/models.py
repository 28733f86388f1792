"""Engine configuration model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EngineConfig(BaseModel):
    """Extraction and fill settings."""

    model_config = ConfigDict(extra="forbid")

    excluded_codes: list[str] = Field(default_factory=list)
    form_roles: list[str] = Field(default_factory=lambda: ["Act", "Info"])
    block_on_validation_errors: bool = True
