"""Substitution report models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SubstitutionEntry(BaseModel):
    """Single replaced/unmatched marker occurrence in the source template."""

    model_config = ConfigDict(extra="forbid")

    status: Literal["replaced", "unmatched"]
    alias: str
    code: str | None = None
    start: int
    end: int
    original_text: str
    new_text: str | None = None


class SubstitutionSummary(BaseModel):
    """Aggregate substitution counts for observability."""

    model_config = ConfigDict(extra="forbid")

    total_markers: int
    replaced_count: int
    unmatched_count: int
    missing_value_codes: list[str] = Field(default_factory=list)


class SubstitutionReport(BaseModel):
    """Full substitution report."""

    model_config = ConfigDict(extra="forbid")

    entries: list[SubstitutionEntry] = Field(default_factory=list)
    summary: SubstitutionSummary


class SubstitutionOutput(BaseModel):
    """Substituted document text with its report."""

    model_config = ConfigDict(extra="forbid")

    text: str
    report: SubstitutionReport
