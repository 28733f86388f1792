"""Custom exceptions for core logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.templates.models import StructureResult


class FieldValidationError(Exception):
    """Raised when entered values fail validation and errors block substitution."""

    def __init__(
        self,
        message: str,
        *,
        errors: dict[str, str],
        structure_result: StructureResult | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors
        self.structure_result = structure_result
