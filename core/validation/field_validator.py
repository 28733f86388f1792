"""Validation of user-entered values against template regex hints."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence

from core.templates.models import Field, Node
from core.templates.tree import flatten_fields

logger = logging.getLogger("actform.validation")

DEFAULT_ERROR_TEXT = "Неверный формат"


def validate_value(field: Field, value: str | None) -> str | None:
    """Return the error message for ``value`` or None when it is acceptable.

    Empty values and fields without a regex always pass. A regex that does not
    compile is logged and treated as no validation.
    """

    if not field.regex or not value:
        return None

    try:
        pattern = re.compile(field.regex)
    except re.error as exc:
        logger.warning("invalid regex for field %s: %r (%s)", field.code, field.regex, exc)
        return None

    if pattern.fullmatch(value) is None:
        return field.error_text or DEFAULT_ERROR_TEXT
    return None


def validate_values(
    structure: Sequence[Node], values: Mapping[str, str | None]
) -> dict[str, str]:
    """Validate every field of the tree, keyed by field code."""

    errors: dict[str, str] = {}
    for field in flatten_fields(structure):
        message = validate_value(field, values.get(field.code))
        if message is not None:
            errors[field.code] = message
    return errors
