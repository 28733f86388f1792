"""Form prefill from an inspector profile."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

PROFILE_FIELD_MAP: Mapping[str, str] = MappingProxyType(
    {
        "FIO1": "last_name",
        "FIO2": "first_name",
        "FIO3": "middle_name",
        "CertN": "certificate_number",
        "Organization": "organization",
        "Phone": "phone",
        "Email": "email",
        "Address": "organization_address",
    }
)


class Profile(BaseModel):
    """Profile fields used for prefill; other profile keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    last_name: str | None = None
    first_name: str | None = None
    middle_name: str | None = None
    certificate_number: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    organization: str | None = None
    organization_address: str | None = None


def build_profile_values(profile: Profile) -> dict[str, str]:
    """Map profile attributes to field codes; missing attributes become ''."""

    values: dict[str, str] = {}
    for code, attribute in PROFILE_FIELD_MAP.items():
        value = getattr(profile, attribute)
        values[code] = "" if value is None else value
    return values
