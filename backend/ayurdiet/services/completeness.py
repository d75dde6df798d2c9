"""
Profile completeness: the minimum intake needed before a diet plan can be
requested for a patient.

Works on ORM rows, pydantic models and plain dicts alike. Nothing here is
cached; callers re-evaluate after every profile change.
"""

from collections.abc import Mapping
from typing import Any, Optional

REQUIRED_PROFILE_FIELDS = (
    "age",
    "gender",
    "weight_kg",
    "height_cm",
    "activity_level",
    "food_preference",
    "cuisine_preference",
    "body_frame",
    "skin_type",
    "hair_type",
    "agni_strength",
    "current_season",
)


def read_field(record: Any, name: str) -> Any:
    """Read a field from a mapping or an attribute-style record."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def missing_profile_fields(profile: Optional[Any]) -> list[str]:
    if profile is None:
        return list(REQUIRED_PROFILE_FIELDS)
    return [name for name in REQUIRED_PROFILE_FIELDS if read_field(profile, name) is None]


def is_profile_complete(profile: Optional[Any]) -> bool:
    """True iff every required intake field is present. `diseases` never counts."""
    if profile is None:
        return False
    return not missing_profile_fields(profile)
