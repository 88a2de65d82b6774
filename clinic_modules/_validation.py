"""
Shared input coercion for module services (``clinic_modules._validation``).

Every public service operation funnels its raw arguments through these
helpers so malformed input is reported the same way everywhere: as a
``ValidationError`` naming the offending field.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar
from uuid import UUID

from clinic_kernel.domain.values import DateRange, Money
from clinic_kernel.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def coerce_uuid(value: Any, field: str) -> UUID:
    """Accept a UUID or its string form."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError) as e:
        raise ValidationError(field, "not a valid id", value) from e


def coerce_money(value: Any, field: str) -> Money:
    """
    Accept Money or an int of minor units and require it to be positive.

    Raises:
        ValidationError: On floats, negatives, zero or other types.
    """
    if isinstance(value, Money):
        amount = value
    else:
        try:
            amount = Money(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(field, str(e), value) from e
    if not amount.is_positive:
        raise ValidationError(field, "must be greater than zero", amount.minor_units)
    return amount


def coerce_enum(enum_cls: type[E], value: Any, field: str) -> E:
    """Accept an enum member or its value."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(field, f"must be one of: {allowed}", value) from e


def require_text(value: Any, field: str) -> str:
    """Non-empty string, surrounding whitespace stripped."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "must be a non-empty string", value)
    return value.strip()


def optional_text(value: Any, field: str) -> str | None:
    """None, or a string (blank strings become None)."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(field, "must be a string", value)
    return value.strip() or None


def coerce_moment(value: Any, field: str) -> datetime:
    """Timezone-aware datetime, normalized to UTC."""
    if not isinstance(value, datetime):
        raise ValidationError(field, "must be a datetime", value)
    if value.tzinfo is None:
        raise ValidationError(field, "must be timezone-aware", value)
    return value.astimezone(timezone.utc)


def require_range(value: Any, field: str = "date_range") -> DateRange:
    if not isinstance(value, DateRange):
        raise ValidationError(field, "must be a DateRange", value)
    return value
