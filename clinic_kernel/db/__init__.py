"""Database layer - engine, base classes and column types."""

from clinic_kernel.db.base import UUID, Base, TrackedBase, UTCDateTime, UUIDString
from clinic_kernel.db.engine import (
    SQLITE_BEGIN_OPTION,
    build_engine,
    drop_tables,
    is_lock_contention,
)
from clinic_kernel.db.types import (
    ExternalId,
    LongText,
    MinorUnits,
    ShortCode,
    StatusCode,
    minor_units_from_db,
)

__all__ = [
    "build_engine",
    "is_lock_contention",
    "drop_tables",
    "SQLITE_BEGIN_OPTION",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UTCDateTime",
    "UUID",
    "MinorUnits",
    "ExternalId",
    "StatusCode",
    "ShortCode",
    "LongText",
    "minor_units_from_db",
]
