"""
Module: clinic_kernel.db.base
Responsibility: The declarative base every ledger table derives from, plus
    the two portable column types it relies on (string-stored UUIDs and
    UTC-only timestamps).
Architecture position: Kernel > DB.  Imported by every ``orm.py``.  Imports
    nothing from the rest of the kernel except the column aliases in
    db/types.py.

Invariants enforced:
    - Every row has a uuid4 primary key named ``id``.
    - Money columns are integer minor units; no Numeric or Float column
      holds an amount anywhere in the schema.
    - Timestamps are written as UTC and read back as aware UTC datetimes on
      PostgreSQL and SQLite alike.
"""

from datetime import datetime, timezone
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from clinic_kernel.db.types import ExternalId, LongText, MinorUnits, ShortCode, StatusCode


class UUIDString(TypeDecorator):
    """UUIDs kept in a 36-character string column on every backend."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp that always round-trips as UTC.

    SQLite has no timezone support, so values are stored there as naive UTC
    and re-tagged on load.  Naive datetimes are rejected on bind.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime cannot be stored: {value!r}")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """
    Root of all ledger tables.

    Python annotations choose column types through ``type_annotation_map``:
    ``datetime`` is UTCDateTime, ``UUID`` is UUIDString, plain ``int`` is
    BigInteger, and the aliases from db/types.py get their sized columns.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: UTCDateTime(),
        PyUUID: UUIDString(),
        int: BigInteger,
        MinorUnits: BigInteger,
        ExternalId: String(64),
        StatusCode: String(32),
        ShortCode: String(100),
        LongText: Text,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract table with audit columns.

    created_at / updated_at are filled by the database clock on insert and
    update.  created_by_id / updated_by_id hold the acting user when the
    caller passes one; authentication belongs to the host application.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )
    created_by_id: Mapped[PyUUID | None]
    updated_by_id: Mapped[PyUUID | None]


UUID = PyUUID
