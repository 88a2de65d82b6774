"""
Module: clinic_kernel.db.types
Responsibility: Annotated type aliases for ledger columns and helpers for
    reading aggregate money values back from the database.
Architecture position: Kernel > DB.  May be imported by ORM modules,
    services and selectors.  MUST NOT import from any of those layers.

Invariants enforced:
    No floats anywhere in the schema.  Money columns hold integer minor units;
    aggregate results are normalized to int before they become Money.
"""

from decimal import Decimal
from typing import Annotated

from sqlalchemy import BigInteger, String, Text

# Monetary amount in minor units (cents)
MinorUnits = Annotated[int, BigInteger]

# Opaque external identifiers (patient ids come from another system)
ExternalId = Annotated[str, String(64)]

# Enum values stored as their string value
StatusCode = Annotated[str, String(32)]

# Short identifier strings
ShortCode = Annotated[str, String(100)]

# Long text for descriptions and notes
LongText = Annotated[str, Text]


def minor_units_from_db(value: int | Decimal | None) -> int:
    """
    Normalize a SUM()/COUNT() result to int.

    PostgreSQL returns NUMERIC for SUM(bigint), SQLite returns int, and both
    return NULL over zero rows.

    Raises:
        ValueError: If the value has a fractional part.
    """
    if value is None:
        return 0
    if isinstance(value, Decimal):
        if value != value.to_integral_value():
            raise ValueError(f"Fractional minor units from database: {value}")
        return int(value)
    return int(value)
