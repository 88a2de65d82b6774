"""
Configuration Schema (``clinic_config.schema``).

Frozen dataclass describing one ledger deployment.  Produced by
``clinic_config.loader``; consumed by ``BillingLedger.from_config``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields

from clinic_kernel.domain.values import DEFAULT_MINOR_UNIT_DIGITS


@dataclass(frozen=True)
class LedgerConfig:
    """
    Runtime settings for the billing ledger.

    Attributes:
        currency: ISO 4217 code of the single ledger currency.  Amounts are
            stored as minor units; the code labels financial reports.
        minor_unit_digits: Decimal places of the currency's minor unit.
        database_url: SQLAlchemy URL.
        echo_sql: Log every SQL statement.
        pool_size: Connection pool size (ignored for SQLite).
        max_overflow: Extra connections above pool_size (ignored for SQLite).
        lock_timeout_seconds: Max wait for a per-entity lock; None waits
            indefinitely.
        payment_retry_attempts: Internal retries after a lost version race
            on a payment or claim transition.
    """

    currency: str = "USD"
    minor_unit_digits: int = DEFAULT_MINOR_UNIT_DIGITS
    database_url: str = "sqlite:///clinic_ledger.db"
    echo_sql: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    lock_timeout_seconds: float | None = None
    payment_retry_attempts: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.currency, str) or len(self.currency) != 3 or not self.currency.isalpha():
            raise ValueError(f"currency must be a 3-letter ISO code, got {self.currency!r}")
        object.__setattr__(self, "currency", self.currency.upper())
        for name in ("minor_unit_digits", "pool_size", "max_overflow", "payment_retry_attempts"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
        if not isinstance(self.echo_sql, bool):
            raise ValueError(f"echo_sql must be a boolean, got {self.echo_sql!r}")
        if not isinstance(self.database_url, str) or not self.database_url:
            raise ValueError("database_url must be a non-empty string")
        timeout = self.lock_timeout_seconds
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ValueError(f"lock_timeout_seconds must be positive, got {timeout!r}")
            object.__setattr__(self, "lock_timeout_seconds", float(timeout))

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))
