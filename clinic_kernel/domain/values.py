"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the foundational value types for the billing ledger: Money
    (non-negative integer minor units), MoneyDelta (the one signed amount,
    used for net figures), and DateRange (half-open UTC time windows).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every module. No outward dependencies.

Invariants enforced:
    - Amounts are integers in minor units; floats are rejected at every
      boundary, so sums and comparisons never lose precision.
    - Money is never negative. Subtraction that would go below zero raises
      instead of wrapping into a signed value.
    - DateRange bounds are timezone-aware and start <= end.

Failure modes:
    - ValueError on construction with negative amounts, fractional minor
      units, or inverted ranges.
    - TypeError when Money operations mix incompatible types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable

DEFAULT_MINOR_UNIT_DIGITS = 2


def _require_int(value: object, name: str) -> int:
    # bool is an int subclass; an amount of True is a bug, not a cent
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be int, got {type(value).__name__}")
    return value


@dataclass(frozen=True, slots=True, order=True)
class Money:
    """
    Monetary amount in integer minor units (e.g. cents).

    Contract:
        The ledger runs in a single configured currency, so Money carries
        only the scalar amount. All arithmetic is integer arithmetic.

    Guarantees:
        - Immutable, hashable and totally ordered.
        - minor_units is an int >= 0.
        - a + b, a - b (when a >= b) and a * n are exact.

    Non-goals:
        - Does NOT track currency (single-currency ledger).
        - Does NOT represent negative values (see MoneyDelta).
    """

    minor_units: int

    def __post_init__(self) -> None:
        _require_int(self.minor_units, "minor_units")
        if self.minor_units < 0:
            raise ValueError(f"Money cannot be negative: {self.minor_units}")

    @classmethod
    def of(
        cls,
        amount: Decimal | str | int,
        decimal_places: int = DEFAULT_MINOR_UNIT_DIGITS,
    ) -> Money:
        """
        Build Money from a major-unit amount ("100.50" -> 10050 cents).

        Raises:
            TypeError: If amount is a float.
            ValueError: If amount is not a number, has more precision than
                the minor unit allows, or is negative.
        """
        if isinstance(amount, float):
            raise TypeError("Money.of() does not accept float; use str or Decimal")
        try:
            major = Decimal(str(amount))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid amount: {amount!r}") from e
        if not major.is_finite():
            raise ValueError(f"Invalid amount: {amount!r}")
        scaled = major.scaleb(decimal_places)
        if scaled != scaled.to_integral_value():
            raise ValueError(
                f"Amount {amount} has more than {decimal_places} decimal places"
            )
        return cls(int(scaled))

    @classmethod
    def zero(cls) -> Money:
        """Create a zero amount."""
        return cls(0)

    @classmethod
    def total(cls, amounts: Iterable[Money]) -> Money:
        """Exact sum of an iterable of Money (zero when empty)."""
        result = 0
        for amount in amounts:
            if not isinstance(amount, Money):
                raise TypeError(f"Cannot sum {type(amount).__name__} as Money")
            result += amount.minor_units
        return cls(result)

    @property
    def is_zero(self) -> bool:
        return self.minor_units == 0

    @property
    def is_positive(self) -> bool:
        return self.minor_units > 0

    def to_decimal(self, decimal_places: int = DEFAULT_MINOR_UNIT_DIGITS) -> Decimal:
        """Major-unit Decimal for display (10050 -> Decimal("100.50"))."""
        return Decimal(self.minor_units).scaleb(-decimal_places)

    def delta(self, other: Money) -> MoneyDelta:
        """Signed difference self - other."""
        if not isinstance(other, Money):
            raise TypeError(f"Cannot subtract {type(other).__name__} from Money")
        return MoneyDelta(self.minor_units - other.minor_units)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.minor_units + other.minor_units)

    def __sub__(self, other: Money) -> Money:
        """Subtract; the result must stay non-negative."""
        if not isinstance(other, Money):
            return NotImplemented
        if other.minor_units > self.minor_units:
            raise ValueError(
                f"Money subtraction would go negative: "
                f"{self.minor_units} - {other.minor_units}"
            )
        return Money(self.minor_units - other.minor_units)

    def __mul__(self, factor: int) -> Money:
        """Multiply by a non-negative integer quantity."""
        if isinstance(factor, bool) or not isinstance(factor, int):
            return NotImplemented
        return Money(self.minor_units * factor)

    def __rmul__(self, factor: int) -> Money:
        return self.__mul__(factor)

    def __str__(self) -> str:
        return str(self.to_decimal())

    def __repr__(self) -> str:
        return f"Money({self.minor_units})"


@dataclass(frozen=True, slots=True, order=True)
class MoneyDelta:
    """
    Signed amount in minor units.

    Only produced by Money.delta(); used where a figure may legitimately be
    negative (net revenue). Never stored on an invoice, payment or claim.
    """

    minor_units: int

    def __post_init__(self) -> None:
        _require_int(self.minor_units, "minor_units")

    @property
    def is_negative(self) -> bool:
        return self.minor_units < 0

    def to_decimal(self, decimal_places: int = DEFAULT_MINOR_UNIT_DIGITS) -> Decimal:
        return Decimal(self.minor_units).scaleb(-decimal_places)

    def __str__(self) -> str:
        return str(self.to_decimal())

    def __repr__(self) -> str:
        return f"MoneyDelta({self.minor_units})"


@dataclass(frozen=True, slots=True)
class DateRange:
    """
    Half-open time window [start, end).

    Guarantees:
        - start and end are timezone-aware datetimes, normalized to UTC.
        - start <= end. start == end is a valid, empty window.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        for name in ("start", "end"):
            value = getattr(self, name)
            if not isinstance(value, datetime):
                raise TypeError(f"{name} must be datetime, got {type(value).__name__}")
            if value.tzinfo is None:
                raise ValueError(f"{name} must be timezone-aware")
            object.__setattr__(self, name, value.astimezone(timezone.utc))
        if self.start > self.end:
            raise ValueError(
                f"Range start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    @classmethod
    def for_dates(cls, first_day: date, last_day: date) -> DateRange:
        """UTC range covering whole calendar days first_day..last_day inclusive."""
        start = datetime.combine(first_day, time.min, tzinfo=timezone.utc)
        end = datetime.combine(last_day + timedelta(days=1), time.min, tzinfo=timezone.utc)
        return cls(start, end)

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end
