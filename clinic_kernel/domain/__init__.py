"""Pure domain layer: value objects and the clock abstraction."""

from clinic_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from clinic_kernel.domain.values import DateRange, Money, MoneyDelta

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "Money",
    "MoneyDelta",
    "DateRange",
]
