"""
Clock -- injectable time source.

Services never call ``datetime.now()`` directly; they receive a Clock so
issued_at / recorded_at / resolved_at stamps are reproducible in tests.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        - ``now()`` returns a timezone-aware UTC ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current UTC time."""
        ...


class SystemClock(Clock):
    """Production clock that returns actual system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    With ``step`` set, every ``now()`` call advances the clock by that
    amount after returning, so consecutive stamps are strictly increasing.
    Without it, ``now()`` is constant until ``advance()`` or ``set_time()``.
    """

    def __init__(
        self,
        fixed_time: datetime | None = None,
        step: timedelta | None = None,
    ):
        self._current = fixed_time or datetime(
            2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )
        self._step = step
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = self._current
            if self._step is not None:
                self._current = current + self._step
            return current

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._current = time

    def advance(self, seconds: int = 1) -> datetime:
        """Advance the clock by the specified seconds and return the new time."""
        with self._lock:
            self._current = self._current + timedelta(seconds=seconds)
            return self._current
