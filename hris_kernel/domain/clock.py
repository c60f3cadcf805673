"""
Injectable time source for services.

``PayrollService`` stamps processed/approved/paid/cancelled timestamps from
the clock it was given, never from ``datetime.now()``, so tests pin time
with ``DeterministicClock`` and production uses ``SystemClock``.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

_DEFAULT_TEST_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of timezone-aware timestamps."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def now_utc(self) -> datetime:
        """``now()`` converted to UTC."""
        return self.now().astimezone(timezone.utc)


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Repeated ``now()`` calls return the same instant until ``advance()``,
    ``tick()`` or ``set_time()``.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._base = fixed_time or _DEFAULT_TEST_TIME
        self._offset = timedelta(0)

    def now(self) -> datetime:
        return self._base + self._offset

    def set_time(self, time: datetime) -> None:
        self._base = time
        self._offset = timedelta(0)

    def advance(self, seconds: int = 1) -> None:
        self._offset += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Move one second forward and return the new instant."""
        self.advance()
        return self.now()
