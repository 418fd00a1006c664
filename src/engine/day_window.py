"""
The calendar-day boundary that "today's" metrics are filtered against.

Two paths move the boundary: the bookings feed, when it notices the
wall clock has crossed midnight, and the midnight timer. Both go through
this class. Moving to the current date is a no-op and moving backwards
is refused, so whichever path runs second sees ``False`` and stops.

Usage:
    window = DayWindow("2024-01-01")
    window.advance("2024-01-02")            # True
    window.adopt_if_changed("2024-01-02")   # False, already there
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Callable, Optional

from src.logging_context import get_session_logger

logger = get_session_logger(__name__)

Clock = Callable[[], datetime]


def system_clock(tz: Optional[tzinfo] = None) -> Clock:
    """Wall clock in ``tz``, or naive local time when ``tz`` is None."""
    return lambda: datetime.now(tz)


def day_of(now: datetime) -> str:
    """ISO calendar day of a wall-clock reading."""
    return now.date().isoformat()


def seconds_until_midnight(now: datetime) -> float:
    """Elapsed seconds from ``now`` to the next local midnight.

    Both ends are compared in UTC so a DST shift that night is accounted
    for. Naive readings are local time and resolve through the host zone.
    """
    midnight = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
    if now.tzinfo is None:
        return (midnight.astimezone() - now.astimezone()).total_seconds()
    return (midnight.astimezone(timezone.utc) - now.astimezone(timezone.utc)).total_seconds()


@dataclass(frozen=True)
class DayTransition:
    """Recorded move of the day boundary."""

    from_date: str
    to_date: str
    source: str


class DayWindow:
    """Owns ``current_date`` for one dashboard session."""

    def __init__(self, current_date: str) -> None:
        date.fromisoformat(current_date)
        self._current_date = current_date
        self._history: list[DayTransition] = []

    @classmethod
    def starting_today(cls, clock: Clock) -> "DayWindow":
        return cls(day_of(clock()))

    @property
    def current_date(self) -> str:
        return self._current_date

    def adopt_if_changed(self, candidate: str) -> bool:
        """Adopt a date noticed by the bookings feed. Returns True if it moved."""
        return self._move(candidate, source="feed")

    def advance(self, new_date: str) -> bool:
        """Roll over to ``new_date`` from the midnight timer. Returns True if it moved."""
        return self._move(new_date, source="timer")

    def get_history(self) -> list[DayTransition]:
        return list(self._history)

    def _move(self, candidate: str, source: str) -> bool:
        date.fromisoformat(candidate)
        if candidate == self._current_date:
            return False
        if candidate < self._current_date:
            logger.warning(
                "Ignoring %s date %s: day window is already at %s",
                source, candidate, self._current_date,
            )
            return False

        self._history.append(DayTransition(self._current_date, candidate, source))
        logger.info("Day window moved %s -> %s (via %s)", self._current_date, candidate, source)
        self._current_date = candidate
        return True
