"""
Self-rearming midnight timer.

Each arm derives its delay from the wall clock instead of using a fixed
24h interval, so drift and DST never accumulate. At most one timer is
pending: ``arm`` always cancels the previous handle first, whether it is
called after a natural fire or by the bookings feed after it noticed
the date change on its own.
"""

import asyncio
from typing import Optional

from src.config import AppConfig, settings
from src.datasource.base import DataSource
from src.engine.aggregates import summarize_bookings
from src.engine.day_window import Clock, DayWindow, day_of, seconds_until_midnight
from src.logging_context import get_session_logger
from src.schemas.stats_schema import AggregateState

logger = get_session_logger(__name__)


class MidnightScheduler:
    """Rolls the day window over at local midnight and refreshes daily metrics."""

    def __init__(
        self,
        source: DataSource,
        stats: AggregateState,
        day_window: DayWindow,
        clock: Clock,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._source = source
        self._stats = stats
        self._day_window = day_window
        self._clock = clock
        self._config = config or settings
        self._handle: Optional[asyncio.TimerHandle] = None
        self._fire_task: Optional[asyncio.Task] = None
        self._active = False
        self.arm_count = 0
        self.rollover_count = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def pending(self) -> bool:
        """True while a timer is armed and has not fired."""
        return self._handle is not None

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        self.arm()

    def arm(self) -> Optional[float]:
        """Cancel any pending timer and arm one for the next midnight.

        Returns:
            The delay in seconds, or None if the scheduler is stopped.
        """
        if not self._active:
            return None
        self._cancel_timer()
        delay = max(0.0, seconds_until_midnight(self._clock()))
        self._handle = asyncio.get_running_loop().call_later(delay, self._on_timer)
        self.arm_count += 1
        logger.info("Daily metrics will reset at midnight in %d seconds", int(delay))
        return delay

    def stop(self) -> None:
        """Cancel the pending timer and any in-flight rollover. Safe to call twice."""
        if not self._active:
            return
        self._active = False
        self._cancel_timer()
        if self._fire_task is not None and not self._fire_task.done():
            self._fire_task.cancel()
        logger.debug("Midnight scheduler stopped")

    async def fire(self) -> bool:
        """
        Handle a midnight: advance the day window and refresh the daily metrics.

        If the bookings feed already moved the window, this does nothing,
        since the feed has recomputed and re-armed already.

        Returns:
            True if this call moved the day window.
        """
        if not self._active:
            return False

        new_date = day_of(self._clock())
        if not self._day_window.advance(new_date):
            if self._handle is None:
                logger.debug("Timer fired before %s rolled over, re-arming", new_date)
                self.arm()
            return False

        logger.info("Midnight reached - resetting daily metrics for %s", new_date)
        try:
            documents = await self._source.fetch_snapshot(self._config.collections.bookings)
        except Exception:
            logger.exception("Post-midnight refresh failed, keeping previous metrics")
        else:
            if self._active:
                summary = summarize_bookings(documents, self._day_window.current_date)
                self._stats.merge(self._clock(), **summary.as_changes())
                self.rollover_count += 1
                logger.info(
                    "Post-midnight update: %d bookings today, %d completed, %s%s revenue",
                    summary.total, summary.completed,
                    self._config.dashboard.currency_label, summary.revenue,
                )

        if self._active:
            self.arm()
        return True

    def _on_timer(self) -> None:
        self._handle = None
        if not self._active:
            return
        self._fire_task = asyncio.get_running_loop().create_task(self.fire())

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
