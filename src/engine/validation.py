"""
One-shot bootstrap of the dashboard metrics.

Fetches today's bookings plus every conversation and client, publishes
all four metrics in a single merge, and flips the ``validated`` latch.
The latch is one-way: once set, later calls return immediately, and a
call made while a run is still in flight does nothing. A failed run
leaves the latch unset and does not retry on its own; the session runs
it again when the host re-authorizes.
"""

from typing import Optional

from src.config import AppConfig, settings
from src.datasource.base import DataSource
from src.engine.aggregates import count_active_customers, count_pending_messages, summarize_bookings
from src.engine.day_window import Clock, DayWindow
from src.logging_context import get_session_logger
from src.notifications import (
    LogNotifier,
    Notifier,
    validation_failure_message,
    validation_success_message,
)
from src.schemas.stats_schema import AggregateState

logger = get_session_logger(__name__)


class ValidationRunner:
    """Computes the initial AggregateState at most once per session."""

    def __init__(
        self,
        source: DataSource,
        stats: AggregateState,
        day_window: DayWindow,
        clock: Clock,
        notifier: Optional[Notifier] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._source = source
        self._stats = stats
        self._day_window = day_window
        self._clock = clock
        self._notifier = notifier or LogNotifier()
        self._config = config or settings
        self._validated = False
        self._running = False
        self.attempts = 0

    @property
    def validated(self) -> bool:
        return self._validated

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> bool:
        """
        Fetch, compute and publish the initial metrics.

        Returns:
            True if the latch is set after this call.
        """
        if self._validated:
            logger.debug("Validation already complete, skipping")
            return True
        if self._running:
            logger.debug("Validation already in flight, skipping")
            return False

        self._running = True
        self.attempts += 1
        collections = self._config.collections
        try:
            logger.info("Running system validation (attempt %d)", self.attempts)
            day = self._day_window.current_date

            bookings = await self._source.fetch_snapshot(collections.bookings, where={"date": day})
            summary = summarize_bookings(bookings, day)
            logger.info(
                "Revenue calculation: %d total bookings, %d completed, %s%s revenue",
                summary.total, summary.completed,
                self._config.dashboard.currency_label, summary.revenue,
            )

            conversations = await self._source.fetch_snapshot(collections.conversations)
            pending_messages = count_pending_messages(conversations)

            clients = await self._source.fetch_snapshot(collections.clients)
            active_customers = count_active_customers(clients)
        except Exception as exc:
            logger.exception("System validation failed")
            self._notify_error(validation_failure_message(exc))
            return False
        finally:
            self._running = False

        self._stats.merge(
            self._clock(),
            pending_messages=pending_messages,
            active_customers=active_customers,
            **summary.as_changes(),
        )
        self._validated = True

        self._notify_success(validation_success_message(
            self._stats.todays_bookings,
            self._stats.pending_messages,
            self._stats.active_customers,
            self._stats.revenue_today,
            self._config.dashboard.currency_label,
        ))
        logger.info("System validation complete: %s", self._stats.metrics())
        return True

    def _notify_success(self, message: str) -> None:
        try:
            self._notifier.success(message, self._config.dashboard.notification_duration_ms)
        except Exception:
            logger.exception("Success notification could not be delivered")

    def _notify_error(self, message: str) -> None:
        try:
            self._notifier.error(message)
        except Exception:
            logger.exception("Failure notification could not be delivered")
