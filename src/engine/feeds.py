"""
Live subscriptions to the bookings, conversations and clients feeds.

Each feed owns a disjoint set of metric fields and merges only those,
so the three can arrive in any order. The bookings feed also watches
for the date changing under it and, when it wins the race against the
midnight timer, re-arms the timer for the following night.
"""

from collections import Counter
from functools import partial
from typing import Callable, Optional

from src.config import AppConfig, settings
from src.datasource.base import DataSource, Document, Unsubscribe
from src.engine.aggregates import count_active_customers, count_pending_messages, summarize_bookings
from src.engine.day_window import Clock, DayWindow, day_of
from src.engine.scheduler import MidnightScheduler
from src.logging_context import get_session_logger
from src.schemas.stats_schema import AggregateState

logger = get_session_logger(__name__)

BOOKINGS = "bookings"
CONVERSATIONS = "conversations"
CLIENTS = "clients"


class FeedCoordinator:
    """Owns the three subscriptions of one dashboard session."""

    def __init__(
        self,
        source: DataSource,
        stats: AggregateState,
        day_window: DayWindow,
        scheduler: MidnightScheduler,
        clock: Clock,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._source = source
        self._stats = stats
        self._day_window = day_window
        self._scheduler = scheduler
        self._clock = clock
        self._config = config or settings
        self._unsubscribers: dict[str, Unsubscribe] = {}
        self._started = False
        self._active = False
        self.failed_feeds: set[str] = set()
        self.applied: Counter[str] = Counter()
        self.dropped: Counter[str] = Counter()

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        """Attach all three listeners. A feed that fails to attach is logged and skipped."""
        if self._started:
            return
        self._started = True
        self._active = True

        collections = self._config.collections
        for feed, collection, handler in [
            (BOOKINGS, collections.bookings, self._apply_bookings),
            (CONVERSATIONS, collections.conversations, self._apply_conversations),
            (CLIENTS, collections.clients, self._apply_clients),
        ]:
            try:
                self._unsubscribers[feed] = self._source.subscribe(
                    collection,
                    self._guarded(feed, handler),
                    on_error=partial(self._on_feed_error, feed),
                )
            except Exception:
                logger.exception("Could not subscribe to the %s feed", feed)
                self.failed_feeds.add(feed)
        logger.info("Real-time listeners attached: %s", sorted(self._unsubscribers))

    def stop(self) -> None:
        """Release every subscription exactly once. Later deliveries are dropped."""
        if not self._active:
            return
        self._active = False
        unsubscribers, self._unsubscribers = self._unsubscribers, {}
        for feed, unsubscribe in unsubscribers.items():
            try:
                unsubscribe()
            except Exception:
                logger.exception("Error while detaching the %s feed", feed)
        logger.debug("Real-time listeners detached")

    # ------------------------------------------------------------------ #
    # Callbacks
    # ------------------------------------------------------------------ #

    def _guarded(
        self, feed: str, handler: Callable[[list[Document]], None]
    ) -> Callable[[list[Document]], None]:
        def on_change(documents: list[Document]) -> None:
            if not self._active:
                self.dropped[feed] += 1
                logger.debug("Dropping %s update delivered after teardown", feed)
                return
            try:
                handler(documents)
            except Exception:
                logger.exception("Could not apply %s update, keeping previous metrics", feed)
            else:
                self.applied[feed] += 1

        return on_change

    def _apply_bookings(self, documents: list[Document]) -> None:
        today = day_of(self._clock())
        if today != self._day_window.current_date and self._day_window.adopt_if_changed(today):
            logger.info("Date changed - resetting midnight timer")
            self._scheduler.arm()

        summary = summarize_bookings(documents, self._day_window.current_date)
        self._stats.merge(self._clock(), **summary.as_changes())
        logger.info(
            "Real-time update: %d bookings today, %d completed, %s%s revenue",
            summary.total, summary.completed,
            self._config.dashboard.currency_label, summary.revenue,
        )

    def _apply_conversations(self, documents: list[Document]) -> None:
        self._stats.merge(self._clock(), pending_messages=count_pending_messages(documents))

    def _apply_clients(self, documents: list[Document]) -> None:
        self._stats.merge(self._clock(), active_customers=count_active_customers(documents))

    def _on_feed_error(self, feed: str, error: Exception) -> None:
        if not self._active:
            return
        self.failed_feeds.add(feed)
        logger.error("The %s feed stopped (%s), keeping last known metrics", feed, error)
