"""
Session lifecycle for the dashboard metrics engine.

A ``DashboardSession`` is the context object for one authorized period:
it owns the AggregateState and DayWindow and wires them into the
ValidationRunner, FeedCoordinator and MidnightScheduler. Nothing outside
the session writes to either.

``SystemValidationEngine`` is what the host talks to. It turns the
"authorized session active" signal into session start and teardown.

Usage:
    engine = SystemValidationEngine(source)
    engine.set_authorized(True)     # bootstrap after the settle delay, then go live
    engine.stats.todays_bookings
    engine.set_authorized(False)    # release listeners and the midnight timer
"""

import asyncio
import uuid
from datetime import datetime
from typing import Optional

from src.config import AppConfig, settings
from src.datasource.base import DataSource
from src.engine.day_window import Clock, DayWindow, system_clock
from src.engine.feeds import FeedCoordinator
from src.engine.scheduler import MidnightScheduler
from src.engine.validation import ValidationRunner
from src.logging_context import get_session_logger, set_session_id
from src.notifications import LogNotifier, Notifier
from src.schemas.stats_schema import AggregateState, StatsView

logger = get_session_logger(__name__)


class DashboardSession:
    """State and components of one authorized dashboard session."""

    def __init__(
        self,
        source: DataSource,
        clock: Clock,
        notifier: Optional[Notifier] = None,
        config: Optional[AppConfig] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or f"SES-{uuid.uuid4().hex[:6].upper()}"
        self._config = config or settings
        self.day_window = DayWindow.starting_today(clock)
        self.stats = AggregateState(last_update=clock())
        self.validator = ValidationRunner(
            source, self.stats, self.day_window, clock, notifier or LogNotifier(), self._config,
        )
        self.scheduler = MidnightScheduler(source, self.stats, self.day_window, clock, self._config)
        self.feeds = FeedCoordinator(
            source, self.stats, self.day_window, self.scheduler, clock, self._config,
        )
        self._task: Optional[asyncio.Task] = None
        self._live = False
        self._closed = False

    @property
    def validated(self) -> bool:
        return self.validator.validated

    @property
    def live(self) -> bool:
        return self._live

    @property
    def closed(self) -> bool:
        return self._closed

    def request_validation(self) -> bool:
        """Schedule a bootstrap run after the settle delay.

        Ignored once the latch is set, while a run is pending, or after
        the session closed.

        Returns:
            True if a run was scheduled.
        """
        if self._closed or self.validated:
            return False
        if self._task is not None and not self._task.done():
            return False
        self._task = asyncio.get_running_loop().create_task(self._validate_then_go_live())
        return True

    async def wait_for_validation(self) -> bool:
        """Wait for the scheduled bootstrap run, if any, and report the latch."""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.validated

    def view(self) -> StatsView:
        return self.stats.view(validated=self.validated)

    def close(self) -> None:
        """Tear down listeners, the midnight timer and any pending bootstrap. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.feeds.stop()
        self.scheduler.stop()
        logger.info("Dashboard session %s closed", self.session_id)

    async def _validate_then_go_live(self) -> None:
        set_session_id(self.session_id)
        await asyncio.sleep(self._config.dashboard.settle_delay_sec)
        if await self.validator.run() and not self._closed:
            self._go_live()

    def _go_live(self) -> None:
        if self._live:
            return
        self._live = True
        logger.info("Setting up real-time listeners")
        self.scheduler.start()
        self.feeds.start()


class SystemValidationEngine:
    """Maps the host's authorization signal onto dashboard sessions."""

    def __init__(
        self,
        source: DataSource,
        notifier: Optional[Notifier] = None,
        clock: Optional[Clock] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._source = source
        self._notifier = notifier or LogNotifier()
        self._config = config or settings
        self._clock = clock or system_clock(self._config.dashboard.tzinfo())
        self._session: Optional[DashboardSession] = None
        self._authorized = False
        self._idle_view = AggregateState(last_update=self._clock()).view()

    @property
    def authorized(self) -> bool:
        return self._authorized

    @property
    def session(self) -> Optional[DashboardSession]:
        return self._session

    @property
    def stats(self) -> StatsView:
        if self._session is None:
            return self._idle_view
        return self._session.view()

    @property
    def is_validated(self) -> bool:
        return self._session is not None and self._session.validated

    @property
    def last_update(self) -> datetime:
        return self.stats.last_update

    def set_authorized(self, authorized: bool) -> None:
        """
        Feed the current authorization state.

        Becoming authorized opens a session and schedules the bootstrap.
        Repeating True while the bootstrap has failed and is idle runs it
        again. Becoming unauthorized tears the session down.

        Must be called from the event loop thread.
        """
        if authorized:
            if self._session is None:
                self._session = DashboardSession(
                    self._source, self._clock, self._notifier, self._config,
                )
                logger.info("Authorized session %s opened", self._session.session_id)
            self._session.request_validation()
        elif self._session is not None:
            session, self._session = self._session, None
            self._idle_view = AggregateState(last_update=self._clock()).view()
            session.close()
        self._authorized = authorized

    def close(self) -> None:
        self.set_authorized(False)
