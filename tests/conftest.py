"""Shared test fixtures and helpers."""

from datetime import datetime, timedelta
from typing import Any, Optional

import pytest

from src.config import AppConfig, DashboardConfig
from src.datasource.memory import InMemoryDataSource
from src.engine.day_window import DayWindow
from src.schemas.stats_schema import AggregateState

START = datetime(2024, 1, 1, 10, 0, 0)

SCENARIO_BOOKINGS: list[dict[str, Any]] = [
    {"id": "b1", "date": "2024-01-01", "status": "completed", "revenue": 500},
    {"id": "b2", "date": "2024-01-01", "status": "pending", "revenue": 300},
    {"id": "b3", "date": "2024-01-02", "status": "completed", "price": 200},
]

SCENARIO_CONVERSATIONS: list[dict[str, Any]] = [
    {"id": "c1", "unreadCount": 3},
    {"id": "c2", "unreadCount": 0},
    {"id": "c3", "unreadCount": 5},
]

SCENARIO_CLIENTS: list[dict[str, Any]] = [{"id": "k1"}, {"id": "k2"}, {"id": "k3"}, {"id": "k4"}]


class FakeClock:
    """Settable wall clock."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier:
    """Collects notifications instead of showing them."""

    def __init__(self) -> None:
        self.successes: list[tuple[str, int]] = []
        self.errors: list[str] = []

    def success(self, message: str, duration_ms: int) -> None:
        self.successes.append((message, duration_ms))

    def error(self, message: str) -> None:
        self.errors.append(message)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def config():
    return AppConfig(dashboard=DashboardConfig(settle_delay_sec=0.0, currency_label="Ksh"))


@pytest.fixture
def source():
    return InMemoryDataSource()


@pytest.fixture
def seeded_source(source, config):
    seed(source, config)
    return source


@pytest.fixture
def stats(clock):
    return AggregateState(last_update=clock())


@pytest.fixture
def day_window(clock):
    return DayWindow.starting_today(clock)


def seed(
    source: InMemoryDataSource,
    config: AppConfig,
    bookings: Optional[list[dict[str, Any]]] = None,
    conversations: Optional[list[dict[str, Any]]] = None,
    clients: Optional[list[dict[str, Any]]] = None,
) -> None:
    """Load the three collections, defaulting to the reference scenario."""
    source.load(config.collections.bookings, SCENARIO_BOOKINGS if bookings is None else bookings)
    source.load(
        config.collections.conversations,
        SCENARIO_CONVERSATIONS if conversations is None else conversations,
    )
    source.load(config.collections.clients, SCENARIO_CLIENTS if clients is None else clients)
