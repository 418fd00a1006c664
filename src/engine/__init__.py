from src.engine.day_window import DayWindow, seconds_until_midnight
from src.engine.feeds import FeedCoordinator
from src.engine.scheduler import MidnightScheduler
from src.engine.session import DashboardSession, SystemValidationEngine
from src.engine.validation import ValidationRunner

__all__ = [
    "SystemValidationEngine",
    "DashboardSession",
    "ValidationRunner",
    "FeedCoordinator",
    "MidnightScheduler",
    "DayWindow",
    "seconds_until_midnight",
]
