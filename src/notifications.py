"""
Fire-and-forget notifications for the dashboard host.

The host renders these however it likes (toasts in the web UI). The
engine only formats the text and hands it over; nothing reads it back.
"""

import logging
from typing import Protocol

from src.config import settings
from src.utils import Amount, format_amount

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Notification side channel."""

    def success(self, message: str, duration_ms: int) -> None: ...

    def error(self, message: str) -> None: ...


class LogNotifier:
    """Default notifier that writes notifications to the log."""

    def success(self, message: str, duration_ms: int) -> None:
        logger.info("NOTIFY success (%dms): %s", duration_ms, message)

    def error(self, message: str) -> None:
        logger.error("NOTIFY error: %s", message)


def validation_success_message(
    todays_bookings: int,
    pending_messages: int,
    active_customers: int,
    revenue_today: Amount,
    currency: str = "",
) -> str:
    currency = currency or settings.dashboard.currency_label
    return (
        f"System Validated: {todays_bookings} bookings, {pending_messages} messages, "
        f"{active_customers} customers, {currency}{format_amount(revenue_today)} revenue"
    )


def validation_failure_message(error: BaseException) -> str:
    return f"System validation failed: {str(error) or type(error).__name__}"
