"""Plain-text rendering of the dashboard metrics for consoles and logs."""

from typing import Optional

from src.config import settings
from src.schemas.stats_schema import StatsView
from src.utils import format_amount


def format_report(view: StatsView, current_date: Optional[str] = None, currency: str = "") -> str:
    """Format a metrics view into a human-readable report."""
    currency = currency or settings.dashboard.currency_label
    status = "VALIDATED" if view.validated else "NOT VALIDATED"

    lines = [
        "=" * 60,
        f"OPERATIONS DASHBOARD  [{status}]",
        "=" * 60,
    ]
    if current_date:
        lines.append(f"  Day window:             {current_date}")
    lines += [
        f"  Bookings today:         {view.todays_bookings}",
        f"  Revenue today:          {currency}{format_amount(view.revenue_today)}",
        f"  Pending messages:       {view.pending_messages}",
        f"  Active customers:       {view.active_customers}",
        f"  Last update:            {view.last_update:%Y-%m-%d %H:%M:%S}",
        "=" * 60,
    ]
    return "\n".join(lines)
