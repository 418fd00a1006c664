"""
Metric calculations over full feed snapshots.

Every function takes a complete snapshot and recomputes from scratch, so
duplicate or coalesced deliveries converge to the same numbers.
"""

from dataclasses import dataclass
from typing import Iterable, Union

from src.datasource.base import Document
from src.schemas.record_schema import (
    BookingRecord,
    ClientRecord,
    ConversationRecord,
    parse_records,
)


@dataclass(frozen=True)
class DailyBookingSummary:
    """Bookings on one calendar day, with completed revenue."""

    day: str
    total: int
    completed: int
    revenue: float

    def as_changes(self) -> dict[str, float]:
        """Fields for ``AggregateState.merge``."""
        return {"todays_bookings": self.total, "revenue_today": self.revenue}


def summarize_bookings(
    documents: Iterable[Union[Document, BookingRecord]], day: str
) -> DailyBookingSummary:
    """Count bookings dated ``day`` (any status) and sum completed revenue.

    Records without a usable date never match a day.
    """
    todays = [b for b in parse_records(BookingRecord, documents) if b.date == day]
    completed = [b for b in todays if b.is_completed]
    return DailyBookingSummary(
        day=day,
        total=len(todays),
        completed=len(completed),
        revenue=sum((b.amount for b in completed), 0.0),
    )


def count_pending_messages(documents: Iterable[Union[Document, ConversationRecord]]) -> int:
    """Unread messages across every conversation, not scoped to a day."""
    return sum(c.unread_count for c in parse_records(ConversationRecord, documents))


def count_active_customers(documents: Iterable[Union[Document, ClientRecord]]) -> int:
    """Size of the delivered client set. Documents are counted unparsed."""
    return sum(1 for _ in documents)
