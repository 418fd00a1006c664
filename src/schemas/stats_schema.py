"""Dashboard metrics: the mutable per-session aggregate and its read view."""

from dataclasses import dataclass, field, fields
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

METRIC_FIELDS: frozenset[str] = frozenset(
    {"todays_bookings", "pending_messages", "active_customers", "revenue_today"}
)


class StatsView(BaseModel):
    """Immutable snapshot of the dashboard metrics handed to the host.

    Serialises with camelCase keys (``todaysBookings``, ``lastUpdate``...).
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    todays_bookings: int = 0
    pending_messages: int = 0
    active_customers: int = 0
    revenue_today: float = 0.0
    last_update: datetime
    validated: bool = False


@dataclass
class AggregateState:
    """
    Per-session metrics record shared by every updater.

    Only ``merge`` writes to it: each updater overwrites the fields it
    computed and leaves the rest alone, so the bookings, conversations
    and clients feeds never clobber each other.
    """

    last_update: datetime
    todays_bookings: int = 0
    pending_messages: int = 0
    active_customers: int = 0
    revenue_today: float = 0.0
    merge_count: int = field(default=0, compare=False)

    def merge(self, now: datetime, **changes: float) -> None:
        """Overwrite the given metric fields and stamp ``last_update``.

        ``last_update`` never moves backwards, even if ``now`` does.

        Raises:
            KeyError: If a change names something other than a metric field.
        """
        unknown = sorted(set(changes) - METRIC_FIELDS)
        if unknown:
            raise KeyError(f"Not a metric field: {unknown}")
        for name, value in changes.items():
            setattr(self, name, value)
        if now > self.last_update:
            self.last_update = now
        self.merge_count += 1

    def metrics(self) -> dict[str, float]:
        """The four metric values, without bookkeeping fields."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name in METRIC_FIELDS}

    def view(self, validated: bool = False) -> StatsView:
        return StatsView(last_update=self.last_update, validated=validated, **self.metrics())
