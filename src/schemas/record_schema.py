"""Read-only record models for the three feeds.

Documents come straight from the store and may be malformed. Parsing
never rejects a document: unusable values collapse to ``None`` (or 0 for
counters) so one bad record cannot take down a metric.
"""

import datetime as dt
import logging
import math
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

Document = Mapping[str, Any]
RecordT = TypeVar("RecordT", bound=BaseModel)


class BookingStatus(str, Enum):
    """Known booking statuses. Unknown values are kept as plain strings."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


def _as_id(value: Any) -> str:
    return "" if value is None else str(value)


class BookingRecord(BaseModel):
    """A booking as seen by the metrics engine."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = ""
    date: Optional[str] = None
    status: Optional[str] = None
    revenue: Optional[float] = None
    price: Optional[float] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return _as_id(value)

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Optional[str]:
        if isinstance(value, str):
            return value
        if isinstance(value, dt.date):
            return value.isoformat()[:10]
        return None

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Optional[str]:
        if isinstance(value, Enum):
            value = value.value
        return value if isinstance(value, str) else None

    @field_validator("revenue", "price", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Optional[float]:
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            return None
        amount = float(value)
        return amount if math.isfinite(amount) else None

    @property
    def amount(self) -> float:
        """Revenue if set, else price, else 0. Zero revenue falls through to price."""
        return self.revenue or self.price or 0.0

    @property
    def is_completed(self) -> bool:
        return self.status == BookingStatus.COMPLETED


class ConversationRecord(BaseModel):
    """A customer conversation thread with its unread message counter."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = ""
    unread_count: int = Field(default=0, alias="unreadCount")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return _as_id(value)

    @field_validator("unread_count", mode="before")
    @classmethod
    def _coerce_unread(cls, value: Any) -> int:
        if isinstance(value, bool):
            return 0
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, int) and value > 0:
            return value
        return 0


class ClientRecord(BaseModel):
    """A client. Existence alone makes it an active customer."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return _as_id(value)


def parse_records(
    model: type[RecordT], documents: Iterable[Union[Document, RecordT]]
) -> list[RecordT]:
    """Parse raw documents into ``model`` instances, skipping non-mappings."""
    parsed: list[RecordT] = []
    for doc in documents:
        if isinstance(doc, model):
            parsed.append(doc)
            continue
        try:
            parsed.append(model.model_validate(doc))
        except ValidationError:
            logger.warning("Skipping unreadable %s document: %r", model.__name__, doc)
    return parsed
