"""
DataSource capability consumed by the metrics engine.

Any document store offering a one-shot query and a change listener that
pushes the full matching set fits this contract. In production this is
backed by the hosted document store; tests and the console demo use
``InMemoryDataSource``.
"""

from typing import Any, Callable, Mapping, Optional, Protocol, runtime_checkable

Document = Mapping[str, Any]
Where = Optional[Mapping[str, Any]]
OnChange = Callable[[list[Document]], None]
OnError = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


class DataSourceError(Exception):
    """Raised when a fetch or subscription cannot be served."""


@runtime_checkable
class DataSource(Protocol):
    """Snapshot fetch plus change subscription over named collections."""

    async def fetch_snapshot(self, collection: str, where: Where = None) -> list[Document]:
        """Return every document in ``collection`` matching ``where``."""
        ...

    def subscribe(
        self,
        collection: str,
        on_change: OnChange,
        where: Where = None,
        on_error: Optional[OnError] = None,
    ) -> Unsubscribe:
        """Listen for changes.

        ``on_change`` receives the full current matching set on every
        change, never a delta, and may see duplicate or coalesced
        snapshots. The returned callable cancels the listener.
        """
        ...


def matches(document: Document, where: Where) -> bool:
    """Equality filter: every key in ``where`` must equal the document's value."""
    if not where:
        return True
    return all(key in document and document[key] == value for key, value in where.items())
