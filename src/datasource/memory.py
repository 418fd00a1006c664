"""
In-memory document store with change notification.

Stands in for the hosted document store in tests and the console demo.
Listeners are called on the running event loop, one ``call_soon`` per
change, inside the logical context they subscribed from. The snapshot
is read at delivery time, so rapid writes coalesce and re-emits show up
as duplicates, as they do with the real feeds.

Notifications already queued when a listener unsubscribes are still
delivered. Consumers are expected to drop them.
"""

import asyncio
import contextvars
import itertools
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from src.datasource.base import (
    Document,
    OnChange,
    OnError,
    Unsubscribe,
    Where,
    matches,
)

logger = logging.getLogger(__name__)


@dataclass
class _Listener:
    listener_id: int
    collection: str
    on_change: OnChange
    where: Where
    on_error: Optional[OnError]
    context: contextvars.Context


class InMemoryDataSource:
    """Dictionary-backed collections keyed by document id."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._listeners: dict[int, _Listener] = {}
        self._ids = itertools.count(1)
        self._pending = 0
        self._fetch_failures: dict[Optional[str], Exception] = {}
        self._subscribe_failures: dict[str, Exception] = {}
        self.fetch_count = 0

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def put(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        """Create or replace a document and notify listeners."""
        self._collections[collection][doc_id] = dict(data)
        self._notify(collection)

    def delete(self, collection: str, doc_id: str) -> None:
        self._collections[collection].pop(doc_id, None)
        self._notify(collection)

    def load(self, collection: str, documents: Iterable[Mapping[str, Any]]) -> None:
        """Replace a whole collection. Documents without an ``id`` get one."""
        docs: dict[str, dict[str, Any]] = {}
        for index, doc in enumerate(documents):
            data = dict(doc)
            doc_id = str(data.pop("id", f"{collection}-{index + 1}"))
            docs[doc_id] = data
        self._collections[collection] = docs
        self._notify(collection)

    def emit(self, collection: str) -> None:
        """Re-deliver the current snapshot without changing anything."""
        self._notify(collection)

    def reset(self) -> None:
        """Clear all data, listeners and injected faults. Used by test fixtures."""
        self._collections.clear()
        self._listeners.clear()
        self._fetch_failures.clear()
        self._subscribe_failures.clear()
        self.fetch_count = 0

    # ------------------------------------------------------------------ #
    # Fault injection
    # ------------------------------------------------------------------ #

    def fail_next_fetch(self, error: Exception, collection: Optional[str] = None) -> None:
        """Make the next fetch (of ``collection``, or of anything) raise ``error``."""
        self._fetch_failures[collection] = error

    def fail_subscribe(self, collection: str, error: Exception) -> None:
        """Make every future subscribe call on ``collection`` raise ``error``."""
        self._subscribe_failures[collection] = error

    def break_listeners(self, collection: str, error: Exception) -> None:
        """Terminate live listeners on ``collection`` with ``error``."""
        loop = asyncio.get_running_loop()
        for listener in list(self._listeners.values()):
            if listener.collection != collection:
                continue
            del self._listeners[listener.listener_id]
            if listener.on_error is not None:
                self._pending += 1
                loop.call_soon(self._report, listener, error, context=listener.context)

    # ------------------------------------------------------------------ #
    # DataSource
    # ------------------------------------------------------------------ #

    async def fetch_snapshot(self, collection: str, where: Where = None) -> list[Document]:
        await asyncio.sleep(0)
        self.fetch_count += 1
        error = self._fetch_failures.pop(collection, None) or self._fetch_failures.pop(None, None)
        if error is not None:
            raise error
        return self._snapshot(collection, where)

    def subscribe(
        self,
        collection: str,
        on_change: OnChange,
        where: Where = None,
        on_error: Optional[OnError] = None,
    ) -> Unsubscribe:
        error = self._subscribe_failures.get(collection)
        if error is not None:
            raise error

        listener = _Listener(
            listener_id=next(self._ids),
            collection=collection,
            on_change=on_change,
            where=dict(where) if where else None,
            on_error=on_error,
            context=contextvars.copy_context(),
        )
        self._listeners[listener.listener_id] = listener
        self._schedule(listener)
        logger.debug("Listener %d attached to '%s'", listener.listener_id, collection)

        def unsubscribe() -> None:
            if self._listeners.pop(listener.listener_id, None) is not None:
                logger.debug("Listener %d detached from '%s'", listener.listener_id, collection)

        return unsubscribe

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def listener_count(self, collection: Optional[str] = None) -> int:
        return sum(
            1 for listener in self._listeners.values()
            if collection is None or listener.collection == collection
        )

    async def settle(self) -> None:
        """Yield to the loop until every queued notification has been delivered."""
        while self._pending:
            await asyncio.sleep(0)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _snapshot(self, collection: str, where: Where) -> list[Document]:
        docs = ({"id": doc_id, **data} for doc_id, data in self._collections[collection].items())
        return [doc for doc in docs if matches(doc, where)]

    def _notify(self, collection: str) -> None:
        for listener in list(self._listeners.values()):
            if listener.collection == collection:
                self._schedule(listener)

    def _schedule(self, listener: _Listener) -> None:
        loop = asyncio.get_running_loop()
        self._pending += 1
        loop.call_soon(self._deliver, listener, context=listener.context)

    def _deliver(self, listener: _Listener) -> None:
        self._pending -= 1
        listener.on_change(self._snapshot(listener.collection, listener.where))

    def _report(self, listener: _Listener, error: Exception) -> None:
        self._pending -= 1
        if listener.on_error is not None:
            listener.on_error(error)

