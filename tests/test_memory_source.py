"""Tests for the in-memory data source."""

import pytest

from src.datasource.base import DataSource, DataSourceError, matches


class TestMatches:
    def test_no_filter_matches_everything(self):
        assert matches({"a": 1}, None)
        assert matches({"a": 1}, {})

    def test_equality_filter(self):
        assert matches({"date": "2024-01-01"}, {"date": "2024-01-01"})
        assert not matches({"date": "2024-01-02"}, {"date": "2024-01-01"})

    def test_missing_field_does_not_match(self):
        assert not matches({}, {"date": None})


class TestFetch:
    def test_satisfies_protocol(self, source):
        assert isinstance(source, DataSource)

    @pytest.mark.asyncio
    async def test_fetch_returns_documents_with_ids(self, source):
        source.put("clients", "k1", {"name": "Ann"})
        assert await source.fetch_snapshot("clients") == [{"id": "k1", "name": "Ann"}]

    @pytest.mark.asyncio
    async def test_fetch_with_filter(self, seeded_source):
        docs = await seeded_source.fetch_snapshot("bookings", where={"date": "2024-01-02"})
        assert [d["id"] for d in docs] == ["b3"]

    @pytest.mark.asyncio
    async def test_unknown_collection_is_empty(self, source):
        assert await source.fetch_snapshot("nothing") == []

    @pytest.mark.asyncio
    async def test_injected_failure_raised_once(self, seeded_source):
        seeded_source.fail_next_fetch(DataSourceError("offline"))
        with pytest.raises(DataSourceError, match="offline"):
            await seeded_source.fetch_snapshot("clients")
        assert len(await seeded_source.fetch_snapshot("clients")) == 4

    @pytest.mark.asyncio
    async def test_injected_failure_scoped_to_collection(self, seeded_source):
        seeded_source.fail_next_fetch(DataSourceError("offline"), collection="clients")
        assert len(await seeded_source.fetch_snapshot("bookings")) == 3
        with pytest.raises(DataSourceError):
            await seeded_source.fetch_snapshot("clients")

    @pytest.mark.asyncio
    async def test_load_assigns_missing_ids(self, source):
        source.load("clients", [{}, {}])
        docs = await source.fetch_snapshot("clients")
        assert [d["id"] for d in docs] == ["clients-1", "clients-2"]


class TestSubscribe:
    @pytest.mark.asyncio
    async def test_initial_snapshot_delivered(self, seeded_source):
        received = []
        seeded_source.subscribe("conversations", received.append)
        await seeded_source.settle()
        assert len(received) == 1
        assert len(received[0]) == 3

    @pytest.mark.asyncio
    async def test_full_snapshot_on_change(self, source):
        received = []
        source.subscribe("clients", received.append)
        source.put("clients", "a", {})
        await source.settle()
        source.put("clients", "b", {})
        await source.settle()
        assert [len(snapshot) for snapshot in received] == [1, 1, 2]

    @pytest.mark.asyncio
    async def test_rapid_writes_coalesce(self, source):
        received = []
        source.subscribe("clients", received.append)
        source.put("clients", "a", {})
        source.put("clients", "b", {})
        await source.settle()
        # every queued delivery reads the latest state
        assert [len(snapshot) for snapshot in received] == [2, 2, 2]

    @pytest.mark.asyncio
    async def test_filtered_subscription(self, seeded_source):
        received = []
        seeded_source.subscribe("bookings", received.append, where={"date": "2024-01-01"})
        await seeded_source.settle()
        assert {d["id"] for d in received[0]} == {"b1", "b2"}

    @pytest.mark.asyncio
    async def test_emit_redelivers_same_snapshot(self, seeded_source):
        received = []
        seeded_source.subscribe("clients", received.append)
        seeded_source.emit("clients")
        await seeded_source.settle()
        assert received[0] == received[1]

    @pytest.mark.asyncio
    async def test_unsubscribe_is_idempotent(self, source):
        unsubscribe = source.subscribe("clients", lambda docs: None)
        assert source.listener_count("clients") == 1
        unsubscribe()
        unsubscribe()
        assert source.listener_count("clients") == 0
        await source.settle()

    @pytest.mark.asyncio
    async def test_queued_delivery_survives_unsubscribe(self, source):
        received = []
        unsubscribe = source.subscribe("clients", received.append)
        unsubscribe()
        await source.settle()
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_no_delivery_after_unsubscribe_for_new_changes(self, source):
        received = []
        unsubscribe = source.subscribe("clients", received.append)
        await source.settle()
        unsubscribe()
        source.put("clients", "a", {})
        await source.settle()
        assert len(received) == 1

    def test_subscribe_failure(self, source):
        source.fail_subscribe("clients", DataSourceError("denied"))
        with pytest.raises(DataSourceError):
            source.subscribe("clients", lambda docs: None)

    @pytest.mark.asyncio
    async def test_break_listeners_reports_error(self, source):
        errors = []
        source.subscribe("clients", lambda docs: None, on_error=errors.append)
        await source.settle()
        source.break_listeners("clients", DataSourceError("disconnected"))
        await source.settle()
        assert [str(e) for e in errors] == ["disconnected"]
        assert source.listener_count() == 0
