"""Tests for the polling sync loop: snapshots, change detection, lifecycle."""

import asyncio

import pytest

from gustoflow.db import DataGateway
from gustoflow.services.notifications import NotificationFeed
from gustoflow.services.orders import set_table_status
from gustoflow.services.staff import send_ping
from gustoflow.services.store import LocalStore
from gustoflow.sync import SyncLoop


class FlakyStore(LocalStore):
    """Local store whose reads of selected tables fail on demand."""

    def __init__(self, directory):
        super().__init__(directory)
        self.failing: set[str] = set()

    async def select_all(self, table, order_clause=None):
        if table in self.failing:
            raise RuntimeError(f"{table} unavailable")
        return await super().select_all(table, order_clause)


@pytest.fixture
def feed():
    return NotificationFeed(capacity=5)


@pytest.fixture
def sync_loop(local_gateway, waitress, feed):
    return SyncLoop(local_gateway, user=waitress, feed=feed, interval=60)


# ============== Snapshot ==============

class TestSnapshot:

    @pytest.mark.asyncio
    async def test_refresh_loads_every_collection(self, sync_loop):
        snapshot = await sync_loop.refresh()

        assert len(snapshot.staff) == 4
        assert [t.number for t in snapshot.tables] == list(range(1, 13))
        assert len(snapshot.menu) == 8
        assert snapshot.orders == ()
        assert snapshot.app_settings.id == "singleton_settings"
        assert snapshot.fetched_at > 0
        assert sync_loop.snapshot is snapshot

    @pytest.mark.asyncio
    async def test_snapshots_are_replaced_not_mutated(self, sync_loop, local_gateway):
        first = await sync_loop.refresh()
        await set_table_status(local_gateway, "t-1", "Ordering")
        second = await sync_loop.refresh()

        assert first.table("t-1").status == "Available"
        assert second.table("t-1").status == "Ordering"
        assert first is not second

    @pytest.mark.asyncio
    async def test_failed_collection_keeps_previous_data(self, tmp_path, waitress, caplog):
        store = FlakyStore(tmp_path)
        loop = SyncLoop(DataGateway(None, store), user=waitress, interval=60)

        first = await loop.refresh()
        store.failing.add("tables")
        await set_table_status(loop.gateway, "t-1", "Cooking")
        second = await loop.refresh()

        assert second.tables == first.tables
        assert second.fetched_at >= first.fetched_at
        assert "Poll of tables failed" in caplog.text

    @pytest.mark.asyncio
    async def test_on_snapshot_callback(self, local_gateway):
        seen = []
        loop = SyncLoop(local_gateway, interval=60, on_snapshot=seen.append)
        snapshot = await loop.refresh()
        assert seen == [snapshot]


# ============== Change detection ==============

class TestReadyNotifications:

    @pytest.mark.asyncio
    async def test_callers_empty_feed_receives_notifications(self, local_gateway, waitress):
        chimes = []
        feed = NotificationFeed(on_notify=chimes.append)
        loop = SyncLoop(local_gateway, user=waitress, feed=feed, interval=60)
        assert loop.feed is feed

        await set_table_status(local_gateway, "t-2", "Cooking", waitress_name="Elena Waitress")
        await loop.refresh()
        await set_table_status(local_gateway, "t-2", "Ready")
        await loop.refresh()

        assert chimes == ["Order ready for Table 2"]
        assert feed.messages == ["Order ready for Table 2"]

    @pytest.mark.asyncio
    async def test_ready_notified_exactly_once(self, sync_loop, local_gateway, feed):
        await set_table_status(local_gateway, "t-2", "Cooking", waitress_name="Elena Waitress")
        await sync_loop.refresh()

        await set_table_status(local_gateway, "t-2", "Ready")
        await sync_loop.refresh()
        await sync_loop.refresh()

        assert feed.messages == ["Order ready for Table 2"]

    @pytest.mark.asyncio
    async def test_other_waitress_not_notified(self, sync_loop, local_gateway, feed):
        await set_table_status(local_gateway, "t-2", "Cooking", waitress_name="Someone Else")
        await sync_loop.refresh()
        await set_table_status(local_gateway, "t-2", "Ready")
        await sync_loop.refresh()

        assert feed.messages == []

    @pytest.mark.asyncio
    async def test_already_ready_on_first_load_is_silent(self, sync_loop, local_gateway, feed):
        await set_table_status(local_gateway, "t-2", "Ready", waitress_name="Elena Waitress")
        await sync_loop.refresh()
        assert feed.messages == []

    @pytest.mark.asyncio
    async def test_no_user_no_notifications(self, local_gateway, feed):
        loop = SyncLoop(local_gateway, feed=feed, interval=60)
        await loop.refresh()
        await set_table_status(local_gateway, "t-2", "Ready", waitress_name="Elena Waitress")
        await loop.refresh()
        assert len(feed) == 0


class TestPingNotifications:

    @pytest.mark.asyncio
    async def test_fresh_ping_notified_once(self, sync_loop, local_gateway, feed):
        await sync_loop.refresh()
        await send_ping(local_gateway, "Elena Waitress", "Sarah Cashier", 5)

        await sync_loop.refresh()
        await sync_loop.refresh()

        assert feed.messages == ["Table 5 needs you (from Sarah Cashier)"]

    @pytest.mark.asyncio
    async def test_ping_for_someone_else_ignored(self, sync_loop, local_gateway, feed):
        await send_ping(local_gateway, "Marco Chef", "Sarah Cashier", 5)
        await sync_loop.refresh()
        assert feed.messages == []

    @pytest.mark.asyncio
    async def test_stale_ping_ignored(self, sync_loop, local_gateway, feed):
        await local_gateway.from_("staff_pings").insert([{
            "id": "old", "target_name": "Elena Waitress", "sender_name": "Sarah Cashier",
            "table_number": 5, "timestamp": 1,
        }])
        await sync_loop.refresh()
        assert feed.messages == []


# ============== Lifecycle ==============

class TestLifecycle:

    @pytest.mark.asyncio
    async def test_start_polls_until_stopped(self, local_gateway):
        ticks = []
        loop = SyncLoop(local_gateway, interval=0.01, on_snapshot=ticks.append)

        await loop.start()
        assert loop.running
        await asyncio.sleep(0.1)
        await loop.stop()

        assert not loop.running
        assert len(ticks) >= 2

        count = len(ticks)
        await asyncio.sleep(0.05)
        assert len(ticks) == count

    @pytest.mark.asyncio
    async def test_context_manager(self, local_gateway):
        async with SyncLoop(local_gateway, interval=60) as loop:
            assert loop.running
            assert len(loop.snapshot.tables) == 12
        assert not loop.running

    @pytest.mark.asyncio
    async def test_stop_without_start(self, local_gateway):
        loop = SyncLoop(local_gateway, interval=60)
        await loop.stop()
        assert not loop.running


class TestNotificationFeed:

    def test_bounded_newest_first(self):
        delivered = []
        feed = NotificationFeed(capacity=2, on_notify=delivered.append)
        for message in ("a", "b", "c"):
            feed.notify(message)

        assert feed.messages == ["c", "b"]
        assert delivered == ["a", "b", "c"]
        feed.clear()
        assert len(feed) == 0
