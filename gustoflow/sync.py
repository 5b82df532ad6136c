"""
Sync Loop

Approximate multi-client consistency without push infrastructure: a
scheduled task re-reads every collection on a fixed interval and swaps in a
fresh, immutable ``Snapshot``.

Per tick:
    1. fetch all collections concurrently and wait for all to settle
    2. each collection that came back replaces its slot; failed ones keep
       the previous data (a warning is logged)
    3. the new snapshot is published with a single assignment, so readers
       never observe a half-updated state
    4. the previous and new snapshots are compared for user-visible events:
       a table assigned to the session user turning Ready, and fresh pings
       addressed to the session user (each reported once)

Usage:
    loop = SyncLoop(get_data_gateway(), user=current_user, feed=feed)
    await loop.start()
    ...
    await loop.stop()
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

from gustoflow.core.config import get_settings
from gustoflow.db import DataGateway
from gustoflow.schemas import (
    AppSettings,
    MenuItem,
    Order,
    StaffMember,
    StaffPing,
    StockEntry,
    Table,
    TableName,
    TableStatus,
    Transaction,
)
from gustoflow.services.notifications import NotificationFeed
from gustoflow.services.staff import fresh_pings
from gustoflow.services.store import Predicate
from gustoflow.services.utils import now_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of every collection as of one poll tick."""
    staff: tuple[StaffMember, ...] = ()
    tables: tuple[Table, ...] = ()
    menu: tuple[MenuItem, ...] = ()
    orders: tuple[Order, ...] = ()
    transactions: tuple[Transaction, ...] = ()
    stock: tuple[StockEntry, ...] = ()
    pings: tuple[StaffPing, ...] = ()
    app_settings: Optional[AppSettings] = None
    fetched_at: int = 0

    def table(self, table_id: str) -> Optional[Table]:
        for table in self.tables:
            if table.id == table_id:
                return table
        return None


# Snapshot field -> (table, order clause, record model)
COLLECTIONS = {
    "staff": (TableName.STAFF.value, None, StaffMember),
    "tables": (TableName.TABLES.value, "ORDER BY number", Table),
    "menu": (TableName.MENU_ITEMS.value, None, MenuItem),
    "orders": (TableName.ORDERS.value, "ORDER BY timestamp DESC", Order),
    "transactions": (TableName.TRANSACTIONS.value, "ORDER BY timestamp DESC", Transaction),
    "stock": (TableName.STOCK_ENTRIES.value, "ORDER BY purchase_date DESC", StockEntry),
    "pings": (TableName.STAFF_PINGS.value, None, StaffPing),
}


class SyncLoop:
    """
    Fixed-interval poller owning the session's snapshot.

    Attributes:
        gateway: Data access used for every read
        user: Signed-in staff member, target of ready/ping notifications
        feed: Where user-visible events are reported
        interval: Seconds between ticks
        snapshot: Latest published snapshot
    """

    def __init__(
        self,
        gateway: DataGateway,
        user: Optional[StaffMember] = None,
        feed: Optional[NotificationFeed] = None,
        interval: Optional[float] = None,
        on_snapshot: Optional[Callable[[Snapshot], None]] = None,
    ):
        settings = get_settings()
        self.gateway = gateway
        self.user = user
        # An empty feed is falsy (it defines __len__)
        self.feed = feed if feed is not None else NotificationFeed(settings.notification_capacity)
        self.interval = settings.poll_interval_seconds if interval is None else interval
        self.on_snapshot = on_snapshot
        self.snapshot = Snapshot()
        self._seen_pings: set[str] = set()
        self._task: Optional[asyncio.Task] = None

    # =========================================================================
    # FETCHING
    # =========================================================================

    async def _fetch_collection(self, name: str) -> tuple:
        table, order_clause, model = COLLECTIONS[name]
        rows = await self.gateway.from_(table).select(order_clause)
        return tuple(model.model_validate(row) for row in rows)

    async def _fetch_app_settings(self) -> Optional[AppSettings]:
        row = await self.gateway.from_(TableName.APP_SETTINGS.value).maybe_single(
            Predicate.by_id(get_settings().settings_id)
        )
        return AppSettings.model_validate(row) if row else None

    async def refresh(self) -> Snapshot:
        """Run one poll tick and publish the resulting snapshot."""
        names = [*COLLECTIONS, "app_settings"]
        results = await asyncio.gather(
            *(self._fetch_collection(name) for name in COLLECTIONS),
            self._fetch_app_settings(),
            return_exceptions=True,
        )

        updates: dict[str, Any] = {}
        for name, result in zip(names, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                logger.warning(f"Poll of {name} failed: {result}")
                continue
            if result is None:
                continue
            updates[name] = result

        previous = self.snapshot
        current = replace(previous, **updates, fetched_at=now_ms())
        self.snapshot = current

        logger.debug(
            f"Poll tick: {len(updates)}/{len(names)} collections refreshed "
            f"({self.gateway.mode} mode)"
        )

        self._detect_events(previous, current)
        if self.on_snapshot is not None:
            self.on_snapshot(current)
        return current

    # =========================================================================
    # CHANGE DETECTION
    # =========================================================================

    def _detect_events(self, previous: Snapshot, current: Snapshot) -> None:
        if self.user is None:
            return

        if previous.fetched_at:
            before = {t.id: t.status for t in previous.tables}
            for table in current.tables:
                turned_ready = (
                    table.status == TableStatus.READY.value
                    and table.id in before
                    and before[table.id] != TableStatus.READY.value
                )
                if turned_ready and table.waitress_name == self.user.name:
                    self.feed.notify(f"Order ready for Table {table.number}")

        for ping in fresh_pings(list(current.pings), self.user.name, now=current.fetched_at):
            if ping.id in self._seen_pings:
                continue
            self._seen_pings.add(ping.id)
            self.feed.notify(f"Table {ping.table_number} needs you (from {ping.sender_name})")

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.refresh()
            except Exception as e:
                logger.warning(f"Poll tick failed: {e}")

    async def start(self) -> Snapshot:
        """Load once, then keep polling in the background."""
        if self.running:
            return self.snapshot
        snapshot = await self.refresh()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Sync loop started (every {self.interval}s)")
        return snapshot

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Sync loop stopped")

    async def __aenter__(self) -> "SyncLoop":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
