"""
Data Gateway

Per-table query builder used by every domain operation:

    gateway.from_("tables").select("ORDER BY number")
    gateway.from_("staff").maybe_single(Predicate.by_username("chef"))
    gateway.from_("orders").insert([order])
    gateway.from_("orders").update({"status": "Served"}).eq("id", order.id)
    gateway.from_("customers").delete().eq("phone", "555-1234")

Each call tries the remote gateway first. On any ``GatewayError`` the same
call is replayed on the local fallback store and a warning is logged. There
is no retry and no circuit breaker: the next call tries remote again.
"""

import logging
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from gustoflow.schemas import Record
from gustoflow.services.store import (
    BaseStore,
    GatewayError,
    Predicate,
    get_local_store,
    get_remote_store,
)

logger = logging.getLogger(__name__)

Row = Union[Record, dict[str, Any]]

# Store methods whose first argument is a table name
TABLE_METHODS = ("select_all", "select_single", "insert", "update", "delete")


def _as_row(record: Row) -> dict[str, Any]:
    if isinstance(record, Record):
        return record.to_row()
    return dict(record)


class KeyScope:
    """Pending update/delete waiting for its ``eq(column, value)`` scope."""

    def __init__(self, run: Callable[[str, Any], Awaitable[dict]]):
        self._run = run

    async def eq(self, column: str, value: Any) -> dict:
        return await self._run(column, value)


class TableQuery:
    """Operations bound to one logical table."""

    def __init__(self, gateway: "DataGateway", table: str):
        self.gateway = gateway
        self.table = table

    async def select(self, order_clause: Optional[str] = None) -> list[dict]:
        return await self.gateway.dispatch("select_all", self.table, order_clause)

    async def maybe_single(self, predicate: Predicate) -> Optional[dict]:
        return await self.gateway.dispatch("select_single", self.table, predicate)

    async def insert(self, records: Iterable[Row]) -> dict:
        """
        Persist records one at a time.

        Not atomic: if a record fails, the ones before it stay committed and
        the error propagates.
        """
        count = 0
        for record in records:
            await self.gateway.dispatch("insert", self.table, _as_row(record))
            count += 1
        logger.debug(f"Inserted {count} record(s) into {self.table}")
        return {"success": True}

    def update(self, patch: Row) -> KeyScope:
        data = _as_row(patch)

        async def run(column: str, value: Any) -> dict:
            return await self.gateway.dispatch("update", self.table, data, column, value)

        return KeyScope(run)

    def delete(self) -> KeyScope:
        async def run(column: str, value: Any) -> dict:
            return await self.gateway.dispatch("delete", self.table, column, value)

        return KeyScope(run)


class DataGateway:
    """
    Remote-first data access with per-call local fallback.

    Attributes:
        remote: Gateway client, None to run on the local store only
        local: Fallback store
        online: Whether the most recent remote attempt succeeded
    """

    def __init__(self, remote: Optional[BaseStore], local: BaseStore):
        self.remote = remote
        self.local = local
        self.online = remote is not None

    @property
    def mode(self) -> str:
        return "remote" if self.remote is not None and self.online else "local"

    async def dispatch(self, method: str, *args: Any) -> Any:
        if self.remote is not None:
            try:
                result = await getattr(self.remote, method)(*args)
                self.online = True
                return result
            except GatewayError as e:
                self.online = False
                table = args[0] if method in TABLE_METHODS else None
                logger.warning(
                    f"Gateway {method} on {table} failed ({e.message}); "
                    f"using local fallback store"
                )
        return await getattr(self.local, method)(*args)

    def from_(self, table: str) -> TableQuery:
        return TableQuery(self, table)

    async def execute(self, sql: str) -> dict:
        return await self.dispatch("execute", sql)

    async def check_connection(self) -> dict:
        """
        Probe the database binding.

        Unlike data calls this does not fall back: a configuration failure is
        raised as ``GatewayError`` so it can be shown to the user verbatim.
        """
        if self.remote is None:
            return await self.local.check_binding()
        try:
            result = await self.remote.check_binding()
        except GatewayError:
            self.online = False
            raise
        self.online = True
        return result


def get_data_gateway() -> DataGateway:
    """Build a gateway from the configured stores."""
    return DataGateway(get_remote_store(), get_local_store())
