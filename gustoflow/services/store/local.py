"""
Local Fallback Store with File Locking

Emulates the gateway actions on JSON arrays persisted one file per logical
table (``gusto_<table>.json``). Used whenever the remote gateway cannot serve
a call, or on its own when no gateway is configured.

Behavior:
    - SELECT_ALL ignores the order clause
    - SELECT_SINGLE evaluates the structured predicate
    - INSERT appends one record
    - UPDATE merges into the first record whose id or phone equals the key
    - DELETE drops every record whose id or phone equals the key

Every mutation rewrites the whole array under a file lock, so the store is
last-writer-wins between processes. It is a degraded single-user mode.

File access and lock waits run in a worker thread (``asyncio.to_thread``):
a lock held by another process must not stall the event loop.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from filelock import FileLock, Timeout

from gustoflow.constants import seed_rows
from gustoflow.services.store.base import BaseStore, Predicate

logger = logging.getLogger(__name__)

KEY_PREFIX = "gusto_"
KEY_COLUMNS = ("id", "phone")


class LocalStore(BaseStore):
    """
    JSON-file store keyed by table name.

    Tables listed in ``seed`` are written with their default rows the first
    time they are touched, if their file does not exist yet.

    Attributes:
        directory: Folder holding the table files
        lock_timeout: Seconds to wait for a table lock

    Example:
        >>> store = LocalStore(Path("data"))
        >>> await store.insert("customers", {"phone": "555-1234", "name": "A"})
        {'success': True}
    """

    def __init__(
        self,
        directory: Path,
        lock_timeout: int = 30,
        seed: Optional[dict[str, list[dict]]] = None,
    ):
        self.directory = Path(directory)
        self.lock_timeout = lock_timeout
        self._seed_rows = seed_rows() if seed is None else seed
        self._seeded: set[str] = set()
        self._ensure_directory()

        logger.info(f"LocalStore initialized at {self.directory}")

    @property
    def provider_name(self) -> str:
        return "local"

    # =========================================================================
    # FILE HELPERS (blocking, called from a worker thread)
    # =========================================================================

    def _ensure_directory(self) -> None:
        if not self.directory.exists():
            self.directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created fallback directory: {self.directory}")

    def path_for(self, table: str) -> Path:
        return self.directory / f"{KEY_PREFIX}{table}.json"

    def _lock_for(self, table: str) -> FileLock:
        return FileLock(str(self.path_for(table)) + ".lock", timeout=self.lock_timeout)

    def _read(self, table: str) -> list[dict]:
        path = self.path_for(table)
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as fh:
                rows = json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning(f"Error reading {path}: {e}")
            return []
        return rows if isinstance(rows, list) else []

    def _write(self, table: str, rows: list[dict]) -> None:
        # Serialize first: a record that cannot be encoded leaves the file untouched
        payload = json.dumps(rows)
        self.path_for(table).write_text(payload, encoding="utf-8")

    def _seed_locked(self, table: str) -> None:
        """Write default rows for a never-persisted table. Caller holds its lock."""
        if table in self._seeded or table not in self._seed_rows:
            return
        if not self.path_for(table).exists():
            rows = self._seed_rows[table]
            self._write(table, [dict(row) for row in rows])
            logger.debug(f"Seeded {len(rows)} rows into local {table}")
        self._seeded.add(table)

    def _locked(self, table: str, work: Callable[[], Any]) -> Any:
        try:
            with self._lock_for(table):
                self._seed_locked(table)
                return work()
        except Timeout:
            logger.error(f"Lock timeout ({self.lock_timeout}s) on local {table}")
            raise

    def _load(self, table: str) -> list[dict]:
        if table in self._seeded or table not in self._seed_rows:
            return self._read(table)
        return self._locked(table, lambda: self._read(table))

    def _rewrite_sync(self, table: str, change: Callable[[list[dict]], list[dict]]) -> dict:
        def work() -> dict:
            self._write(table, change(self._read(table)))
            return {"success": True}

        return self._locked(table, work)

    async def _rewrite(self, table: str, change: Callable[[list[dict]], list[dict]]) -> dict:
        """Apply ``change`` to the table's rows under its lock and persist."""
        return await asyncio.to_thread(self._rewrite_sync, table, change)

    @staticmethod
    def _matches_key(record: dict[str, Any], key: Any) -> bool:
        return any(
            column in record and record[column] == key
            for column in KEY_COLUMNS
        )

    # =========================================================================
    # ACTIONS
    # =========================================================================

    async def select_all(self, table: str, order_clause: Optional[str] = None) -> list[dict]:
        return await asyncio.to_thread(self._load, table)

    async def select_single(self, table: str, predicate: Predicate) -> Optional[dict]:
        for record in await asyncio.to_thread(self._load, table):
            if predicate.matches(record):
                return record
        return None

    async def insert(self, table: str, record: Any) -> dict:
        if isinstance(record, list):
            if len(record) != 1:
                raise ValueError("LocalStore.insert takes one record at a time")
            record = record[0]

        def append(rows: list[dict]) -> list[dict]:
            rows.append(dict(record))
            return rows

        return await self._rewrite(table, append)

    async def update(self, table: str, patch: dict[str, Any], column: str, key: Any) -> dict:
        def merge_first(rows: list[dict]) -> list[dict]:
            for index, record in enumerate(rows):
                if self._matches_key(record, key):
                    rows[index] = {**record, **patch}
                    break
            return rows

        return await self._rewrite(table, merge_first)

    async def delete(self, table: str, column: str, key: Any) -> dict:
        def drop(rows: list[dict]) -> list[dict]:
            return [record for record in rows if not self._matches_key(record, key)]

        return await self._rewrite(table, drop)

    async def execute(self, sql: str) -> dict:
        # Tables exist implicitly as files
        logger.debug("LocalStore: ignoring raw SQL statement")
        return {"success": True}

    async def check_binding(self) -> dict:
        return {"success": True, "binding": False}

    def clear_all(self) -> None:
        """Delete every table file; seeded tables get their defaults back on next use."""
        for path in self.directory.glob(f"{KEY_PREFIX}*.json*"):
            path.unlink()
        self._seeded.clear()
        logger.info("All local store files cleared")
