"""
Local Preference Store

Explicit keyed store for per-device preferences that never go through the
gateway: the last-known app settings and, per staff username, the table ids
hidden from that user's floor view.

Lifecycle per key: initialize-if-absent, read on load, write on change.

Methods block on the file lock; coroutines call them through
``asyncio.to_thread``.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock

from gustoflow.core.config import get_settings

logger = logging.getLogger(__name__)

SETTINGS_KEY = "gusto_app_settings"
HIDDEN_TABLES_KEY = "gusto_hidden_tables_{username}"


class PreferenceStore:
    """One JSON file per key under ``directory``."""

    def __init__(self, directory: Path, lock_timeout: int = 30):
        self.directory = Path(directory)
        self.lock_timeout = lock_timeout
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def _lock(self, key: str) -> FileLock:
        return FileLock(str(self._path(key)) + ".lock", timeout=self.lock_timeout)

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable preference {key}: {e}")
            return default

    def set(self, key: str, value: Any) -> None:
        with self._lock(key):
            self._path(key).write_text(json.dumps(value), encoding="utf-8")

    def initialize(self, key: str, value: Any) -> Any:
        """Write ``value`` only if the key is absent; return the stored value."""
        with self._lock(key):
            path = self._path(key)
            if not path.exists():
                path.write_text(json.dumps(value), encoding="utf-8")
                return value
        return self.get(key, value)

    # =========================================================================
    # TYPED HELPERS
    # =========================================================================

    def cached_settings(self) -> Optional[dict]:
        return self.get(SETTINGS_KEY)

    def cache_settings(self, settings: dict) -> None:
        self.set(SETTINGS_KEY, settings)

    def hidden_tables(self, username: str) -> list[str]:
        return list(self.get(HIDDEN_TABLES_KEY.format(username=username.lower()), []))

    def toggle_hidden_table(self, username: str, table_id: str) -> list[str]:
        """Hide a visible table or show a hidden one; returns the new list."""
        key = HIDDEN_TABLES_KEY.format(username=username.lower())
        hidden = self.hidden_tables(username)
        if table_id in hidden:
            hidden.remove(table_id)
        else:
            hidden.append(table_id)
        self.set(key, hidden)
        return hidden


@lru_cache()
def get_preference_store() -> PreferenceStore:
    settings = get_settings()
    return PreferenceStore(
        Path(settings.fallback_directory) / "preferences",
        lock_timeout=settings.fallback_lock_timeout,
    )
