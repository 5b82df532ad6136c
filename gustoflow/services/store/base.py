"""
Store Abstract Base Class

Defines the interface contract shared by the remote gateway client and the
local fallback store. ``DataGateway`` calls a ``RemoteStore`` first and
replays the very same call on a ``LocalStore`` when the remote one fails, so
both must behave the same way from the caller's point of view.

Design Pattern: Strategy Pattern
    - The gateway picks the store per call
    - Tests run the whole client on the local store alone
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


class GatewayError(Exception):
    """
    The remote gateway could not serve a call.

    Attributes:
        message: Error text (response body or transport error)
        status_code: HTTP status, None for transport failures
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class Predicate:
    """
    Structured single-row lookup: ``column = value``.

    Only known key columns are supported. Usernames compare
    case-insensitively, so the value is lowercased on construction and the
    SQL side lowers the column.

    Example:
        >>> Predicate.by_username("Owner").to_sql()
        ('LOWER(username) = ?', ['owner'])
    """
    column: str
    value: Any

    SUPPORTED_COLUMNS = ("id", "phone", "username")

    def __post_init__(self):
        if self.column not in self.SUPPORTED_COLUMNS:
            raise ValueError(
                f"Unsupported lookup column {self.column!r}; "
                f"expected one of {list(self.SUPPORTED_COLUMNS)}"
            )
        if self.column == "username" and isinstance(self.value, str):
            object.__setattr__(self, "value", self.value.strip().lower())

    @classmethod
    def by_id(cls, value: Any) -> "Predicate":
        return cls("id", value)

    @classmethod
    def by_phone(cls, value: str) -> "Predicate":
        return cls("phone", value)

    @classmethod
    def by_username(cls, value: str) -> "Predicate":
        return cls("username", value)

    @property
    def case_insensitive(self) -> bool:
        return self.column == "username"

    def to_sql(self) -> tuple[str, list[Any]]:
        """Render as a ``WHERE`` fragment with positional params."""
        if self.case_insensitive:
            return f"LOWER({self.column}) = ?", [self.value]
        return f"{self.column} = ?", [self.value]

    def matches(self, record: dict[str, Any]) -> bool:
        candidate = record.get(self.column)
        if self.case_insensitive and isinstance(candidate, str):
            candidate = candidate.lower()
        return candidate == self.value


class BaseStore(ABC):
    """
    Abstract base class for data stores.

    Every method takes the logical table name first. Mutations return
    ``{"success": True}`` like the gateway does.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the store name (e.g. "remote", "local")."""
        pass

    @abstractmethod
    async def select_all(self, table: str, order_clause: Optional[str] = None) -> list[dict]:
        """
        Return every row of a table.

        Args:
            table: Logical table name
            order_clause: SQL appended verbatim (e.g. "ORDER BY number")
        """
        pass

    @abstractmethod
    async def select_single(self, table: str, predicate: Predicate) -> Optional[dict]:
        """Return the first row matching the predicate, or None."""
        pass

    @abstractmethod
    async def insert(self, table: str, record: dict[str, Any]) -> dict:
        """Persist one record."""
        pass

    @abstractmethod
    async def update(self, table: str, patch: dict[str, Any], column: str, key: Any) -> dict:
        """Merge ``patch`` into the row whose ``column`` equals ``key``."""
        pass

    @abstractmethod
    async def delete(self, table: str, column: str, key: Any) -> dict:
        """Remove the row(s) whose ``column`` equals ``key``."""
        pass

    @abstractmethod
    async def execute(self, sql: str) -> dict:
        """Run a raw statement (schema setup only)."""
        pass

    @abstractmethod
    async def check_binding(self) -> dict:
        """Report whether the backing database is reachable/configured."""
        pass
