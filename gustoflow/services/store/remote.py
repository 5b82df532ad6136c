"""
Remote Store Implementation

Client for the ``POST /api`` gateway. Every call is one request carrying
``{action, table, ...options}``. Transport failures and non-2xx responses
raise ``GatewayError``; deciding what to do about it is the caller's job.
"""

import logging
from typing import Any, Optional

import httpx

from gustoflow.schemas import Action
from gustoflow.services.store.base import BaseStore, GatewayError, Predicate

logger = logging.getLogger(__name__)


class RemoteStore(BaseStore):
    """
    httpx-based gateway client.

    Attributes:
        url: Full URL of the gateway endpoint
        timeout: Per-request timeout in seconds

    Example:
        >>> store = RemoteStore("http://localhost:8001/api")
        >>> await store.select_all("tables", "ORDER BY number")
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "remote"

    async def query(self, action: Action, table: Optional[str], **options: Any) -> Any:
        """
        Send one gateway request.

        Raises:
            GatewayError: network failure or non-2xx response
        """
        body = {"action": action.value, "table": table, **options}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=body)
        except httpx.HTTPError as e:
            raise GatewayError(f"Gateway unreachable: {e}") from e

        if not response.is_success:
            message = response.text or f"Server error: {response.status_code}"
            raise GatewayError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise GatewayError(f"Invalid JSON from gateway: {e}", response.status_code) from e

    async def select_all(self, table: str, order_clause: Optional[str] = None) -> list[dict]:
        return await self.query(Action.SELECT_ALL, table, query=order_clause)

    async def select_single(self, table: str, predicate: Predicate) -> Optional[dict]:
        fragment, params = predicate.to_sql()
        return await self.query(Action.SELECT_SINGLE, table, query=fragment, params=params)

    async def insert(self, table: str, record: dict[str, Any]) -> dict:
        return await self.query(Action.INSERT, table, data=record)

    async def update(self, table: str, patch: dict[str, Any], column: str, key: Any) -> dict:
        return await self.query(Action.UPDATE, table, data=patch, id=key, column=column)

    async def delete(self, table: str, column: str, key: Any) -> dict:
        return await self.query(Action.DELETE, table, id=key, column=column)

    async def execute(self, sql: str) -> dict:
        return await self.query(Action.EXECUTE, None, sql=sql)

    async def check_binding(self) -> dict:
        return await self.query(Action.CHECK_BINDING, None)
