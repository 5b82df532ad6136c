"""
Gateway Action Dispatcher

Stateless request → translate → execute → respond. Each tagged action is
mapped onto one parameterized SQL statement. All values travel as bound
parameters; table and column names are interpolated, so they are checked to
be plain identifiers first.

Wire contract (body of ``POST /api``):
    SELECT_ALL     table, query?          -> list of rows
    SELECT_SINGLE  table, query, params   -> row or null
    INSERT         table, data            -> {"success": true}
    UPDATE         table, data, id, column?  -> {"success": true}
    DELETE         table, id, column?     -> {"success": true}
    EXECUTE        sql                    -> {"success": true}
    CHECK_BINDING                         -> {"success": true, "binding": true}
"""

import json
import logging
import re
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from gustoflow.schemas import Action, GatewayRequest

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class BindingError(Exception):
    """No database is bound to the gateway."""

    def __init__(self, message: str = "Database binding 'DB' is not configured"):
        super().__init__(message)


class InvalidActionError(Exception):
    """The request named an action the gateway does not know."""

    def __init__(self, action: Any):
        super().__init__("Invalid action")
        self.action = action


def _identifier(name: Optional[str], kind: str) -> str:
    if not name or not IDENTIFIER_PATTERN.match(name):
        raise ValueError(f"Invalid {kind} name: {name!r}")
    return name


def _bind_value(value: Any) -> Any:
    """Objects and arrays are stored as JSON text."""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def _escape_colons(fragment: str) -> str:
    """Keep ``text()`` from reading ``:word`` in caller SQL as a bind parameter."""
    return fragment.replace(":", "\\:")


def _bind_positional(fragment: str, params: list[Any]) -> tuple[str, dict[str, Any]]:
    """
    Rewrite ``?`` placeholders in a predicate fragment to named binds.

    Raises:
        ValueError: placeholder count and parameter count disagree
    """
    pieces = fragment.split("?")
    if len(pieces) - 1 != len(params):
        raise ValueError(
            f"Predicate has {len(pieces) - 1} placeholders but {len(params)} params were given"
        )

    sql = _escape_colons(pieces[0])
    bound = {}
    for index, piece in enumerate(pieces[1:]):
        name = f"p{index}"
        sql += f":{name}{_escape_colons(piece)}"
        bound[name] = _bind_value(params[index])
    return sql, bound


class GatewayDispatcher:
    """
    Translates one gateway request into SQL against the bound session.

    Example:
        >>> dispatcher = GatewayDispatcher(session)
        >>> await dispatcher.handle(GatewayRequest(action="SELECT_ALL", table="tables"))
        [{'id': 't-1', 'number': 1, 'status': 'Available', ...}, ...]
    """

    def __init__(self, session: Optional[AsyncSession]):
        self.session = session

    def _require_session(self) -> AsyncSession:
        if self.session is None:
            raise BindingError()
        return self.session

    async def handle(self, request: GatewayRequest) -> Any:
        try:
            action = Action(request.action)
        except ValueError:
            raise InvalidActionError(request.action)

        session = self._require_session()
        logger.debug(f"Gateway {action.value} on {request.table}")

        if action is Action.CHECK_BINDING:
            await session.execute(text("SELECT 1"))
            return {"success": True, "binding": True}

        if action is Action.EXECUTE:
            if not request.sql:
                raise ValueError("EXECUTE requires sql")
            return await self._execute_raw(session, request.sql)

        table = _identifier(request.table, "table")

        if action is Action.SELECT_ALL:
            # Order clause is appended verbatim; its colons are literal, not binds
            clause = _escape_colons(request.query or "")
            sql = f"SELECT * FROM {table} {clause}".strip()
            result = await session.execute(text(sql))
            return [dict(row) for row in result.mappings().all()]

        if action is Action.SELECT_SINGLE:
            if not request.query:
                raise ValueError("SELECT_SINGLE requires a query")
            fragment, bound = _bind_positional(request.query, request.params or [])
            result = await session.execute(
                text(f"SELECT * FROM {table} WHERE {fragment} LIMIT 1"), bound
            )
            row = result.mappings().first()
            return dict(row) if row is not None else None

        if action is Action.INSERT:
            data = request.data or {}
            if not data:
                raise ValueError("INSERT requires data")
            columns = [_identifier(key, "column") for key in data]
            placeholders = ", ".join(f":{column}" for column in columns)
            sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
            return await self._mutate(
                session, sql, {key: _bind_value(value) for key, value in data.items()}
            )

        key_column = _identifier(request.column, "column")

        if action is Action.UPDATE:
            data = request.data or {}
            if not data:
                raise ValueError("UPDATE requires data")
            assignments = ", ".join(
                f"{_identifier(key, 'column')} = :set_{key}" for key in data
            )
            bound = {f"set_{key}": _bind_value(value) for key, value in data.items()}
            bound["match_key"] = request.id
            sql = f"UPDATE {table} SET {assignments} WHERE {key_column} = :match_key"
            return await self._mutate(session, sql, bound)

        # Action.DELETE
        sql = f"DELETE FROM {table} WHERE {key_column} = :match_key"
        return await self._mutate(session, sql, {"match_key": request.id})

    async def _execute_raw(self, session: AsyncSession, sql: str) -> dict:
        """Run caller SQL as-is on the driver, with no bind parameter parsing."""
        try:
            connection = await session.connection()
            await connection.exec_driver_sql(sql)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        return {"success": True}

    async def _mutate(self, session: AsyncSession, sql: str, bound: dict[str, Any]) -> dict:
        try:
            await session.execute(text(sql), bound)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        return {"success": True}
