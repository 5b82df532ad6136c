"""
Staff Accounts, Login and Pings

A ping is a fire-and-forget record asking a colleague to come to a table.
It is only shown while it is fresher than ``ping_freshness_seconds``.
"""

import logging
from typing import Optional

from gustoflow.constants import LOGIN_HINT
from gustoflow.core.config import get_settings
from gustoflow.db import DataGateway
from gustoflow.schemas import StaffMember, StaffPing, TableName, UserRole
from gustoflow.services.errors import AuthenticationError, ValidationError
from gustoflow.services.store import Predicate
from gustoflow.services.utils import new_id, now_ms

logger = logging.getLogger(__name__)


async def authenticate(gateway: DataGateway, username: str, password: str) -> StaffMember:
    """
    Resolve a login to a staff member.

    Raises:
        ValidationError: empty username or password shorter than the minimum
        AuthenticationError: unknown username
    """
    settings = get_settings()
    if not username or not username.strip():
        raise ValidationError("Username is required")
    if len(password or "") < settings.min_password_length:
        raise ValidationError(
            f"Password must be at least {settings.min_password_length} characters"
        )

    row = await gateway.from_(TableName.STAFF.value).maybe_single(Predicate.by_username(username))
    if row is None:
        logger.info(f"Failed login for {username.strip().lower()!r}")
        raise AuthenticationError(LOGIN_HINT)

    user = StaffMember.model_validate(row)
    logger.info(f"{user.name} logged in as {user.role}")
    return user


async def add_staff(gateway: DataGateway, name: str, username: str, role: UserRole) -> StaffMember:
    """
    Raises:
        ValidationError: missing fields or username already taken
    """
    if not name or not name.strip() or not username or not username.strip():
        raise ValidationError("Name and username are required")

    staff = gateway.from_(TableName.STAFF.value)
    if await staff.maybe_single(Predicate.by_username(username)) is not None:
        raise ValidationError(f"Username {username.strip().lower()!r} is already taken")

    member = StaffMember(id=new_id(), username=username, role=role, name=name.strip())
    await staff.insert([member])
    logger.info(f"Staff {member.username} added ({member.role})")
    return member


async def remove_staff(gateway: DataGateway, staff_id: str) -> None:
    await gateway.from_(TableName.STAFF.value).delete().eq("id", staff_id)
    logger.info(f"Staff {staff_id} removed")


async def send_ping(
    gateway: DataGateway,
    target_name: str,
    sender_name: str,
    table_number: int,
) -> StaffPing:
    ping = StaffPing(
        id=new_id(),
        target_name=target_name,
        sender_name=sender_name,
        table_number=table_number,
        timestamp=now_ms(),
    )
    await gateway.from_(TableName.STAFF_PINGS.value).insert([ping])
    logger.info(f"{sender_name} pinged {target_name} for Table {table_number}")
    return ping


def fresh_pings(
    pings: list[StaffPing],
    staff_name: str,
    now: Optional[int] = None,
    freshness_seconds: Optional[int] = None,
) -> list[StaffPing]:
    """Pings addressed to ``staff_name`` that are still within the freshness window."""
    now = now_ms() if now is None else now
    window_ms = (
        get_settings().ping_freshness_seconds if freshness_seconds is None else freshness_seconds
    ) * 1000
    return [
        p for p in pings
        if p.target_name == staff_name and 0 <= now - p.timestamp <= window_ms
    ]
