"""
Menu management. Availability and display code change independently;
names and prices come from the seed data.
"""

import logging
from typing import Optional

from gustoflow.db import DataGateway
from gustoflow.schemas import MenuItem, TableName

logger = logging.getLogger(__name__)


async def set_availability(gateway: DataGateway, item: MenuItem, available: bool) -> MenuItem:
    await gateway.from_(TableName.MENU_ITEMS.value).update(
        {"is_available": bool(available)}
    ).eq("id", item.id)
    logger.info(f"{item.name} is now {'available' if available else 'unavailable'}")
    return item.model_copy(update={"is_available": bool(available)})


async def set_item_code(gateway: DataGateway, item: MenuItem, code: Optional[str]) -> MenuItem:
    code = (code or "").strip() or None
    await gateway.from_(TableName.MENU_ITEMS.value).update({"item_number": code}).eq("id", item.id)
    return item.model_copy(update={"item_number": code})


def menu_by_category(menu: list[MenuItem], only_available: bool = True) -> dict[str, list[MenuItem]]:
    grouped: dict[str, list[MenuItem]] = {}
    for item in menu:
        if only_available and not item.is_available:
            continue
        grouped.setdefault(item.category, []).append(item)
    return grouped
