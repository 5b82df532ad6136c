"""
Stock purchases. Entries are append-only; nothing consumes them.
"""

import logging
from typing import Optional

from gustoflow.db import DataGateway
from gustoflow.schemas import StockEntry, TableName
from gustoflow.services.errors import ValidationError
from gustoflow.services.utils import new_id, now_ms

logger = logging.getLogger(__name__)


async def record_purchase(
    gateway: DataGateway,
    item_name: str,
    quantity: float,
    purchase_date: Optional[int] = None,
) -> StockEntry:
    """
    Raises:
        ValidationError: empty item name or non-positive quantity
    """
    if not item_name or not item_name.strip():
        raise ValidationError("Item name is required")
    if quantity is None or quantity <= 0:
        raise ValidationError("Quantity must be greater than 0")

    entry = StockEntry(
        id=new_id(),
        item_name=item_name.strip(),
        quantity=quantity,
        purchase_date=now_ms() if purchase_date is None else purchase_date,
    )
    await gateway.from_(TableName.STOCK_ENTRIES.value).insert([entry])
    logger.info(f"Stock purchase recorded: {entry.quantity} x {entry.item_name}")
    return entry


def stock_totals(entries: list[StockEntry]) -> dict[str, float]:
    """Total purchased quantity per item name."""
    totals: dict[str, float] = {}
    for entry in entries:
        totals[entry.item_name] = totals.get(entry.item_name, 0) + entry.quantity
    return totals
