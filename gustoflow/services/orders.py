"""
Order Entry and Kitchen Ticketing

Waitress side: build a cart, submit it as a ticket for a table, mark it
served, mark the table done. Kitchen side: move line items through
Pending → Cooking → Completed, which drives the order and table status.

Status rules:
    - an item starting to cook while the order is Pending moves the order
      (and its table) to Cooking
    - the order (and its table) becomes Ready only once every line item is
      Completed

Every mutation is persisted through the ``DataGateway``; the caller sees it
in the shared snapshot on the next poll tick.
"""

import logging
from typing import Optional

from gustoflow.db import DataGateway
from gustoflow.schemas import (
    ItemStatus,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    Table,
    TableName,
    TableStatus,
)
from gustoflow.services.errors import NotFoundError, ValidationError
from gustoflow.services.utils import new_id, now_ms

logger = logging.getLogger(__name__)

_UNSET = object()


# =============================================================================
# CART
# =============================================================================

def add_to_cart(cart: list[OrderItem], item: MenuItem) -> list[OrderItem]:
    """Add one unit of a menu item, incrementing an existing line."""
    if not item.is_available:
        raise ValidationError(f"{item.name} is not available")

    if any(line.menuItemId == item.id for line in cart):
        return [
            line.model_copy(update={"quantity": line.quantity + 1}) if line.menuItemId == item.id else line
            for line in cart
        ]
    return [*cart, OrderItem(menuItemId=item.id, name=item.name, quantity=1, price=item.price)]


def remove_from_cart(cart: list[OrderItem], menu_item_id: str) -> list[OrderItem]:
    """Remove one unit; the line disappears when its quantity reaches zero."""
    result = []
    for line in cart:
        if line.menuItemId != menu_item_id:
            result.append(line)
        elif line.quantity > 1:
            result.append(line.model_copy(update={"quantity": line.quantity - 1}))
    return result


def cart_total(cart: list[OrderItem]) -> float:
    return round(sum(line.price * line.quantity for line in cart), 2)


# =============================================================================
# TABLE STATUS
# =============================================================================

async def set_table_status(
    gateway: DataGateway,
    table_id: str,
    status: TableStatus,
    waitress_name=_UNSET,
) -> None:
    patch = {"status": TableStatus(status).value}
    if waitress_name is not _UNSET:
        patch["waitress_name"] = waitress_name
    await gateway.from_(TableName.TABLES.value).update(patch).eq("id", table_id)
    logger.debug(f"Table {table_id} -> {patch}")


# =============================================================================
# WAITRESS OPERATIONS
# =============================================================================

async def submit_order(
    gateway: DataGateway,
    table: Table,
    cart: list[OrderItem],
    staff_name: Optional[str] = None,
) -> Order:
    """
    Send a cart to the kitchen for a table.

    Raises:
        ValidationError: empty cart or table not available
    """
    if not cart:
        raise ValidationError("Cannot submit an empty order")
    if table.status != TableStatus.AVAILABLE.value:
        raise ValidationError(f"Table {table.number} is not available")

    order = Order(
        id=new_id(),
        table_id=table.id,
        table_number=table.number,
        items=[line.model_copy(update={"status": ItemStatus.PENDING.value}) for line in cart],
        status=OrderStatus.PENDING,
        timestamp=now_ms(),
        total=cart_total(cart),
        waitress_name=staff_name,
    )

    await gateway.from_(TableName.ORDERS.value).insert([order])
    await set_table_status(gateway, table.id, TableStatus.ORDERING, waitress_name=staff_name)

    logger.info(f"Order {order.id} sent for Table {table.number} ({len(cart)} lines, {order.total:.2f})")
    return order


async def mark_served(gateway: DataGateway, order: Order) -> Order:
    served = order.model_copy(update={"status": OrderStatus.SERVED.value})
    await gateway.from_(TableName.ORDERS.value).update(
        {"status": OrderStatus.SERVED.value}
    ).eq("id", order.id)
    await set_table_status(gateway, order.table_id, TableStatus.SERVED)
    logger.info(f"Table {order.table_number} served")
    return served


async def mark_done(gateway: DataGateway, order: Order) -> None:
    """Table finished eating; ready for billing."""
    await set_table_status(gateway, order.table_id, TableStatus.COMPLETED)
    logger.info(f"Table {order.table_number} completed, ready for billing")


# =============================================================================
# KITCHEN OPERATIONS
# =============================================================================

def kitchen_queue(orders: list[Order]) -> list[Order]:
    """Orders the kitchen still has to work on, oldest first."""
    active = [
        o for o in orders
        if o.status in (OrderStatus.PENDING.value, OrderStatus.COOKING.value)
    ]
    return sorted(active, key=lambda o: o.timestamp)


def apply_item_status(order: Order, menu_item_id: str, status: ItemStatus) -> Order:
    """
    Return a copy of ``order`` with one line item moved to ``status`` and
    the overall order status recomputed.

    Raises:
        NotFoundError: no line for ``menu_item_id``
    """
    status = ItemStatus(status)
    if not any(line.menuItemId == menu_item_id for line in order.items):
        raise NotFoundError(f"Order {order.id} has no item {menu_item_id}")

    items = [
        line.model_copy(update={"status": status.value}) if line.menuItemId == menu_item_id else line
        for line in order.items
    ]

    new_status = OrderStatus(order.status)
    if status is ItemStatus.COOKING and new_status is OrderStatus.PENDING:
        new_status = OrderStatus.COOKING
    if all(line.status == ItemStatus.COMPLETED.value for line in items):
        new_status = OrderStatus.READY

    return order.model_copy(update={"items": items, "status": new_status.value})


async def update_item_status(
    gateway: DataGateway,
    order: Order,
    menu_item_id: str,
    status: ItemStatus,
) -> Order:
    """Persist a line item change and any resulting order/table transition."""
    updated = apply_item_status(order, menu_item_id, status)

    await gateway.from_(TableName.ORDERS.value).update(
        {
            "items": [line.to_row() for line in updated.items],
            "status": updated.status,
        }
    ).eq("id", order.id)

    if updated.status != order.status:
        if updated.status == OrderStatus.COOKING.value:
            await set_table_status(gateway, order.table_id, TableStatus.COOKING)
        elif updated.status == OrderStatus.READY.value:
            await set_table_status(gateway, order.table_id, TableStatus.READY)
        logger.info(f"Order {order.id} {order.status} -> {updated.status}")

    return updated


def find_order(orders: list[Order], order_id: str) -> Order:
    for order in orders:
        if order.id == order_id:
            return order
    raise NotFoundError(f"Order {order_id} not found")


def active_order_for_table(orders: list[Order], table_id: str) -> Optional[Order]:
    """Most recent unpaid order on a table."""
    candidates = [
        o for o in orders
        if o.table_id == table_id and o.status != OrderStatus.PAID.value
    ]
    return max(candidates, key=lambda o: o.timestamp, default=None)
