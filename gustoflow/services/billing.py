"""
Billing and Cash Book

Finalizing a payment appends an ``IN`` ledger entry for the taxed amount,
marks the order Paid and frees its table. Expenses append ``OUT`` entries.
The ledger is append-only.
"""

import logging
from typing import Optional

from gustoflow.core.config import get_settings
from gustoflow.db import DataGateway
from gustoflow.schemas import (
    Order,
    OrderStatus,
    TableName,
    TableStatus,
    Transaction,
    TransactionType,
)
from gustoflow.services.errors import ValidationError
from gustoflow.services.orders import set_table_status
from gustoflow.services.utils import new_id, now_ms

logger = logging.getLogger(__name__)


def billable_orders(orders: list[Order]) -> list[Order]:
    """Orders the cashier can settle."""
    return [
        o for o in orders
        if o.status in (OrderStatus.READY.value, OrderStatus.SERVED.value)
    ]


def tax_for(total: float, tax_rate: Optional[float] = None) -> float:
    rate = get_settings().tax_rate if tax_rate is None else tax_rate
    return round(total * rate, 2)


def amount_due(total: float, tax_rate: Optional[float] = None) -> float:
    """Order total with tax applied."""
    rate = get_settings().tax_rate if tax_rate is None else tax_rate
    return round(total * (1 + rate), 2)


async def finalize_payment(
    gateway: DataGateway,
    order: Order,
    tax_rate: Optional[float] = None,
) -> Transaction:
    """
    Settle an order.

    Records the taxed amount as a Sales transaction, marks the order Paid
    and returns its table to Available with no assigned staff.

    Raises:
        ValidationError: the order is already paid
    """
    if order.status == OrderStatus.PAID.value:
        raise ValidationError(f"Order {order.id} is already paid")

    transaction = Transaction(
        id=new_id(),
        type=TransactionType.IN,
        amount=amount_due(order.total, tax_rate),
        description=f"Payment for Table {order.table_number}",
        timestamp=now_ms(),
        category="Sales",
    )

    await gateway.from_(TableName.TRANSACTIONS.value).insert([transaction])
    await gateway.from_(TableName.ORDERS.value).update(
        {"status": OrderStatus.PAID.value}
    ).eq("id", order.id)
    await set_table_status(gateway, order.table_id, TableStatus.AVAILABLE, waitress_name=None)

    logger.info(f"Payment of {transaction.amount:.2f} received for Table {order.table_number}")
    return transaction


async def add_expense(gateway: DataGateway, amount: float, description: str) -> Transaction:
    """
    Record money going out of the till.

    Raises:
        ValidationError: non-positive amount or empty description
    """
    if amount is None or amount <= 0:
        raise ValidationError("Expense amount must be greater than 0")
    if not description or not description.strip():
        raise ValidationError("Expense description is required")

    transaction = Transaction(
        id=new_id(),
        type=TransactionType.OUT,
        amount=round(amount, 2),
        description=description.strip(),
        timestamp=now_ms(),
        category="Expense",
    )
    await gateway.from_(TableName.TRANSACTIONS.value).insert([transaction])

    logger.info(f"Expense recorded: {transaction.description} ({transaction.amount:.2f})")
    return transaction
