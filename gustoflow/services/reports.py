"""
Dashboard aggregates computed from a snapshot.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from gustoflow.schemas import MenuItem, Order, OrderStatus, Transaction, TransactionType


@dataclass
class OwnerSummary:
    total_revenue: float
    total_expenses: float
    net: float
    order_count: int
    top_items: list[tuple[str, int]] = field(default_factory=list)
    recent_sales: list[tuple[int, float]] = field(default_factory=list)


@dataclass
class StaffSummary:
    revenue: float
    count: int
    paid: int


def owner_summary(
    orders: list[Order],
    transactions: list[Transaction],
    menu: list[MenuItem],
    top: int = 5,
    recent: int = 10,
) -> OwnerSummary:
    """Revenue, expenses, item popularity and the latest sales."""
    income = [t for t in transactions if t.type == TransactionType.IN.value]
    revenue = round(sum(t.amount for t in income), 2)
    expenses = round(
        sum(t.amount for t in transactions if t.type == TransactionType.OUT.value), 2
    )

    popularity = []
    for item in menu:
        count = sum(
            line.quantity
            for order in orders
            for line in order.items
            if line.menuItemId == item.id
        )
        popularity.append((item.name, count))
    popularity.sort(key=lambda pair: pair[1], reverse=True)

    sales = sorted(income, key=lambda t: t.timestamp)[-recent:]

    return OwnerSummary(
        total_revenue=revenue,
        total_expenses=expenses,
        net=round(revenue - expenses, 2),
        order_count=len(orders),
        top_items=popularity[:top],
        recent_sales=[(t.timestamp, t.amount) for t in sales],
    )


def staff_summary(
    orders: list[Order],
    staff_name: str,
    start: datetime,
    end: Optional[datetime] = None,
) -> StaffSummary:
    """
    Orders handled by one staff member between ``start`` and the end of the
    ``end`` day (inclusive).
    """
    end = end or start
    start_ms = int(start.timestamp() * 1000)
    end_ms = int((end + timedelta(days=1)).timestamp() * 1000)

    mine = [
        o for o in orders
        if o.waitress_name == staff_name and start_ms <= o.timestamp < end_ms
    ]
    return StaffSummary(
        revenue=round(sum(o.total for o in mine), 2),
        count=len(mine),
        paid=sum(1 for o in mine if o.status == OrderStatus.PAID.value),
    )
