"""
Customer Records

Customers are keyed by phone: registering a phone that already exists
updates that record in place instead of creating a duplicate.
"""

import logging
from typing import Optional

from gustoflow.db import DataGateway
from gustoflow.schemas import Customer, TableName
from gustoflow.services.errors import ValidationError
from gustoflow.services.store import Predicate
from gustoflow.services.utils import now_ms

logger = logging.getLogger(__name__)


async def list_customers(gateway: DataGateway) -> list[Customer]:
    rows = await gateway.from_(TableName.CUSTOMERS.value).select("ORDER BY created_at DESC")
    return [Customer.model_validate(row) for row in rows]


async def register_customer(
    gateway: DataGateway,
    name: str,
    phone: str,
    id_number: Optional[str] = None,
) -> Customer:
    """
    Insert or update a customer by phone.

    Raises:
        ValidationError: empty name or phone
    """
    name = (name or "").strip()
    phone = (phone or "").strip()
    if not name or not phone:
        raise ValidationError("Name and phone are required")

    customers = gateway.from_(TableName.CUSTOMERS.value)
    existing = await customers.maybe_single(Predicate.by_phone(phone))
    visited = now_ms()

    if existing:
        patch = {"name": name, "id_number": id_number or None, "last_visit": visited}
        await customers.update(patch).eq("phone", phone)
        logger.info(f"Customer {phone} updated")
        return Customer.model_validate({**existing, **patch})

    customer = Customer(
        phone=phone,
        name=name,
        id_number=id_number or None,
        created_at=visited,
        last_visit=visited,
    )
    await customers.insert([customer])
    logger.info(f"Customer {phone} registered")
    return customer


def search_customers(customers: list[Customer], query: str) -> list[Customer]:
    """Match name or id number case-insensitively, phone by substring."""
    q = (query or "").strip().lower()
    if not q:
        return list(customers)
    return [
        c for c in customers
        if q in c.name.lower()
        or q in c.phone
        or (c.id_number and q in c.id_number.lower())
    ]
