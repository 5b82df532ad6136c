"""
Pydantic Schemas for Records, Gateway Requests and Responses

Records mirror the rows of the nine logical tables. They are lenient on the
way in (SQLite hands booleans back as 0/1 and line items as JSON text) and
dump to plain JSON-compatible dicts on the way out.
"""

import json
from enum import Enum
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================

class UserRole(str, Enum):
    OWNER = "OWNER"
    CASHIER = "CASHIER"
    CHEF = "CHEF"
    WAITRESS = "WAITRESS"


class TableStatus(str, Enum):
    """Table lifecycle: Available → Ordering → Cooking → Ready → Served → Completed → Available."""
    AVAILABLE = "Available"
    ORDERING = "Ordering"
    COOKING = "Cooking"
    READY = "Ready"
    SERVED = "Served"
    COMPLETED = "Completed"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    COOKING = "Cooking"
    READY = "Ready"
    SERVED = "Served"
    PAID = "Paid"


class ItemStatus(str, Enum):
    PENDING = "Pending"
    COOKING = "Cooking"
    COMPLETED = "Completed"


class TransactionType(str, Enum):
    IN = "IN"
    OUT = "OUT"


class Action(str, Enum):
    """Tagged actions understood by the gateway."""
    SELECT_ALL = "SELECT_ALL"
    SELECT_SINGLE = "SELECT_SINGLE"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    EXECUTE = "EXECUTE"
    CHECK_BINDING = "CHECK_BINDING"


class TableName(str, Enum):
    STAFF = "staff"
    TABLES = "tables"
    MENU_ITEMS = "menu_items"
    ORDERS = "orders"
    TRANSACTIONS = "transactions"
    STOCK_ENTRIES = "stock_entries"
    CUSTOMERS = "customers"
    STAFF_PINGS = "staff_pings"
    APP_SETTINGS = "app_settings"


# =============================================================================
# RECORDS
# =============================================================================

class Record(BaseModel):
    """Base for all stored rows."""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class StaffMember(Record):
    id: str
    username: str
    role: UserRole
    name: str

    @field_validator("username")
    @classmethod
    def lowercase_username(cls, v: str) -> str:
        return v.strip().lower()


class Table(Record):
    id: str
    number: int
    status: TableStatus = TableStatus.AVAILABLE
    waitress_name: Optional[str] = None


class MenuItem(Record):
    id: str
    item_number: Optional[str] = None
    name: str
    category: str
    price: float = Field(..., ge=0)
    is_available: bool = True
    description: Optional[str] = None


class OrderItem(Record):
    """Single line on a kitchen ticket."""
    menuItemId: str
    name: str
    quantity: int = Field(..., ge=1)
    price: float
    status: ItemStatus = ItemStatus.PENDING

    @property
    def line_total(self) -> float:
        return round(self.quantity * self.price, 2)


class Order(Record):
    id: str
    table_id: str
    table_number: int
    items: List[OrderItem]
    status: OrderStatus = OrderStatus.PENDING
    timestamp: int
    total: float
    waitress_name: Optional[str] = None

    @field_validator("items", mode="before")
    @classmethod
    def decode_items(cls, v: Any) -> Any:
        # Gateway rows carry line items as a JSON string
        if isinstance(v, (str, bytes)):
            return json.loads(v)
        return v


class Transaction(Record):
    id: str
    type: TransactionType
    amount: float
    description: str
    timestamp: int
    category: str


class StockEntry(Record):
    id: str
    item_name: str
    quantity: float
    purchase_date: int


class Customer(Record):
    phone: str
    name: str
    id_number: Optional[str] = None
    created_at: int
    last_visit: Optional[int] = None


class StaffPing(Record):
    id: str
    target_name: str
    sender_name: str
    table_number: int
    timestamp: int


class AppSettings(Record):
    id: str
    name: str
    slogan: Optional[str] = ""
    logo_url: Optional[str] = ""


# =============================================================================
# GATEWAY WIRE SCHEMAS
# =============================================================================

class GatewayRequest(BaseModel):
    """Body of ``POST /api``."""
    model_config = ConfigDict(extra="ignore")

    action: str
    table: Optional[str] = None
    data: Optional[dict[str, Any]] = None
    id: Optional[Any] = None
    column: str = "id"
    query: Optional[str] = None
    params: Optional[List[Any]] = None
    sql: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    database: str
    environment: str
    timestamp: datetime
