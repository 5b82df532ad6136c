"""
SQLAlchemy Database Models

Schema source of truth for the nine logical tables served by the gateway.
The gateway itself talks raw parameterized SQL by table name; these models
exist so the schema can be created (``init_db`` on the server,
``CREATE TABLE IF NOT EXISTS`` through ``EXECUTE`` from the client setup).

Timestamps are epoch milliseconds, ids are client-generated strings and
order line items are stored as a JSON document in a text column.
"""

from sqlalchemy import BigInteger, Boolean, Column, Float, Integer, String, Text

from gustoflow.database import Base


class Staff(Base):
    """Restaurant staff member; username is unique and stored lowercased."""
    __tablename__ = "staff"

    id = Column(String(64), primary_key=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    role = Column(String(20), nullable=False)
    name = Column(String(100), nullable=False)

    def __repr__(self):
        return f"<Staff {self.username} - {self.role}>"


class DiningTable(Base):
    """Physical table on the floor."""
    __tablename__ = "tables"

    id = Column(String(64), primary_key=True)
    number = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="Available")
    waitress_name = Column(String(100), nullable=True)

    def __repr__(self):
        return f"<Table #{self.number} - {self.status}>"


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(String(64), primary_key=True)
    item_number = Column(String(20), nullable=True)
    name = Column(String(100), nullable=False)
    category = Column(String(50), nullable=False)
    price = Column(Float, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=True)


class Order(Base):
    """
    Kitchen ticket for one table.

    ``table_number`` is denormalized from the table so history survives
    table renumbering.
    """
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True)
    table_id = Column(String(64), nullable=False, index=True)
    table_number = Column(Integer, nullable=False)
    items = Column(Text, nullable=False)  # JSON list of line items
    status = Column(String(20), nullable=False, default="Pending", index=True)
    timestamp = Column(BigInteger, nullable=False)
    total = Column(Float, nullable=False)
    waitress_name = Column(String(100), nullable=True)

    def __repr__(self):
        return f"<Order {self.id} - Table #{self.table_number} - {self.status}>"


class CashTransaction(Base):
    """Append-only cash book entry."""
    __tablename__ = "transactions"

    id = Column(String(64), primary_key=True)
    type = Column(String(3), nullable=False)  # IN / OUT
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=False)
    timestamp = Column(BigInteger, nullable=False)
    category = Column(String(50), nullable=False)


class StockEntry(Base):
    __tablename__ = "stock_entries"

    id = Column(String(64), primary_key=True)
    item_name = Column(String(100), nullable=False)
    quantity = Column(Float, nullable=False)
    purchase_date = Column(BigInteger, nullable=False)


class Customer(Base):
    """Customer record keyed by phone number."""
    __tablename__ = "customers"

    phone = Column(String(32), primary_key=True)
    name = Column(String(100), nullable=False)
    id_number = Column(String(50), nullable=True)
    created_at = Column(BigInteger, nullable=False)
    last_visit = Column(BigInteger, nullable=True)

    def __repr__(self):
        return f"<Customer {self.phone} - {self.name}>"


class StaffPing(Base):
    """Fire-and-forget notification from one staff member to another."""
    __tablename__ = "staff_pings"

    id = Column(String(64), primary_key=True)
    target_name = Column(String(100), nullable=False, index=True)
    sender_name = Column(String(100), nullable=False)
    table_number = Column(Integer, nullable=False)
    timestamp = Column(BigInteger, nullable=False)


class AppSettingsRow(Base):
    """Singleton branding row."""
    __tablename__ = "app_settings"

    id = Column(String(64), primary_key=True)
    name = Column(String(100), nullable=False)
    slogan = Column(String(255), nullable=True)
    logo_url = Column(Text, nullable=True)
