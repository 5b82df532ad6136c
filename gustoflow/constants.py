"""
Seed data used to initialize an empty store (remote or local fallback).
"""

from gustoflow.core.config import get_settings
from gustoflow.schemas import AppSettings, MenuItem, StaffMember, Table, TableStatus, UserRole

INITIAL_STAFF = [
    StaffMember(id="1", username="owner", role=UserRole.OWNER, name="Admin Owner"),
    StaffMember(id="2", username="cashier", role=UserRole.CASHIER, name="Sarah Cashier"),
    StaffMember(id="3", username="chef", role=UserRole.CHEF, name="Marco Chef"),
    StaffMember(id="4", username="waitress", role=UserRole.WAITRESS, name="Elena Waitress"),
]

INITIAL_TABLES = [
    Table(id=f"t-{number}", number=number, status=TableStatus.AVAILABLE)
    for number in range(1, 13)
]

INITIAL_MENU = [
    MenuItem(id="m1", name="Margherita Pizza", category="Main", price=12.50,
             description="Classic tomato, mozzarella, and basil"),
    MenuItem(id="m2", name="Pasta Carbonara", category="Main", price=14.00,
             description="Creamy pasta with pancetta"),
    MenuItem(id="m3", name="Greek Salad", category="Appetizer", price=9.00,
             description="Fresh veggies with feta cheese"),
    MenuItem(id="m4", name="Truffle Fries", category="Appetizer", price=7.50,
             description="Crispy fries with truffle oil"),
    MenuItem(id="m5", name="Tiramisu", category="Dessert", price=8.00,
             description="Italian coffee-flavored cake"),
    MenuItem(id="m6", name="Espresso", category="Drink", price=3.50,
             description="Strong black coffee"),
    MenuItem(id="m7", name="Red Wine (Glass)", category="Drink", price=8.50,
             description="House Cabernet"),
    MenuItem(id="m8", name="Bruschetta", category="Appetizer", price=6.50,
             description="Toasted bread with tomato and garlic"),
]


def default_app_settings() -> AppSettings:
    """Branding used until an owner saves their own, keyed by the configured settings id."""
    return AppSettings(
        id=get_settings().settings_id,
        name="GustoFlow",
        slogan="Restaurant operations, in sync",
        logo_url="",
    )


def seed_rows() -> dict[str, list[dict]]:
    """Table name -> rows written when the table is empty."""
    return {
        "staff": [s.to_row() for s in INITIAL_STAFF],
        "tables": [t.to_row() for t in INITIAL_TABLES],
        "menu_items": [m.to_row() for m in INITIAL_MENU],
        "app_settings": [default_app_settings().to_row()],
    }


LOGIN_HINT = "Invalid credentials. Hint: owner/chef/cashier/waitress (pwd: 1234)"
