"""
Database Setup

Creates every table with idempotent ``CREATE TABLE IF NOT EXISTS`` statements
sent through the gateway's EXECUTE action, then seeds staff, tables, menu and
settings into tables that are still empty.

Setup is best effort: a failing statement or seed row is logged and skipped,
and the remaining steps still run.
"""

import logging

from sqlalchemy.schema import CreateTable

from gustoflow.constants import seed_rows
from gustoflow.database import Base
from gustoflow.db import DataGateway

import gustoflow.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)


def schema_statements() -> list[str]:
    """DDL for every model, in dependency order."""
    return [
        str(CreateTable(table, if_not_exists=True).compile()).strip()
        for table in Base.metadata.sorted_tables
    ]


async def setup_database(gateway: DataGateway) -> dict[str, int]:
    """
    Create the schema and seed empty tables.

    Returns:
        Number of rows seeded per table
    """
    for statement in schema_statements():
        try:
            await gateway.execute(statement)
        except Exception as e:
            logger.warning(f"Schema statement failed: {e}")

    seeded: dict[str, int] = {}
    for table, rows in seed_rows().items():
        try:
            existing = await gateway.from_(table).select()
            if existing:
                continue
            await gateway.from_(table).insert(rows)
            seeded[table] = len(rows)
        except Exception as e:
            logger.warning(f"Seeding {table} failed: {e}")

    if seeded:
        logger.info(f"Seeded tables: {seeded}")
    return seeded
