"""
Service Shift Simulation

Drives a full floor → kitchen → till flow through the data gateway:
several tables order concurrently, the kitchen cooks every line, the
waitress serves, the cashier settles. A sync loop runs alongside so the
"order ready" notifications show up as they would on a waitress screen.

Run from project root, with the gateway running:
    uvicorn gustoflow.main:app --port 8001
    python scripts/simulate.py --tables 6

Without --gateway the script runs against the local fallback store only.
"""

import argparse
import asyncio
import os
import random
import sys
import time
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from gustoflow.core.config import setup_logging
from gustoflow.db import DataGateway
from gustoflow.schemas import ItemStatus, MenuItem, Order, Table, TableStatus
from gustoflow.services import billing, orders, staff
from gustoflow.services.bootstrap import setup_database
from gustoflow.services.notifications import NotificationFeed
from gustoflow.services.reports import owner_summary
from gustoflow.services.store import LocalStore, RemoteStore
from gustoflow.sync import SyncLoop


def random_cart(menu: list[MenuItem]) -> list:
    cart = []
    for item in random.sample(menu, k=random.randint(1, 4)):
        for _ in range(random.randint(1, 3)):
            cart = orders.add_to_cart(cart, item)
    return cart


async def serve_table(gateway: DataGateway, table: Table, menu: list[MenuItem], waitress) -> dict:
    """One table's full lifecycle. Returns a result row for the report."""
    start_time = time.time()
    try:
        order = await orders.submit_order(gateway, table, random_cart(menu), waitress.name)

        for line in order.items:
            order = await orders.update_item_status(gateway, order, line.menuItemId, ItemStatus.COOKING)
            await asyncio.sleep(random.uniform(0.05, 0.3))
            order = await orders.update_item_status(gateway, order, line.menuItemId, ItemStatus.COMPLETED)

        order = await orders.mark_served(gateway, order)
        await orders.mark_done(gateway, order)
        transaction = await billing.finalize_payment(gateway, order)

        return {
            "table": table.number,
            "success": True,
            "amount": transaction.amount,
            "time": round(time.time() - start_time, 3),
        }
    except Exception as e:
        return {
            "table": table.number,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


async def run_simulation(gateway: DataGateway, num_tables: int) -> dict:
    print("=" * 70)
    print(f"🍽️  SERVICE SHIFT SIMULATION ({gateway.mode} mode)")
    print("=" * 70)

    seeded = await setup_database(gateway)
    print(f"🗄️  Setup complete, seeded: {seeded or 'nothing (already populated)'}")

    waitress = await staff.authenticate(gateway, "waitress", "1234")
    feed = NotificationFeed(capacity=50, on_notify=lambda msg: print(f"   🔔 {msg}"))

    async with SyncLoop(gateway, user=waitress, feed=feed, interval=0.5) as loop:
        snapshot = loop.snapshot
        menu = [m for m in snapshot.menu if m.is_available]
        free = [t for t in snapshot.tables if t.status == TableStatus.AVAILABLE.value]
        tables = free[:num_tables]
        print(f"🪑 Serving {len(tables)} tables with {len(menu)} menu items\n")

        start = time.time()
        results = await asyncio.gather(
            *(serve_table(gateway, table, menu, waitress) for table in tables)
        )
        # Let the poller catch the last transitions
        await asyncio.sleep(1.0)
        snapshot = await loop.refresh()

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"✅ Settled: {len(successful)}/{len(results)}")
    print(f"⏱️  Total Time: {round(time.time() - start, 3)}s")

    summary = owner_summary(list(snapshot.orders), list(snapshot.transactions), list(snapshot.menu))
    print(f"💰 Revenue: ${summary.total_revenue:.2f}  Expenses: ${summary.total_expenses:.2f}")
    print(f"🏆 Top items: {summary.top_items}")

    if failed:
        print("\n⚠️  Failures (first 5):")
        for f in failed[:5]:
            print(f"   Table {f['table']}: {f['error']}")

    print("=" * 70)
    return {"successful": len(successful), "failed": len(failed), "results": results}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Service Shift Simulation")
    parser.add_argument("--gateway", default=None, help="Gateway URL, e.g. http://localhost:8001/api")
    parser.add_argument("--tables", type=int, default=6, help="Number of tables to serve")
    parser.add_argument("--data-dir", default="data", help="Local fallback directory")
    args = parser.parse_args()

    setup_logging()
    remote = RemoteStore(args.gateway) if args.gateway else None
    gateway = DataGateway(remote, LocalStore(Path(args.data_dir)))

    asyncio.run(run_simulation(gateway, args.tables))
