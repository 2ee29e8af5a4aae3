"""
Cancel every open order (restoring its stock through the ledger), then
delete all cancelled orders.

Audit entries are kept: they do not reference orders by foreign key.

  cd backend && python scripts/reset_orders.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import delete, select

from db.database import async_session_maker
from db.models import CLOSED_ORDER_STATUSES, Order, OrderStatus
from services.order_items import OrderItemLifecycleCoordinator


async def main() -> None:
    coordinator = OrderItemLifecycleCoordinator(async_session_maker)

    async with async_session_maker() as db:
        res = await db.execute(select(Order.id).where(Order.status.notin_(CLOSED_ORDER_STATUSES)))
        open_ids = list(res.scalars().all())

    cancelled = 0
    for order_id in open_ids:
        result = await coordinator.cancel_order(order_id)
        if result.ok:
            cancelled += 1
        else:
            print(f"Could not cancel {order_id}: {result.error.message}")

    async with async_session_maker() as db:
        async with db.begin():
            res_orders = await db.execute(delete(Order).where(Order.status == OrderStatus.CANCELLED.value))

    orders_n = int(getattr(res_orders, "rowcount", 0) or 0)
    print(f"Cancelled open orders: {cancelled}, deleted cancelled orders: {orders_n}")


if __name__ == "__main__":
    asyncio.run(main())
