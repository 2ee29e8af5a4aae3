"""
Pytest fixtures for the stock reconciliation test suite.

Provides:
- a fresh SQLite file database per test (tmp_path), schema created
- coordinator / inventory service bound to that database
- a small seeded menu (burger, extra cheese, flour-heavy pizza)
- helpers to read balances, audit rows and line items back
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

import pytest
from sqlalchemy import func, select

from core.logging_config import reset_logging
from db.database import build_engine, build_session_maker, create_db_and_tables
from db.models import (
    Addon,
    AddonInventoryItem,
    InventoryComponent,
    MenuItem,
    MenuItemInventory,
    Order,
    OrderItem,
    StockAuditEntry,
)
from schemas.orders import OrderCreate
from services.inventory_service import InventoryService
from services.order_items import OrderItemLifecycleCoordinator


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolated_logging():
    reset_logging()
    yield
    reset_logging()
    logging.getLogger("pos").setLevel(logging.NOTSET)


@pytest.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'pos.db'}", echo=False)
    await create_db_and_tables(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
def coordinator(session_maker):
    return OrderItemLifecycleCoordinator(session_maker)


@pytest.fixture
def inventory(session_maker):
    return InventoryService(session_maker)


@dataclass
class Menu:
    beef: UUID
    cheese: UUID
    flour: UUID
    burger: UUID
    pizza: UUID
    extra_cheese: UUID
    retired_item: UUID
    water: UUID


async def add_component(db, name: str, unit: str, stock: str, minimum: str = "0") -> InventoryComponent:
    c = InventoryComponent(
        name=name,
        unit=unit,
        opening_stock=Decimal(stock),
        current_stock=Decimal(stock),
        minimum_stock=Decimal(minimum),
    )
    db.add(c)
    await db.flush()
    return c


@pytest.fixture
async def menu(session_maker) -> Menu:
    """
    Beef 10 kg, Cheese 20 pcs, Flour 5 kg.
    Burger = 0.2 kg beef; Extra Cheese = 1 pcs cheese; Pizza = 10 kg flour.
    Still Water has no recipe links.
    """
    async with session_maker() as db:
        async with db.begin():
            beef = await add_component(db, "Beef", "kg", "10", minimum="2")
            cheese = await add_component(db, "Cheese", "pcs", "20", minimum="5")
            flour = await add_component(db, "Flour", "kg", "5", minimum="1")

            burger = MenuItem(name="Burger", price=Decimal("12.50"))
            pizza = MenuItem(name="Flour Bomb Pizza", price=Decimal("9.00"))
            retired = MenuItem(name="Retired Wrap", price=Decimal("7.00"), is_active=False)
            water = MenuItem(name="Still Water", price=Decimal("2.00"))
            extra_cheese = Addon(name="Extra Cheese", price=Decimal("1.50"))
            db.add_all([burger, pizza, retired, water, extra_cheese])
            await db.flush()

            db.add_all(
                [
                    MenuItemInventory(menu_item_id=burger.id, inventory_component_id=beef.id, quantity=Decimal("0.2")),
                    MenuItemInventory(menu_item_id=pizza.id, inventory_component_id=flour.id, quantity=Decimal("10")),
                    AddonInventoryItem(
                        addon_id=extra_cheese.id, inventory_component_id=cheese.id, quantity=Decimal("1")
                    ),
                ]
            )
            return Menu(
                beef=beef.id,
                cheese=cheese.id,
                flour=flour.id,
                burger=burger.id,
                pizza=pizza.id,
                extra_cheese=extra_cheese.id,
                retired_item=retired.id,
                water=water.id,
            )


@pytest.fixture
async def order_id(coordinator) -> UUID:
    result = await coordinator.create_order(OrderCreate(order_number="T-1"))
    return result.unwrap().id


async def stock_of(session_maker, component_id: UUID) -> Decimal:
    async with session_maker() as db:
        res = await db.execute(select(InventoryComponent.current_stock).where(InventoryComponent.id == component_id))
        return res.scalar_one()


async def audit_rows(session_maker, component_id: UUID = None):
    async with session_maker() as db:
        stmt = select(StockAuditEntry).order_by(StockAuditEntry.created_at)
        if component_id is not None:
            stmt = stmt.where(StockAuditEntry.inventory_component_id == component_id)
        res = await db.execute(stmt)
        return list(res.scalars().all())


async def line_item_count(session_maker) -> int:
    async with session_maker() as db:
        res = await db.execute(select(func.count()).select_from(OrderItem))
        return int(res.scalar_one())


async def order_status(session_maker, oid: UUID) -> str:
    async with session_maker() as db:
        res = await db.execute(select(Order.status).where(Order.id == oid))
        return res.scalar_one()
