import asyncio
import sys
from pathlib import Path
from decimal import Decimal

"""
Seed demo data (inventory components, menu items, addons, recipe links).

This script can be run from either:
- backend/: `python scripts/seed_demo_data.py`
- repo root: `python backend/scripts/seed_demo_data.py`

Existing rows are matched by name and left alone, so re-running is safe.
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import func, select

from db.database import async_session_maker, create_db_and_tables
from db.models import Addon, AddonInventoryItem, InventoryComponent, MenuItem, MenuItemInventory


COMPONENTS = [
    # name, unit, category, opening, minimum, cost per unit
    ("Beef", "kg", "MEAT", "10", "2", "18.50"),
    ("Cheese", "pcs", "DAIRY", "20", "5", "0.40"),
    ("Burger Bun", "pcs", "BAKERY", "40", "10", "0.35"),
    ("Bacon", "pcs", "MEAT", "30", "6", "0.55"),
    ("Flour", "kg", "DRY", "5", "1", "1.20"),
    ("Tomato Sauce", "l", "SAUCE", "4", "1", "3.10"),
]

MENU_ITEMS = {
    "Classic Burger": ("12.90", [("Beef", "0.2"), ("Burger Bun", "1"), ("Cheese", "1")]),
    "Bacon Burger": ("14.50", [("Beef", "0.2"), ("Burger Bun", "1"), ("Bacon", "2")]),
    "Margherita": ("11.00", [("Flour", "0.25"), ("Tomato Sauce", "0.1"), ("Cheese", "2")]),
}

ADDONS = {
    "Extra Cheese": ("1.50", [("Cheese", "1")]),
    "Extra Bacon": ("2.00", [("Bacon", "2")]),
    "Double Patty": ("4.00", [("Beef", "0.2")]),
}


async def get_or_create_component(session, name, unit, category, opening, minimum, cost) -> InventoryComponent:
    result = await session.execute(
        select(InventoryComponent).where(func.lower(InventoryComponent.name) == name.strip().lower())
    )
    component = result.scalar_one_or_none()
    if component:
        return component

    component = InventoryComponent(
        name=name,
        unit=unit,
        category=category,
        opening_stock=Decimal(opening),
        current_stock=Decimal(opening),
        minimum_stock=Decimal(minimum),
        cost_per_unit=Decimal(cost),
    )
    session.add(component)
    await session.flush()
    return component


async def get_or_create_sellable(session, model, name: str, price: str):
    result = await session.execute(select(model).where(model.name == name))
    unit = result.scalar_one_or_none()
    if unit:
        return unit, False

    unit = model(name=name, price=Decimal(price), is_active=True)
    session.add(unit)
    await session.flush()
    return unit, True


async def main() -> None:
    await create_db_and_tables()

    async with async_session_maker() as session:
        async with session.begin():
            components = {}
            for name, unit, category, opening, minimum, cost in COMPONENTS:
                components[name] = await get_or_create_component(
                    session, name, unit, category, opening, minimum, cost
                )

            for name, (price, recipe) in MENU_ITEMS.items():
                item, created = await get_or_create_sellable(session, MenuItem, name, price)
                if created:
                    for component_name, qty in recipe:
                        session.add(
                            MenuItemInventory(
                                menu_item_id=item.id,
                                inventory_component_id=components[component_name].id,
                                quantity=Decimal(qty),
                            )
                        )

            for name, (price, recipe) in ADDONS.items():
                addon, created = await get_or_create_sellable(session, Addon, name, price)
                if created:
                    for component_name, qty in recipe:
                        session.add(
                            AddonInventoryItem(
                                addon_id=addon.id,
                                inventory_component_id=components[component_name].id,
                                quantity=Decimal(qty),
                            )
                        )

    print(
        f"Seeded {len(COMPONENTS)} components, {len(MENU_ITEMS)} menu items, {len(ADDONS)} addons"
    )


if __name__ == "__main__":
    asyncio.run(main())
