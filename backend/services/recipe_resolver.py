"""
Recipe resolver: sellable unit -> bill of materials.

A sellable unit is a tagged value (kind + id); the kind alone decides which
link table is read. Unknown units and units without links resolve to an
empty recipe, which downstream means "not stock tracked".
"""

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.quantities import ZERO, scale_quantity
from db.models import AddonInventoryItem, MenuItemInventory


class SellableUnitKind(str, enum.Enum):
    MENU_ITEM = "MENU_ITEM"
    ADDON = "ADDON"


@dataclass(frozen=True)
class SellableUnit:
    kind: SellableUnitKind
    id: UUID

    @classmethod
    def menu_item(cls, menu_item_id: UUID) -> "SellableUnit":
        return cls(SellableUnitKind.MENU_ITEM, menu_item_id)

    @classmethod
    def addon(cls, addon_id: UUID) -> "SellableUnit":
        return cls(SellableUnitKind.ADDON, addon_id)


@dataclass(frozen=True)
class RecipeLine:
    inventory_component_id: UUID
    quantity_per_unit: Decimal


_LINK_TABLES = {
    SellableUnitKind.MENU_ITEM: (MenuItemInventory, MenuItemInventory.menu_item_id),
    SellableUnitKind.ADDON: (AddonInventoryItem, AddonInventoryItem.addon_id),
}


class RecipeResolver:
    """Pure reads against the caller's session; never flushes or commits."""

    async def resolve(self, db: AsyncSession, unit: SellableUnit) -> List[RecipeLine]:
        model, unit_col = _LINK_TABLES[unit.kind]
        res = await db.execute(
            select(model.inventory_component_id, model.quantity)
            .where(unit_col == unit.id)
            .order_by(model.inventory_component_id)
        )
        return [
            RecipeLine(inventory_component_id=component_id, quantity_per_unit=qty)
            for component_id, qty in res.all()
            if qty is not None and qty > ZERO
        ]

    async def resolve_many(
        self, db: AsyncSession, units: Iterable[SellableUnit]
    ) -> Dict[SellableUnit, List[RecipeLine]]:
        out: Dict[SellableUnit, List[RecipeLine]] = {}
        for unit in units:
            if unit not in out:
                out[unit] = await self.resolve(db, unit)
        return out


def recipe_deltas(recipe: Iterable[RecipeLine], units: int) -> List[Tuple[UUID, Decimal]]:
    """Signed per-component deltas for ``units`` (negative units = deduction)."""
    return [(line.inventory_component_id, scale_quantity(line.quantity_per_unit, units)) for line in recipe]
