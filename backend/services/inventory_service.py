from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import InvalidQuantityError, InvalidStateError, NotFoundError, StockShortfall
from core.logging_config import get_logger
from core.quantities import ZERO, is_positive_int, quantize_stock
from core.result import OperationResult
from db.models import Addon, AuditReason, InventoryComponent, MenuItem, StockAuditEntry
from schemas.inventory import (
    AvailabilityRequest,
    AvailabilityResponse,
    InventoryComponentCreate,
    InventoryComponentRead,
    ReconciliationReport,
    ReconciliationRow,
    StockAdjustmentCreate,
    StockAuditEntryRead,
    StockShortfallRead,
)
from services.base import TransactionalService
from services.recipe_resolver import RecipeResolver, SellableUnit, recipe_deltas
from services.stock_ledger import AuditContext, StockLedger

logger = get_logger("inventory")


def _component_read(c: InventoryComponent) -> InventoryComponentRead:
    return InventoryComponentRead(**c.to_schema)


async def _get_component(db: AsyncSession, component_id: UUID) -> InventoryComponent:
    c = await db.get(InventoryComponent, component_id, populate_existing=True)
    if not c:
        raise NotFoundError("Inventory component", component_id)
    return c


class InventoryService(TransactionalService):
    """Component registry, manual adjustments and the read-only reporting side of the ledger."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        resolver: Optional[RecipeResolver] = None,
        ledger: Optional[StockLedger] = None,
    ):
        super().__init__(session_maker)
        self.resolver = resolver or RecipeResolver()
        self.ledger = ledger or StockLedger()

    async def create_component(self, payload: InventoryComponentCreate) -> OperationResult[InventoryComponentRead]:
        async def work(db: AsyncSession) -> InventoryComponentRead:
            res = await db.execute(select(InventoryComponent.id).where(InventoryComponent.name == payload.name))
            if res.scalar_one_or_none() is not None:
                raise InvalidStateError(
                    f"Inventory component {payload.name!r} already exists",
                    entity="InventoryComponent",
                    state="EXISTS",
                )
            opening = quantize_stock(payload.opening_stock)
            c = InventoryComponent(
                name=payload.name,
                unit=payload.unit,
                category=payload.category,
                opening_stock=opening,
                current_stock=opening,
                minimum_stock=quantize_stock(payload.minimum_stock),
                cost_per_unit=payload.cost_per_unit,
            )
            db.add(c)
            await db.flush()
            return _component_read(c)

        return await self._run("create_component", work)

    async def list_components(self, category: Optional[str] = None) -> List[InventoryComponentRead]:
        async def work(db: AsyncSession) -> List[InventoryComponentRead]:
            stmt = select(InventoryComponent).order_by(InventoryComponent.name)
            if category:
                stmt = stmt.where(InventoryComponent.category == category)
            res = await db.execute(stmt)
            return [_component_read(c) for c in res.scalars().all()]

        return await self._read("list_components", work)

    async def get_component(self, component_id: UUID) -> OperationResult[InventoryComponentRead]:
        async def work(db: AsyncSession) -> InventoryComponentRead:
            return _component_read(await _get_component(db, component_id))

        return await self._run("get_component", work)

    async def low_stock(self) -> List[InventoryComponentRead]:
        # current <= minimum is compared in Python; SQLite stores quantities as text
        return [c for c in await self.list_components() if c.is_low_stock]

    async def adjust_stock(
        self, component_id: UUID, payload: StockAdjustmentCreate
    ) -> OperationResult[InventoryComponentRead]:
        async def work(db: AsyncSession) -> InventoryComponentRead:
            await _get_component(db, component_id)
            await self.ledger.apply_deltas(
                db,
                [(component_id, payload.delta)],
                AuditContext(reason=AuditReason.MANUAL_ADJUSTMENT, note=payload.note),
            )
            logger.info(
                "stock_adjusted",
                extra={"inventory_component_id": component_id, "delta": str(payload.delta)},
            )
            return _component_read(await _get_component(db, component_id))

        return await self._run("adjust_stock", work)

    async def check_availability(self, request: AvailabilityRequest) -> OperationResult[AvailabilityResponse]:
        """
        Dry run of a prospective order. Requirements are summed per component
        across every line and its addons, then compared to current stock.
        Nothing is locked or written.
        """
        try:
            for line in request.lines:
                if not is_positive_int(line.quantity):
                    raise InvalidQuantityError("quantity", line.quantity)
                for a in line.addons:
                    if not is_positive_int(a.quantity):
                        raise InvalidQuantityError("addons.quantity", a.quantity)
        except InvalidQuantityError as e:
            return OperationResult.failure(e)

        async def work(db: AsyncSession) -> AvailabilityResponse:
            wanted: List[Tuple[SellableUnit, int]] = []
            for line in request.lines:
                if not await db.get(MenuItem, line.menu_item_id):
                    raise NotFoundError("Menu item", line.menu_item_id)
                wanted.append((SellableUnit.menu_item(line.menu_item_id), line.quantity))
                for a in line.addons:
                    if not await db.get(Addon, a.addon_id):
                        raise NotFoundError("Addon", a.addon_id)
                    wanted.append((SellableUnit.addon(a.addon_id), a.quantity))

            recipes = await self.resolver.resolve_many(db, [unit for unit, _ in wanted])
            needed: Dict[UUID, Decimal] = defaultdict(lambda: ZERO)
            for unit, units in wanted:
                for component_id, qty in recipe_deltas(recipes[unit], units):
                    needed[component_id] += qty

            if not needed:
                return AvailabilityResponse(available=True)

            res = await db.execute(select(InventoryComponent).where(InventoryComponent.id.in_(list(needed))))
            shortfalls = []
            for c in sorted(res.scalars().all(), key=lambda c: str(c.id)):
                requested = quantize_stock(needed[c.id])
                if requested > c.current_stock:
                    s = StockShortfall(
                        inventory_component_id=c.id,
                        name=c.name,
                        unit=c.unit,
                        requested=requested,
                        available=c.current_stock,
                    )
                    shortfalls.append(StockShortfallRead(**s.to_dict()))
            return AvailabilityResponse(available=not shortfalls, shortfalls=shortfalls)

        return await self._run("check_availability", work)

    async def list_audit_entries(
        self,
        component_id: Optional[UUID] = None,
        order_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> List[StockAuditEntryRead]:
        async def work(db: AsyncSession) -> List[StockAuditEntryRead]:
            stmt = select(StockAuditEntry).order_by(StockAuditEntry.created_at.desc()).limit(limit)
            if component_id:
                stmt = stmt.where(StockAuditEntry.inventory_component_id == component_id)
            if order_id:
                stmt = stmt.where(StockAuditEntry.cause_order_id == order_id)
            res = await db.execute(stmt)
            return [StockAuditEntryRead(**e.to_schema) for e in res.scalars().all()]

        return await self._read("list_audit_entries", work)

    async def reconcile(self) -> ReconciliationReport:
        """opening_stock + sum of audited deltas must equal current_stock for every component."""

        async def work(db: AsyncSession) -> ReconciliationReport:
            totals: Dict[UUID, Decimal] = defaultdict(lambda: ZERO)
            res = await db.execute(select(StockAuditEntry.inventory_component_id, StockAuditEntry.delta))
            for component_id, delta in res.all():
                totals[component_id] += delta

            res = await db.execute(select(InventoryComponent).order_by(InventoryComponent.name))
            rows = []
            for c in res.scalars().all():
                audited = quantize_stock(totals[c.id])
                expected = quantize_stock(c.opening_stock + audited)
                rows.append(
                    ReconciliationRow(
                        inventory_component_id=c.id,
                        name=c.name,
                        opening_stock=c.opening_stock,
                        audited_delta=audited,
                        expected_stock=expected,
                        current_stock=c.current_stock,
                        balanced=expected == c.current_stock,
                    )
                )

            mismatched = [r.name for r in rows if not r.balanced]
            if mismatched:
                logger.error("reconciliation_mismatch", extra={"components": mismatched})
            return ReconciliationReport(balanced=not mismatched, components=rows)

        return await self._read("reconcile", work)
