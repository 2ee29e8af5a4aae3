"""
Stock ledger: the only writer of InventoryComponent.current_stock.

apply_deltas() runs inside the caller's transaction:

    merge deltas per component (zero nets dropped)
         |
    load components in id order (FOR UPDATE where the backend has it;
    on SQLite the BEGIN IMMEDIATE write lock already serializes writers)
         |
    project current + delta for every deduction -> any < 0 ?
         |                                        yes: InsufficientStockError,
         |                                             nothing applied
    update balances, one audit entry per component, flush

The ledger never commits. If anything after it fails, the caller's rollback
discards both the balance changes and their audit entries.
"""

from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import InsufficientStockError, NotFoundError, StockShortfall
from core.logging_config import get_logger
from core.quantities import ZERO, quantize_stock
from db.models import AuditReason, InventoryComponent
from services.audit_recorder import AuditTrailRecorder

logger = get_logger("stock_ledger")


@dataclass(frozen=True)
class AuditContext:
    reason: AuditReason
    order_id: Optional[UUID] = None
    line_item_id: Optional[UUID] = None
    addon_id: Optional[UUID] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class BalanceChange:
    inventory_component_id: UUID
    previous_stock: Decimal
    delta: Decimal
    new_stock: Decimal
    audit_entry_id: UUID


@dataclass(frozen=True)
class LedgerResult:
    changes: Tuple[BalanceChange, ...] = ()

    @property
    def is_noop(self) -> bool:
        return not self.changes

    def change_for(self, inventory_component_id: UUID) -> Optional[BalanceChange]:
        for c in self.changes:
            if c.inventory_component_id == inventory_component_id:
                return c
        return None


def merge_deltas(deltas: Iterable[Tuple[UUID, Decimal]]) -> "OrderedDict[UUID, Decimal]":
    merged: Dict[UUID, Decimal] = {}
    for component_id, delta in deltas:
        merged[component_id] = merged.get(component_id, ZERO) + quantize_stock(delta)
    # Sorted by id so concurrent callers lock rows in the same order
    return OrderedDict(
        (component_id, delta)
        for component_id, delta in sorted(merged.items(), key=lambda kv: str(kv[0]))
        if delta != ZERO
    )


class StockLedger:
    def __init__(self, recorder: Optional[AuditTrailRecorder] = None):
        self.recorder = recorder or AuditTrailRecorder()

    async def _lock_components(self, db: AsyncSession, ids: List[UUID]) -> Dict[UUID, InventoryComponent]:
        res = await db.execute(
            select(InventoryComponent)
            .where(InventoryComponent.id.in_(ids))
            .order_by(InventoryComponent.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {c.id: c for c in res.scalars().all()}

    async def apply_deltas(
        self,
        db: AsyncSession,
        deltas: Iterable[Tuple[UUID, Decimal]],
        context: AuditContext,
    ) -> LedgerResult:
        merged = merge_deltas(deltas)
        if not merged:
            return LedgerResult()

        components = await self._lock_components(db, list(merged.keys()))
        for component_id in merged:
            if component_id not in components:
                raise NotFoundError("Inventory component", component_id)

        shortfalls: List[StockShortfall] = []
        for component_id, delta in merged.items():
            if delta >= ZERO:
                continue
            c = components[component_id]
            if c.current_stock + delta < ZERO:
                shortfalls.append(
                    StockShortfall(
                        inventory_component_id=c.id,
                        name=c.name,
                        unit=c.unit,
                        requested=-delta,
                        available=c.current_stock,
                    )
                )
        if shortfalls:
            logger.warning(
                "insufficient_stock",
                extra={
                    "reason": context.reason.value,
                    "order_id": context.order_id,
                    "line_item_id": context.line_item_id,
                    "shortfalls": [s.to_dict() for s in shortfalls],
                },
            )
            raise InsufficientStockError(shortfalls)

        recorded = []
        for component_id, delta in merged.items():
            c = components[component_id]
            previous = c.current_stock
            new_stock = quantize_stock(previous + delta)
            c.current_stock = new_stock
            entry = self.recorder.record(
                db,
                inventory_component_id=component_id,
                previous_stock=previous,
                delta=delta,
                new_stock=new_stock,
                cause_order_id=context.order_id,
                cause_line_item_id=context.line_item_id,
                cause_addon_id=context.addon_id,
                reason=context.reason,
                note=context.note,
            )
            recorded.append((component_id, previous, delta, new_stock, entry))
        await db.flush()

        changes = [
            BalanceChange(
                inventory_component_id=component_id,
                previous_stock=previous,
                delta=delta,
                new_stock=new_stock,
                audit_entry_id=entry.id,
            )
            for component_id, previous, delta, new_stock, entry in recorded
        ]

        logger.debug(
            "stock_deltas_applied",
            extra={
                "reason": context.reason.value,
                "order_id": context.order_id,
                "line_item_id": context.line_item_id,
                "components": len(changes),
            },
        )
        return LedgerResult(changes=tuple(changes))
