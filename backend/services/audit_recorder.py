from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from db.models import AuditReason, StockAuditEntry


class AuditTrailRecorder:
    """
    Write-only side of the stock audit trail.

    Entries are added to the caller's session, so they commit or roll back
    together with the stock mutation they describe.
    """

    def record(
        self,
        db: AsyncSession,
        *,
        inventory_component_id: UUID,
        previous_stock: Decimal,
        delta: Decimal,
        new_stock: Decimal,
        cause_order_id: Optional[UUID],
        cause_line_item_id: Optional[UUID],
        reason: AuditReason,
        cause_addon_id: Optional[UUID] = None,
        note: Optional[str] = None,
    ) -> StockAuditEntry:
        entry = StockAuditEntry(
            inventory_component_id=inventory_component_id,
            previous_stock=previous_stock,
            delta=delta,
            new_stock=new_stock,
            cause_order_id=cause_order_id,
            cause_line_item_id=cause_line_item_id,
            cause_addon_id=cause_addon_id,
            reason=AuditReason(reason).value,
            note=note,
        )
        db.add(entry)
        return entry
