import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Text, Uuid

from ..database import Base
from ..types import StockQuantity


class AuditReason(str, enum.Enum):
    ITEM_ADDED = "ITEM_ADDED"
    ITEM_REMOVED = "ITEM_REMOVED"
    QUANTITY_INCREASED = "QUANTITY_INCREASED"
    QUANTITY_DECREASED = "QUANTITY_DECREASED"
    ADDON_ADDED = "ADDON_ADDED"
    ADDON_REMOVED = "ADDON_REMOVED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    MANUAL_ADJUSTMENT = "MANUAL_ADJUSTMENT"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StockAuditEntry(Base):
    """Append-only: one row per component per ledger call."""

    __tablename__ = "stock_audit_entries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    inventory_component_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("inventory_components.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Cause ids are not FKs: audit rows outlive the orders and items they describe
    cause_order_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    cause_line_item_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    cause_addon_id = Column(Uuid(as_uuid=True), nullable=True)

    previous_stock = Column(StockQuantity, nullable=False)
    delta = Column(StockQuantity, nullable=False)
    new_stock = Column(StockQuantity, nullable=False)
    reason = Column(Text, nullable=False, index=True)
    note = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    __table_args__ = (
        Index("ix_stock_audit_component_created", "inventory_component_id", "created_at"),
    )

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "inventory_component_id": self.inventory_component_id,
            "cause_order_id": self.cause_order_id,
            "cause_line_item_id": self.cause_line_item_id,
            "cause_addon_id": self.cause_addon_id,
            "previous_stock": self.previous_stock,
            "delta": self.delta,
            "new_stock": self.new_stock,
            "reason": self.reason,
            "note": self.note,
            "created_at": self.created_at,
        }
