import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text, Uuid

from ..database import Base
from ..types import MoneyAmount, StockQuantity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryComponent(Base):
    __tablename__ = "inventory_components"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, unique=True)
    category = Column(Text, nullable=False, default="GENERAL", index=True)
    unit = Column(Text, nullable=False)  # 'kg', 'pcs', 'l', ...

    # current_stock is written only by services.stock_ledger
    current_stock = Column(StockQuantity, nullable=False)
    opening_stock = Column(StockQuantity, nullable=False)
    minimum_stock = Column(StockQuantity, nullable=False, default=0)
    cost_per_unit = Column(MoneyAmount, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.minimum_stock

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "current_stock": self.current_stock,
            "opening_stock": self.opening_stock,
            "minimum_stock": self.minimum_stock,
            "cost_per_unit": self.cost_per_unit,
            "is_low_stock": self.is_low_stock,
        }
