from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from core.quantities import quantize_stock


class InventoryComponentCreate(BaseModel):
    name: str
    unit: str
    category: str = "GENERAL"
    opening_stock: Decimal = Decimal("0")
    minimum_stock: Decimal = Decimal("0")
    cost_per_unit: Decimal = Decimal("0")

    @field_validator("name", "unit", "category")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("opening_stock", "minimum_stock", "cost_per_unit")
    @classmethod
    def _non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("must be >= 0")
        return v


class InventoryComponentRead(BaseModel):
    id: UUID
    name: str
    category: str
    unit: str
    current_stock: Decimal
    opening_stock: Decimal
    minimum_stock: Decimal
    cost_per_unit: Decimal
    is_low_stock: bool


class StockAdjustmentCreate(BaseModel):
    delta: Decimal
    note: Optional[str] = None

    @field_validator("delta")
    @classmethod
    def _non_zero(cls, v: Decimal) -> Decimal:
        # must survive rounding to stock precision
        if quantize_stock(v) == 0:
            raise ValueError("delta must be non-zero at stock precision")
        return v

    @field_validator("note")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class AvailabilityAddonLine(BaseModel):
    addon_id: UUID
    quantity: int = 1


class AvailabilityLine(BaseModel):
    menu_item_id: UUID
    quantity: int = 1
    addons: List[AvailabilityAddonLine] = []


class AvailabilityRequest(BaseModel):
    lines: List[AvailabilityLine]


class StockShortfallRead(BaseModel):
    inventory_component_id: UUID
    name: str
    unit: str
    requested: Decimal
    available: Decimal
    shortfall: Decimal


class AvailabilityResponse(BaseModel):
    available: bool
    shortfalls: List[StockShortfallRead] = []


class StockAuditEntryRead(BaseModel):
    id: UUID
    inventory_component_id: UUID
    cause_order_id: Optional[UUID] = None
    cause_line_item_id: Optional[UUID] = None
    cause_addon_id: Optional[UUID] = None
    previous_stock: Decimal
    delta: Decimal
    new_stock: Decimal
    reason: str
    note: Optional[str] = None
    created_at: datetime


class ReconciliationRow(BaseModel):
    inventory_component_id: UUID
    name: str
    opening_stock: Decimal
    audited_delta: Decimal
    expected_stock: Decimal
    current_stock: Decimal
    balanced: bool


class ReconciliationReport(BaseModel):
    balanced: bool
    components: List[ReconciliationRow] = []
