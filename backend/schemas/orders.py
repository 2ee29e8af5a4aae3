from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator


OrderType = Literal["DINE_IN", "TAKEOUT", "DELIVERY"]


class OrderCreate(BaseModel):
    order_number: Optional[str] = None
    type: OrderType = "DINE_IN"
    notes: Optional[str] = None

    @field_validator("order_number", "notes")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class OrderItemAddonRead(BaseModel):
    id: UUID
    addon_id: UUID
    addon_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class OrderItemRead(BaseModel):
    id: UUID
    order_id: UUID
    menu_item_id: UUID
    menu_item_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    notes: Optional[str] = None
    status: str
    addons: List[OrderItemAddonRead] = []


class OrderRead(BaseModel):
    id: UUID
    order_number: str
    status: str
    type: str
    subtotal: Decimal
    total: Decimal
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    items: List[OrderItemRead] = []


# Quantities are plain ints here; the coordinator owns the >= 1 rule so
# every caller gets the same InvalidQuantityError.
class AddItemRequest(BaseModel):
    menu_item_id: UUID
    quantity: int = 1
    notes: Optional[str] = None


class UpdateQuantityRequest(BaseModel):
    quantity: int


class AddAddonRequest(BaseModel):
    addon_id: UUID
    quantity: int = 1
