import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from .database import Base
from .types import MoneyAmount


class OrderStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY = "READY"
    SERVED = "SERVED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


CLOSED_ORDER_STATUSES = frozenset({OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_number = Column(String, nullable=False, unique=True)
    status = Column(Text, nullable=False, default=OrderStatus.DRAFT.value, index=True)
    type = Column(Text, nullable=False, default="DINE_IN")  # DINE_IN|TAKEOUT|DELIVERY
    subtotal = Column(MoneyAmount, nullable=False, default=0)
    total = Column(MoneyAmount, nullable=False, default=0)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.created_at",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_item_id = Column(Uuid(as_uuid=True), ForeignKey("menu_items.id", ondelete="RESTRICT"), nullable=False, index=True)

    # Sole driver of menu-item-level stock consumption
    quantity = Column(Integer, nullable=False)
    unit_price = Column(MoneyAmount, nullable=False)
    total_price = Column(MoneyAmount, nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="PENDING")  # PENDING|PREPARING|READY|SERVED

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem")
    addons = relationship(
        "OrderItemAddon",
        back_populates="order_item",
        cascade="all, delete-orphan",
        order_by="OrderItemAddon.created_at",
    )


class OrderItemAddon(Base):
    __tablename__ = "order_item_addons"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_item_id = Column(Uuid(as_uuid=True), ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False, index=True)
    addon_id = Column(Uuid(as_uuid=True), ForeignKey("addons.id", ondelete="RESTRICT"), nullable=False, index=True)
    addon_name = Column(String, nullable=False)

    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(MoneyAmount, nullable=False)
    total_price = Column(MoneyAmount, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (UniqueConstraint("order_item_id", "addon_id", name="ux_order_item_addon"),)

    order_item = relationship("OrderItem", back_populates="addons")
    addon = relationship("Addon")
