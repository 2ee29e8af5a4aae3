"""
Bill-of-materials rows, one table per sellable-unit kind.

Written by menu/addon authoring; the stock engine only reads them.
"""

import uuid
from sqlalchemy import Column, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from .database import Base
from .types import StockQuantity


class MenuItemInventory(Base):
    __tablename__ = "menu_item_inventory"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    menu_item_id = Column(Uuid(as_uuid=True), ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_component_id = Column(
        Uuid(as_uuid=True), ForeignKey("inventory_components.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity = Column(StockQuantity, nullable=False)  # per one menu item

    __table_args__ = (UniqueConstraint("menu_item_id", "inventory_component_id", name="ux_menu_item_inventory"),)

    menu_item = relationship("MenuItem", back_populates="recipe_links")
    component = relationship("InventoryComponent")


class AddonInventoryItem(Base):
    __tablename__ = "addon_inventory_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    addon_id = Column(Uuid(as_uuid=True), ForeignKey("addons.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_component_id = Column(
        Uuid(as_uuid=True), ForeignKey("inventory_components.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity = Column(StockQuantity, nullable=False)  # per one addon

    __table_args__ = (UniqueConstraint("addon_id", "inventory_component_id", name="ux_addon_inventory_item"),)

    addon = relationship("Addon", back_populates="recipe_links")
    component = relationship("InventoryComponent")
