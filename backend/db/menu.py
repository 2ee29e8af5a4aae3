import uuid
from sqlalchemy import Boolean, Column, String, Uuid
from sqlalchemy.orm import relationship

from .database import Base
from .types import MoneyAmount


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    price = Column(MoneyAmount, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    recipe_links = relationship("MenuItemInventory", back_populates="menu_item", cascade="all, delete-orphan")


class Addon(Base):
    __tablename__ = "addons"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    price = Column(MoneyAmount, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    recipe_links = relationship("AddonInventoryItem", back_populates="addon", cascade="all, delete-orphan")
