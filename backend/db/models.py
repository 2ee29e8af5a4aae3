"""Import every model so Base.metadata knows all tables."""

from .inventory.component import InventoryComponent
from .inventory.audit import AuditReason, StockAuditEntry
from .menu import Addon, MenuItem
from .recipe import AddonInventoryItem, MenuItemInventory
from .order import CLOSED_ORDER_STATUSES, Order, OrderItem, OrderItemAddon, OrderStatus
from .immutability import register_immutability_listeners

register_immutability_listeners()

__all__ = [
    "InventoryComponent",
    "AuditReason",
    "StockAuditEntry",
    "Addon",
    "MenuItem",
    "AddonInventoryItem",
    "MenuItemInventory",
    "CLOSED_ORDER_STATUSES",
    "Order",
    "OrderItem",
    "OrderItemAddon",
    "OrderStatus",
]
