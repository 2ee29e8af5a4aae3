from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db.database import get_session_maker
from services.inventory_service import InventoryService
from services.order_items import OrderItemLifecycleCoordinator


def get_coordinator(
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> OrderItemLifecycleCoordinator:
    return OrderItemLifecycleCoordinator(session_maker)


def get_inventory_service(
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> InventoryService:
    return InventoryService(session_maker)
