from uuid import UUID

from fastapi import APIRouter, Depends, status

from routers.deps import get_coordinator
from schemas.orders import (
    AddAddonRequest,
    AddItemRequest,
    OrderCreate,
    OrderItemRead,
    OrderRead,
    UpdateQuantityRequest,
)
from services.order_items import OrderItemLifecycleCoordinator

router = APIRouter()


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    coordinator: OrderItemLifecycleCoordinator = Depends(get_coordinator),
):
    return (await coordinator.create_order(payload)).unwrap()


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(order_id: UUID, coordinator: OrderItemLifecycleCoordinator = Depends(get_coordinator)):
    return (await coordinator.get_order(order_id)).unwrap()


@router.post("/{order_id}/items", response_model=OrderItemRead, status_code=status.HTTP_201_CREATED)
async def add_item(
    order_id: UUID,
    payload: AddItemRequest,
    coordinator: OrderItemLifecycleCoordinator = Depends(get_coordinator),
):
    result = await coordinator.add_item(order_id, payload.menu_item_id, payload.quantity, notes=payload.notes)
    return result.unwrap()


@router.patch("/items/{line_item_id}", response_model=OrderItemRead)
async def update_item_quantity(
    line_item_id: UUID,
    payload: UpdateQuantityRequest,
    coordinator: OrderItemLifecycleCoordinator = Depends(get_coordinator),
):
    return (await coordinator.update_quantity(line_item_id, payload.quantity)).unwrap()


@router.delete("/items/{line_item_id}", response_model=OrderRead)
async def remove_item(line_item_id: UUID, coordinator: OrderItemLifecycleCoordinator = Depends(get_coordinator)):
    return (await coordinator.remove_item(line_item_id)).unwrap()


@router.post("/items/{line_item_id}/addons", response_model=OrderItemRead, status_code=status.HTTP_201_CREATED)
async def add_addon(
    line_item_id: UUID,
    payload: AddAddonRequest,
    coordinator: OrderItemLifecycleCoordinator = Depends(get_coordinator),
):
    return (await coordinator.add_addon(line_item_id, payload.addon_id, payload.quantity)).unwrap()


@router.delete("/items/{line_item_id}/addons/{addon_id}", response_model=OrderItemRead)
async def remove_addon(
    line_item_id: UUID,
    addon_id: UUID,
    coordinator: OrderItemLifecycleCoordinator = Depends(get_coordinator),
):
    return (await coordinator.remove_addon(line_item_id, addon_id)).unwrap()


@router.post("/{order_id}/cancel", response_model=OrderRead)
async def cancel_order(order_id: UUID, coordinator: OrderItemLifecycleCoordinator = Depends(get_coordinator)):
    return (await coordinator.cancel_order(order_id)).unwrap()
