from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from routers.deps import get_inventory_service
from schemas.inventory import (
    AvailabilityRequest,
    AvailabilityResponse,
    InventoryComponentCreate,
    InventoryComponentRead,
    ReconciliationReport,
    StockAdjustmentCreate,
    StockAuditEntryRead,
)
from services.inventory_service import InventoryService

router = APIRouter()


@router.get("/components", response_model=List[InventoryComponentRead])
async def list_components(
    category: Optional[str] = Query(None),
    inventory: InventoryService = Depends(get_inventory_service),
):
    return await inventory.list_components(category=category)


@router.post("/components", response_model=InventoryComponentRead, status_code=status.HTTP_201_CREATED)
async def create_component(
    payload: InventoryComponentCreate,
    inventory: InventoryService = Depends(get_inventory_service),
):
    return (await inventory.create_component(payload)).unwrap()


@router.get("/components/{component_id}", response_model=InventoryComponentRead)
async def get_component(component_id: UUID, inventory: InventoryService = Depends(get_inventory_service)):
    return (await inventory.get_component(component_id)).unwrap()


@router.post("/components/{component_id}/adjust", response_model=InventoryComponentRead)
async def adjust_stock(
    component_id: UUID,
    payload: StockAdjustmentCreate,
    inventory: InventoryService = Depends(get_inventory_service),
):
    return (await inventory.adjust_stock(component_id, payload)).unwrap()


@router.get("/low-stock", response_model=List[InventoryComponentRead])
async def low_stock(inventory: InventoryService = Depends(get_inventory_service)):
    return await inventory.low_stock()


@router.post("/check-availability", response_model=AvailabilityResponse)
async def check_availability(
    payload: AvailabilityRequest,
    inventory: InventoryService = Depends(get_inventory_service),
):
    return (await inventory.check_availability(payload)).unwrap()


@router.get("/audit", response_model=List[StockAuditEntryRead])
async def list_audit_entries(
    component_id: Optional[UUID] = Query(None),
    order_id: Optional[UUID] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    inventory: InventoryService = Depends(get_inventory_service),
):
    return await inventory.list_audit_entries(component_id=component_id, order_id=order_id, limit=limit)


@router.get("/reconciliation", response_model=ReconciliationReport)
async def reconciliation(inventory: InventoryService = Depends(get_inventory_service)):
    return await inventory.reconcile()
