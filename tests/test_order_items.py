from decimal import Decimal
from uuid import uuid4

import pytest

from core.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    InvalidStateError,
    NotFoundError,
)
from db.models import AuditReason, OrderStatus
from schemas.orders import OrderCreate

from conftest import audit_rows, line_item_count, order_status, stock_of

pytestmark = pytest.mark.anyio


async def test_add_then_remove_restores_beef(coordinator, session_maker, menu, order_id):
    item = (await coordinator.add_item(order_id, menu.burger, 1)).unwrap()
    assert await stock_of(session_maker, menu.beef) == Decimal("9.8")

    order = (await coordinator.remove_item(item.id)).unwrap()
    assert await stock_of(session_maker, menu.beef) == Decimal("10.0")
    assert order.items == []

    reasons = [e.reason for e in await audit_rows(session_maker, menu.beef)]
    assert sorted(reasons) == sorted([AuditReason.ITEM_ADDED.value, AuditReason.ITEM_REMOVED.value])


async def test_addon_then_cancel_restores_everything(coordinator, session_maker, menu, order_id):
    item = (await coordinator.add_item(order_id, menu.burger, 1)).unwrap()
    (await coordinator.add_addon(item.id, menu.extra_cheese, 1)).unwrap()
    assert await stock_of(session_maker, menu.cheese) == Decimal("19")

    order = (await coordinator.cancel_order(order_id)).unwrap()

    assert await stock_of(session_maker, menu.cheese) == Decimal("20")
    assert await stock_of(session_maker, menu.beef) == Decimal("10")
    assert order.status == OrderStatus.CANCELLED.value
    assert order.cancelled_at is not None
    assert order.items == []
    assert await line_item_count(session_maker) == 0

    cancelled = [e for e in await audit_rows(session_maker) if e.reason == AuditReason.ORDER_CANCELLED.value]
    assert {e.inventory_component_id for e in cancelled} == {menu.beef, menu.cheese}
    assert all(e.cause_line_item_id == item.id for e in cancelled)


async def test_quantity_increase_scales_menu_item_and_addons(coordinator, session_maker, menu, order_id):
    item = (await coordinator.add_item(order_id, menu.burger, 1)).unwrap()
    (await coordinator.add_addon(item.id, menu.extra_cheese, 1)).unwrap()

    updated = (await coordinator.update_quantity(item.id, 3)).unwrap()

    assert updated.quantity == 3
    assert updated.addons[0].quantity == 3
    assert await stock_of(session_maker, menu.beef) == Decimal("9.4")
    assert await stock_of(session_maker, menu.cheese) == Decimal("17")

    increased = [e for e in await audit_rows(session_maker) if e.reason == AuditReason.QUANTITY_INCREASED.value]
    deltas = {e.inventory_component_id: e.delta for e in increased}
    assert deltas == {menu.beef: Decimal("-0.4"), menu.cheese: Decimal("-2")}


async def test_quantity_decrease_restores_and_detaches_spent_addon(coordinator, session_maker, menu, order_id):
    item = (await coordinator.add_item(order_id, menu.burger, 3)).unwrap()
    (await coordinator.add_addon(item.id, menu.extra_cheese, 1)).unwrap()
    assert await stock_of(session_maker, menu.cheese) == Decimal("19")

    updated = (await coordinator.update_quantity(item.id, 1)).unwrap()

    assert updated.quantity == 1
    assert updated.addons == []
    assert await stock_of(session_maker, menu.beef) == Decimal("9.8")
    assert await stock_of(session_maker, menu.cheese) == Decimal("20")


async def test_unchanged_quantity_writes_nothing(coordinator, session_maker, menu, order_id):
    item = (await coordinator.add_item(order_id, menu.burger, 2)).unwrap()
    before = len(await audit_rows(session_maker))

    same = (await coordinator.update_quantity(item.id, 2)).unwrap()

    assert same.quantity == 2
    assert len(await audit_rows(session_maker)) == before


async def test_flour_shortfall_rejects_add_item(coordinator, session_maker, menu, order_id):
    result = await coordinator.add_item(order_id, menu.pizza, 1)

    assert not result.ok
    assert isinstance(result.error, InsufficientStockError)
    s = result.error.shortfall_for(menu.flour)
    assert s.name == "Flour"
    assert s.requested == Decimal("10")
    assert s.available == Decimal("5")

    assert await stock_of(session_maker, menu.flour) == Decimal("5")
    assert await line_item_count(session_maker) == 0
    assert await audit_rows(session_maker) == []


async def test_rejected_add_leaves_other_lines_untouched(coordinator, session_maker, menu, order_id):
    (await coordinator.add_item(order_id, menu.burger, 2)).unwrap()
    beef_before = await stock_of(session_maker, menu.beef)
    items_before = await line_item_count(session_maker)

    result = await coordinator.add_item(order_id, menu.burger, 100)

    assert isinstance(result.error, InsufficientStockError)
    assert await stock_of(session_maker, menu.beef) == beef_before
    assert await line_item_count(session_maker) == items_before


async def test_rejected_increase_keeps_quantity(coordinator, session_maker, menu, order_id):
    item = (await coordinator.add_item(order_id, menu.burger, 1)).unwrap()

    result = await coordinator.update_quantity(item.id, 1000)

    assert isinstance(result.error, InsufficientStockError)
    order = (await coordinator.get_order(order_id)).unwrap()
    assert order.items[0].quantity == 1
    assert await stock_of(session_maker, menu.beef) == Decimal("9.8")


@pytest.mark.parametrize("bad", [0, -1, True, 1.5, "2"])
async def test_invalid_quantity_rejected_before_any_write(coordinator, session_maker, menu, order_id, bad):
    result = await coordinator.add_item(order_id, menu.burger, bad)

    assert isinstance(result.error, InvalidQuantityError)
    assert await line_item_count(session_maker) == 0


async def test_missing_references_are_not_found(coordinator, menu, order_id):
    assert isinstance((await coordinator.add_item(uuid4(), menu.burger, 1)).error, NotFoundError)
    assert isinstance((await coordinator.add_item(order_id, uuid4(), 1)).error, NotFoundError)
    assert isinstance((await coordinator.update_quantity(uuid4(), 2)).error, NotFoundError)
    assert isinstance((await coordinator.remove_item(uuid4())).error, NotFoundError)

    item = (await coordinator.add_item(order_id, menu.burger, 1)).unwrap()
    assert isinstance((await coordinator.add_addon(item.id, uuid4())).error, NotFoundError)
    assert isinstance((await coordinator.remove_addon(item.id, menu.extra_cheese)).error, NotFoundError)


async def test_inactive_menu_item_is_invalid_state(coordinator, menu, order_id):
    result = await coordinator.add_item(order_id, menu.retired_item, 1)

    assert isinstance(result.error, InvalidStateError)


async def test_closed_order_refuses_new_consumption(coordinator, session_maker, menu, order_id):
    item = (await coordinator.add_item(order_id, menu.burger, 1)).unwrap()
    (await coordinator.cancel_order(order_id)).unwrap()

    assert isinstance((await coordinator.add_item(order_id, menu.burger, 1)).error, InvalidStateError)
    assert isinstance((await coordinator.cancel_order(order_id)).error, InvalidStateError)
    # the item row is gone with the cancellation
    assert isinstance((await coordinator.update_quantity(item.id, 2)).error, NotFoundError)
    assert await order_status(session_maker, order_id) == OrderStatus.CANCELLED.value
    assert await stock_of(session_maker, menu.beef) == Decimal("10")


async def test_duplicate_addon_is_invalid_state(coordinator, session_maker, menu, order_id):
    item = (await coordinator.add_item(order_id, menu.burger, 1)).unwrap()
    (await coordinator.add_addon(item.id, menu.extra_cheese, 1)).unwrap()

    result = await coordinator.add_addon(item.id, menu.extra_cheese, 1)

    assert isinstance(result.error, InvalidStateError)
    assert await stock_of(session_maker, menu.cheese) == Decimal("19")


async def test_remove_addon_restores_its_quantity(coordinator, session_maker, menu, order_id):
    item = (await coordinator.add_item(order_id, menu.burger, 1)).unwrap()
    (await coordinator.add_addon(item.id, menu.extra_cheese, 2)).unwrap()
    assert await stock_of(session_maker, menu.cheese) == Decimal("18")

    updated = (await coordinator.remove_addon(item.id, menu.extra_cheese)).unwrap()

    assert updated.addons == []
    assert await stock_of(session_maker, menu.cheese) == Decimal("20")
    removed = [e for e in await audit_rows(session_maker) if e.reason == AuditReason.ADDON_REMOVED.value]
    assert removed[0].cause_addon_id == menu.extra_cheese


async def test_totals_follow_items_and_addons(coordinator, menu, order_id):
    item = (await coordinator.add_item(order_id, menu.burger, 2)).unwrap()
    assert item.unit_price == Decimal("12.50")
    assert item.total_price == Decimal("25.00")

    item = (await coordinator.add_addon(item.id, menu.extra_cheese, 1)).unwrap()
    assert item.total_price == Decimal("26.50")

    order = (await coordinator.get_order(order_id)).unwrap()
    assert order.subtotal == Decimal("26.50")
    assert order.total == Decimal("26.50")
    assert order.items[0].menu_item_name == "Burger"


async def test_create_order_generates_number(coordinator):
    order = (await coordinator.create_order(OrderCreate())).unwrap()

    assert order.order_number.startswith("ORD-")
    assert order.status == OrderStatus.DRAFT.value
    assert order.items == []


async def test_duplicate_order_number_is_invalid_state(coordinator, order_id):
    result = await coordinator.create_order(OrderCreate(order_number="T-1"))

    assert isinstance(result.error, InvalidStateError)
    assert not result.error.retryable


async def test_unlinked_item_changes_rows_but_not_stock(coordinator, session_maker, menu, order_id):
    item = (await coordinator.add_item(order_id, menu.water, 2)).unwrap()
    assert await line_item_count(session_maker) == 1

    item = (await coordinator.update_quantity(item.id, 5)).unwrap()
    assert item.quantity == 5
    assert item.total_price == Decimal("10.00")

    (await coordinator.add_addon(item.id, menu.extra_cheese, 1)).unwrap()
    assert await stock_of(session_maker, menu.cheese) == Decimal("19")

    order = (await coordinator.remove_item(item.id)).unwrap()
    assert order.items == []
    assert await line_item_count(session_maker) == 0

    assert await stock_of(session_maker, menu.beef) == Decimal("10")
    assert await stock_of(session_maker, menu.flour) == Decimal("5")
    assert await stock_of(session_maker, menu.cheese) == Decimal("20")

    # only the addon ever touched stock
    entries = await audit_rows(session_maker)
    assert {e.inventory_component_id for e in entries} == {menu.cheese}
    assert sorted(e.reason for e in entries) == [AuditReason.ADDON_ADDED.value, AuditReason.ITEM_REMOVED.value]
