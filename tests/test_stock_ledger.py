from decimal import Decimal
from uuid import uuid4

import pytest

from core.exceptions import InsufficientStockError, NotFoundError
from db.models import AuditReason
from services.stock_ledger import AuditContext, StockLedger, merge_deltas

from conftest import audit_rows, stock_of

pytestmark = pytest.mark.anyio


def test_merge_deltas_nets_per_component_and_drops_zero():
    a, b = uuid4(), uuid4()
    merged = merge_deltas([(a, Decimal("-0.2")), (b, Decimal("1")), (a, Decimal("-0.3")), (b, Decimal("-1"))])

    assert dict(merged) == {a: Decimal("-0.500")}


def test_merge_deltas_orders_by_id():
    ids = [uuid4() for _ in range(5)]
    merged = merge_deltas([(i, Decimal("1")) for i in ids])

    assert list(merged) == sorted(ids, key=str)


async def test_apply_deltas_updates_balance_and_records_one_entry(session_maker, menu):
    ledger = StockLedger()
    order_id, line_item_id = uuid4(), uuid4()
    async with session_maker() as db:
        async with db.begin():
            result = await ledger.apply_deltas(
                db,
                [(menu.beef, Decimal("-0.2")), (menu.beef, Decimal("-0.2"))],
                AuditContext(reason=AuditReason.ITEM_ADDED, order_id=order_id, line_item_id=line_item_id),
            )

    change = result.change_for(menu.beef)
    assert change.previous_stock == Decimal("10")
    assert change.delta == Decimal("-0.4")
    assert change.new_stock == Decimal("9.6")
    assert await stock_of(session_maker, menu.beef) == Decimal("9.600")

    entries = await audit_rows(session_maker, menu.beef)
    assert len(entries) == 1
    e = entries[0]
    assert (e.previous_stock, e.delta, e.new_stock) == (Decimal("10"), Decimal("-0.4"), Decimal("9.6"))
    assert e.reason == AuditReason.ITEM_ADDED.value
    assert e.cause_order_id == order_id
    assert e.cause_line_item_id == line_item_id


async def test_empty_deltas_are_a_noop(session_maker, menu):
    async with session_maker() as db:
        async with db.begin():
            result = await StockLedger().apply_deltas(db, [], AuditContext(reason=AuditReason.ITEM_ADDED))

    assert result.is_noop
    assert await audit_rows(session_maker) == []


async def test_shortfall_rejects_whole_batch(session_maker, menu):
    ledger = StockLedger()
    with pytest.raises(InsufficientStockError) as exc_info:
        async with session_maker() as db:
            async with db.begin():
                await ledger.apply_deltas(
                    db,
                    [(menu.beef, Decimal("-1")), (menu.flour, Decimal("-10"))],
                    AuditContext(reason=AuditReason.ITEM_ADDED),
                )

    err = exc_info.value
    assert [s.inventory_component_id for s in err.shortfalls] == [menu.flour]
    s = err.shortfall_for(menu.flour)
    assert s.requested == Decimal("10")
    assert s.available == Decimal("5")
    assert "Flour: requested 10" in err.message

    assert await stock_of(session_maker, menu.beef) == Decimal("10")
    assert await stock_of(session_maker, menu.flour) == Decimal("5")
    assert await audit_rows(session_maker) == []


async def test_restoration_never_blocked_by_low_stock(session_maker, menu):
    async with session_maker() as db:
        async with db.begin():
            await StockLedger().apply_deltas(
                db,
                [(menu.flour, Decimal("-5"))],
                AuditContext(reason=AuditReason.MANUAL_ADJUSTMENT),
            )
        async with db.begin():
            await StockLedger().apply_deltas(
                db,
                [(menu.flour, Decimal("2.5"))],
                AuditContext(reason=AuditReason.ITEM_REMOVED),
            )

    assert await stock_of(session_maker, menu.flour) == Decimal("2.5")


async def test_unknown_component_is_not_found(session_maker, menu):
    with pytest.raises(NotFoundError):
        async with session_maker() as db:
            async with db.begin():
                await StockLedger().apply_deltas(db, [(uuid4(), Decimal("-1"))], AuditContext(reason=AuditReason.ITEM_ADDED))


async def test_rejection_is_logged(session_maker, menu, caplog):
    caplog.set_level("WARNING", logger="pos.stock_ledger")
    with pytest.raises(InsufficientStockError):
        async with session_maker() as db:
            async with db.begin():
                await StockLedger().apply_deltas(
                    db, [(menu.flour, Decimal("-6"))], AuditContext(reason=AuditReason.ITEM_ADDED)
                )

    assert any(r.getMessage() == "insufficient_stock" for r in caplog.records)
