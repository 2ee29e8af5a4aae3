"""
Order-item lifecycle coordinator.

    {absent} --add_item--> {present, qty=q} --update_quantity--> {present, qty=q'}
        ^                        |  add_addon / remove_addon (orthogonal)
        +------ remove_item -----+
    cancel_order = remove_item for every line item + status CANCELLED

Every public operation is one transaction: resolve recipes, compute signed
deltas, one stock ledger call (one per line item for cancel_order), then
the order/line-item/addon row changes and total recompute. Any failure
rolls everything back, rows and stock alike.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from core.exceptions import InvalidQuantityError, InvalidStateError, NotFoundError
from core.logging_config import get_logger
from core.quantities import ZERO, is_positive_int, quantize_money
from core.result import OperationResult
from db.models import (
    CLOSED_ORDER_STATUSES,
    Addon,
    AuditReason,
    MenuItem,
    Order,
    OrderItem,
    OrderItemAddon,
    OrderStatus,
)
from schemas.orders import OrderCreate, OrderItemAddonRead, OrderItemRead, OrderRead
from services.base import TransactionalService
from services.recipe_resolver import RecipeResolver, SellableUnit, recipe_deltas
from services.stock_ledger import AuditContext, StockLedger

logger = get_logger("order_items")

Delta = Tuple[UUID, Decimal]


def _serialize_item(it: OrderItem) -> OrderItemRead:
    return OrderItemRead(
        id=it.id,
        order_id=it.order_id,
        menu_item_id=it.menu_item_id,
        menu_item_name=it.menu_item.name if it.menu_item else None,
        quantity=it.quantity,
        unit_price=it.unit_price,
        total_price=it.total_price,
        notes=it.notes,
        status=it.status,
        addons=[
            OrderItemAddonRead(
                id=a.id,
                addon_id=a.addon_id,
                addon_name=a.addon_name,
                quantity=a.quantity,
                unit_price=a.unit_price,
                total_price=a.total_price,
            )
            for a in (it.addons or [])
        ],
    )


def _serialize_order(o: Order) -> OrderRead:
    return OrderRead(
        id=o.id,
        order_number=o.order_number,
        status=o.status,
        type=o.type,
        subtotal=o.subtotal,
        total=o.total,
        notes=o.notes,
        created_at=o.created_at,
        cancelled_at=o.cancelled_at,
        items=[_serialize_item(it) for it in (o.items or [])],
    )


def _recompute_totals(order: Order) -> None:
    subtotal = ZERO
    for it in order.items:
        addons_total = sum((a.total_price for a in it.addons), ZERO)
        it.total_price = quantize_money(it.unit_price * it.quantity + addons_total)
        subtotal += it.total_price
    order.subtotal = quantize_money(subtotal)
    order.total = order.subtotal


def _require_quantity(field: str, value) -> None:
    if not is_positive_int(value):
        raise InvalidQuantityError(field, value)


def _require_open(order: Order) -> None:
    if order.status in CLOSED_ORDER_STATUSES:
        raise InvalidStateError(
            f"Order {order.order_number} is {order.status}",
            entity="Order",
            entity_id=order.id,
            state=order.status,
        )


def _find_item(order: Order, line_item_id: UUID) -> OrderItem:
    for it in order.items:
        if it.id == line_item_id:
            return it
    raise NotFoundError("Order item", line_item_id)


def _find_addon(item: OrderItem, addon_id: UUID) -> Optional[OrderItemAddon]:
    for a in item.addons:
        if a.addon_id == addon_id:
            return a
    return None


class OrderItemLifecycleCoordinator(TransactionalService):
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        resolver: Optional[RecipeResolver] = None,
        ledger: Optional[StockLedger] = None,
    ):
        super().__init__(session_maker)
        self.resolver = resolver or RecipeResolver()
        self.ledger = ledger or StockLedger()

    # ------------------------------------------------------------------
    # loading
    # ------------------------------------------------------------------

    async def _load_order(self, db: AsyncSession, order_id: UUID) -> Order:
        res = await db.execute(
            select(Order)
            .options(
                selectinload(Order.items).selectinload(OrderItem.addons),
                selectinload(Order.items).selectinload(OrderItem.menu_item),
            )
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        o = res.scalar_one_or_none()
        if not o:
            raise NotFoundError("Order", order_id)
        return o

    async def _load_order_for_item(self, db: AsyncSession, line_item_id: UUID) -> Tuple[Order, OrderItem]:
        res = await db.execute(select(OrderItem.order_id).where(OrderItem.id == line_item_id))
        order_id = res.scalar_one_or_none()
        if order_id is None:
            raise NotFoundError("Order item", line_item_id)
        order = await self._load_order(db, order_id)
        return order, _find_item(order, line_item_id)

    async def _item_deltas(self, db: AsyncSession, item: OrderItem, sign: int) -> List[Delta]:
        """Deltas for the whole line item: its menu recipe plus every attached addon."""
        deltas = recipe_deltas(
            await self.resolver.resolve(db, SellableUnit.menu_item(item.menu_item_id)),
            sign * item.quantity,
        )
        for a in item.addons:
            deltas += recipe_deltas(
                await self.resolver.resolve(db, SellableUnit.addon(a.addon_id)),
                sign * a.quantity,
            )
        return deltas

    # ------------------------------------------------------------------
    # order service surface
    # ------------------------------------------------------------------

    async def create_order(self, payload: OrderCreate) -> OperationResult[OrderRead]:
        async def work(db: AsyncSession) -> OrderRead:
            number = payload.order_number or f"ORD-{datetime.now(timezone.utc):%Y%m%d%H%M%S}-{uuid4().hex[:6].upper()}"
            res = await db.execute(select(Order.id).where(Order.order_number == number))
            if res.scalar_one_or_none() is not None:
                raise InvalidStateError(
                    f"Order number {number} is already taken", entity="Order", state="EXISTS"
                )
            o = Order(
                order_number=number,
                status=OrderStatus.DRAFT.value,
                type=payload.type,
                notes=payload.notes,
                subtotal=ZERO,
                total=ZERO,
                items=[],
            )
            db.add(o)
            await db.flush()
            return _serialize_order(o)

        return await self._run("create_order", work)

    async def get_order(self, order_id: UUID) -> OperationResult[OrderRead]:
        async def work(db: AsyncSession) -> OrderRead:
            return _serialize_order(await self._load_order(db, order_id))

        return await self._run("get_order", work)

    # ------------------------------------------------------------------
    # stock-affecting operations
    # ------------------------------------------------------------------

    async def add_item(
        self,
        order_id: UUID,
        menu_item_id: UUID,
        quantity: int,
        notes: Optional[str] = None,
    ) -> OperationResult[OrderItemRead]:
        try:
            _require_quantity("quantity", quantity)
        except InvalidQuantityError as e:
            return OperationResult.failure(e)

        async def work(db: AsyncSession) -> OrderItemRead:
            order = await self._load_order(db, order_id)
            _require_open(order)

            menu_item = await db.get(MenuItem, menu_item_id)
            if not menu_item:
                raise NotFoundError("Menu item", menu_item_id)
            if not menu_item.is_active:
                raise InvalidStateError(
                    f"Menu item {menu_item.name} is not active",
                    entity="MenuItem",
                    entity_id=menu_item.id,
                    state="INACTIVE",
                )

            line_item_id = uuid4()
            recipe = await self.resolver.resolve(db, SellableUnit.menu_item(menu_item_id))
            await self.ledger.apply_deltas(
                db,
                recipe_deltas(recipe, -quantity),
                AuditContext(reason=AuditReason.ITEM_ADDED, order_id=order.id, line_item_id=line_item_id),
            )

            item = OrderItem(
                id=line_item_id,
                order_id=order.id,
                menu_item_id=menu_item.id,
                menu_item=menu_item,
                quantity=quantity,
                unit_price=menu_item.price,
                total_price=ZERO,
                notes=notes,
                status="PENDING",
                addons=[],
            )
            order.items.append(item)
            _recompute_totals(order)
            await db.flush()
            return _serialize_item(item)

        return await self._run("add_item", work)

    async def update_quantity(self, line_item_id: UUID, new_quantity: int) -> OperationResult[OrderItemRead]:
        try:
            _require_quantity("new_quantity", new_quantity)
        except InvalidQuantityError as e:
            return OperationResult.failure(e)

        async def work(db: AsyncSession) -> OrderItemRead:
            order, item = await self._load_order_for_item(db, line_item_id)
            _require_open(order)

            dq = new_quantity - item.quantity
            if dq == 0:
                return _serialize_item(item)

            reason = AuditReason.QUANTITY_INCREASED if dq > 0 else AuditReason.QUANTITY_DECREASED
            deltas = recipe_deltas(
                await self.resolver.resolve(db, SellableUnit.menu_item(item.menu_item_id)),
                -dq,
            )

            # Addon quantities follow the parent by the same dq; an addon that
            # would drop below 1 is detached and only its remainder restored.
            detached: List[OrderItemAddon] = []
            for a in item.addons:
                addon_recipe = await self.resolver.resolve(db, SellableUnit.addon(a.addon_id))
                if a.quantity + dq >= 1:
                    deltas += recipe_deltas(addon_recipe, -dq)
                    a.quantity = a.quantity + dq
                    a.total_price = quantize_money(a.unit_price * a.quantity)
                else:
                    deltas += recipe_deltas(addon_recipe, a.quantity)
                    detached.append(a)

            await self.ledger.apply_deltas(
                db,
                deltas,
                AuditContext(reason=reason, order_id=order.id, line_item_id=item.id),
            )

            for a in detached:
                item.addons.remove(a)
            item.quantity = new_quantity
            _recompute_totals(order)
            await db.flush()
            logger.info(
                "line_item_quantity_changed",
                extra={"line_item_id": item.id, "delta_quantity": dq, "detached_addons": len(detached)},
            )
            return _serialize_item(item)

        return await self._run("update_quantity", work)

    async def remove_item(self, line_item_id: UUID) -> OperationResult[OrderRead]:
        async def work(db: AsyncSession) -> OrderRead:
            order, item = await self._load_order_for_item(db, line_item_id)
            await self.ledger.apply_deltas(
                db,
                await self._item_deltas(db, item, +1),
                AuditContext(reason=AuditReason.ITEM_REMOVED, order_id=order.id, line_item_id=item.id),
            )
            order.items.remove(item)
            _recompute_totals(order)
            await db.flush()
            return _serialize_order(order)

        return await self._run("remove_item", work)

    async def add_addon(self, line_item_id: UUID, addon_id: UUID, quantity: int = 1) -> OperationResult[OrderItemRead]:
        try:
            _require_quantity("quantity", quantity)
        except InvalidQuantityError as e:
            return OperationResult.failure(e)

        async def work(db: AsyncSession) -> OrderItemRead:
            order, item = await self._load_order_for_item(db, line_item_id)
            _require_open(order)

            addon = await db.get(Addon, addon_id)
            if not addon:
                raise NotFoundError("Addon", addon_id)
            if not addon.is_active:
                raise InvalidStateError(
                    f"Addon {addon.name} is not active", entity="Addon", entity_id=addon.id, state="INACTIVE"
                )
            if _find_addon(item, addon_id) is not None:
                raise InvalidStateError(
                    f"Addon {addon.name} is already attached to this item",
                    entity="OrderItemAddon",
                    entity_id=item.id,
                    state="ATTACHED",
                )

            recipe = await self.resolver.resolve(db, SellableUnit.addon(addon_id))
            await self.ledger.apply_deltas(
                db,
                recipe_deltas(recipe, -quantity),
                AuditContext(
                    reason=AuditReason.ADDON_ADDED,
                    order_id=order.id,
                    line_item_id=item.id,
                    addon_id=addon_id,
                ),
            )

            item.addons.append(
                OrderItemAddon(
                    order_item_id=item.id,
                    addon_id=addon.id,
                    addon=addon,
                    addon_name=addon.name,
                    quantity=quantity,
                    unit_price=addon.price,
                    total_price=quantize_money(addon.price * quantity),
                )
            )
            _recompute_totals(order)
            await db.flush()
            return _serialize_item(item)

        return await self._run("add_addon", work)

    async def remove_addon(self, line_item_id: UUID, addon_id: UUID) -> OperationResult[OrderItemRead]:
        async def work(db: AsyncSession) -> OrderItemRead:
            order, item = await self._load_order_for_item(db, line_item_id)
            attached = _find_addon(item, addon_id)
            if attached is None:
                raise NotFoundError("Order item addon", addon_id)

            recipe = await self.resolver.resolve(db, SellableUnit.addon(addon_id))
            await self.ledger.apply_deltas(
                db,
                recipe_deltas(recipe, attached.quantity),
                AuditContext(
                    reason=AuditReason.ADDON_REMOVED,
                    order_id=order.id,
                    line_item_id=item.id,
                    addon_id=addon_id,
                ),
            )
            item.addons.remove(attached)
            _recompute_totals(order)
            await db.flush()
            return _serialize_item(item)

        return await self._run("remove_addon", work)

    async def cancel_order(self, order_id: UUID) -> OperationResult[OrderRead]:
        async def work(db: AsyncSession) -> OrderRead:
            order = await self._load_order(db, order_id)
            if order.status in CLOSED_ORDER_STATUSES:
                raise InvalidStateError(
                    f"Order {order.order_number} is already {order.status}",
                    entity="Order",
                    entity_id=order.id,
                    state=order.status,
                )

            for item in list(order.items):
                await self.ledger.apply_deltas(
                    db,
                    await self._item_deltas(db, item, +1),
                    AuditContext(reason=AuditReason.ORDER_CANCELLED, order_id=order.id, line_item_id=item.id),
                )
                order.items.remove(item)

            order.status = OrderStatus.CANCELLED.value
            order.cancelled_at = datetime.now(timezone.utc)
            _recompute_totals(order)
            await db.flush()
            logger.info("order_cancelled", extra={"order_id": order.id})
            return _serialize_order(order)

        return await self._run("cancel_order", work)
