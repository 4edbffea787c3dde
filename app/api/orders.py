"""Order management API endpoints"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db
from app.models.menu import MenuItem
from app.models.order import Order, OrderStatus, InvalidStatusTransition, generate_order_code
from app.models.user import User
from app.realtime.hub import ChangeHub, ORDERS, get_change_hub
from app.realtime.queries import all_orders_query, pending_orders_query, user_orders_query
from app.schemas.order import (
    OrderCreate,
    OrderItemCreate,
    OrderResponse,
    PaymentUpdate,
    MyOrdersResponse,
    OrderDeskResponse,
)
from app.services.names import UserNameLookup
from app.api.auth import get_admin_user, get_verified_user

router = APIRouter()
logger = structlog.get_logger()


def order_response(order: Order, customer_name: Optional[str] = None) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        order_code=order.order_code,
        user_id=order.user_id,
        customer_name=customer_name,
        items=order.items_json or [],
        amount_cents=order.amount_cents,
        payment_method=order.payment_method,
        payment_settled=order.payment_settled,
        schedule_later=order.schedule_later,
        status=order.status,
        is_notified=order.is_notified,
        notes=order.notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def split_my_orders(orders: List[Order]) -> MyOrdersResponse:
    return MyOrdersResponse(
        pending=[order_response(o) for o in orders if o.status == OrderStatus.PENDING.value],
        past=[order_response(o) for o in orders if o.status != OrderStatus.PENDING.value],
    )


def split_desk(orders: List[Order]) -> OrderDeskResponse:
    return OrderDeskResponse(
        orders=[order_response(o) for o in orders if not o.is_scheduled],
        scheduled_orders=[order_response(o) for o in orders if o.is_scheduled],
    )


async def _get_order_or_404(order_id: UUID, db: AsyncSession) -> Order:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()

    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    return order


async def _snapshot_items(lines: List[OrderItemCreate], db: AsyncSession) -> List[dict]:
    """Copy name and price of each cart line from the current menu"""
    names = {line.name for line in lines}
    result = await db.execute(
        select(MenuItem).where(MenuItem.name.in_(names)).order_by(MenuItem.created_at)
    )
    menu = {}
    for item in result.scalars().all():
        menu.setdefault(item.name, item)

    unknown = [line.name for line in lines if line.name not in menu]
    if unknown:
        raise HTTPException(
            status_code=400,
            detail=f"Not on the menu: {', '.join(unknown)}",
        )

    return [
        {
            "name": menu[line.name].name,
            "quantity": line.quantity,
            "price_cents": menu[line.name].price_cents,
        }
        for line in lines
    ]


async def _transition(
    order_id: UUID,
    status: OrderStatus,
    db: AsyncSession,
    hub: ChangeHub,
    settle_payment: bool = False,
) -> OrderResponse:
    order = await _get_order_or_404(order_id, db)

    try:
        order.check_transition(status)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))

    values = {"status": status.value, "updated_at": datetime.utcnow()}
    if settle_payment:
        values["payment_settled"] = True

    # Only a row that is still pending is updated
    result = await db.execute(
        update(Order)
        .where(Order.id == order_id, Order.status == OrderStatus.PENDING.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        order = await _get_order_or_404(order_id, db)
        raise HTTPException(
            status_code=409,
            detail=str(InvalidStatusTransition(order.status, status.value)),
        )

    await db.commit()
    order = await _get_order_or_404(order_id, db)

    logger.info("Order status changed", order_id=str(order.id), status=order.status)
    await hub.publish(ORDERS)

    return order_response(order)


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    order_data: OrderCreate,
    current_user: User = Depends(get_verified_user),
    db: AsyncSession = Depends(get_db),
    hub: ChangeHub = Depends(get_change_hub),
):
    """Place an order from the cart"""
    if not order_data.items:
        raise HTTPException(status_code=400, detail="Your cart is empty.")

    items_json = await _snapshot_items(order_data.items, db)
    amount = sum(item["price_cents"] * item["quantity"] for item in items_json)

    order = Order(
        order_code=generate_order_code(),
        user_id=current_user.id,
        items_json=items_json,
        amount_cents=amount,
        payment_method=order_data.payment_method,
        payment_settled=False,
        schedule_later=order_data.schedule_later,
        status=OrderStatus.PENDING.value,
        is_notified=False,
        notes=order_data.notes,
    )

    db.add(order)
    await db.commit()
    await db.refresh(order)

    logger.info(
        "Order placed",
        order_id=str(order.id),
        order_code=order.order_code,
        item_count=len(items_json),
    )
    await hub.publish(ORDERS)

    return order_response(order)


@router.get("/mine", response_model=MyOrdersResponse)
async def list_my_orders(
    current_user: User = Depends(get_verified_user),
    db: AsyncSession = Depends(get_db),
):
    """Current user's orders, split into pending and past"""
    result = await db.execute(user_orders_query(current_user.id))
    return split_my_orders(result.scalars().all())


@router.get("/desk", response_model=OrderDeskResponse)
async def order_desk(
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """Pending orders, split into immediate and scheduled"""
    result = await db.execute(pending_orders_query())
    return split_desk(result.scalars().all())


@router.get("", response_model=List[OrderResponse])
async def list_orders(
    status: Optional[OrderStatus] = None,
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """All orders with customer names, newest first"""
    query = all_orders_query()
    if status:
        query = query.where(Order.status == status.value)

    result = await db.execute(query)
    orders = result.scalars().all()

    names = UserNameLookup(db)
    await names.resolve(order.user_id for order in orders)

    return [order_response(order, names.name_for(order.user_id)) for order in orders]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    current_user: User = Depends(get_verified_user),
    db: AsyncSession = Depends(get_db),
):
    """Get order details; customers only see their own orders"""
    order = await _get_order_or_404(order_id, db)

    if order.user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(status_code=404, detail="Order not found")

    return order_response(order)


@router.post("/{order_id}/ready", response_model=OrderResponse)
async def mark_order_ready(
    order_id: UUID,
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
    hub: ChangeHub = Depends(get_change_hub),
):
    """Mark an order ready; payment is collected on pickup"""
    return await _transition(order_id, OrderStatus.READY, db, hub, settle_payment=True)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: UUID,
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
    hub: ChangeHub = Depends(get_change_hub),
):
    """Cancel a pending order"""
    return await _transition(order_id, OrderStatus.CANCELLED, db, hub)


@router.put("/{order_id}/payment", response_model=OrderResponse)
async def update_payment(
    order_id: UUID,
    payment: PaymentUpdate,
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
    hub: ChangeHub = Depends(get_change_hub),
):
    """Manually set the payment-settled flag"""
    order = await _get_order_or_404(order_id, db)
    order.payment_settled = payment.payment_settled

    await db.commit()
    await db.refresh(order)
    await hub.publish(ORDERS)

    return order_response(order)
