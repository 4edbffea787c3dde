"""Queries shared by HTTP endpoints and live feeds"""

from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from app.models.menu import MenuItem
from app.models.order import Order, OrderStatus, TERMINAL_STATUSES
from app.models.support import SupportTicket


def menu_items_query() -> Select:
    return select(MenuItem).order_by(MenuItem.name)


def user_orders_query(user_id: UUID) -> Select:
    return (
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc())
    )


def pending_orders_query() -> Select:
    return (
        select(Order)
        .where(Order.status == OrderStatus.PENDING.value)
        .order_by(Order.created_at)
    )


def all_orders_query() -> Select:
    return select(Order).order_by(Order.created_at.desc())


def unannounced_terminal_orders_query(user_id: UUID) -> Select:
    """Orders of one user that reached a terminal status and were not announced yet"""
    return (
        select(Order)
        .where(
            Order.user_id == user_id,
            Order.status.in_(TERMINAL_STATUSES),
            Order.is_notified == False,
        )
        .order_by(Order.updated_at.desc())
    )


def terminal_order_codes_query(user_id: UUID) -> Select:
    return (
        select(Order.order_code)
        .where(Order.user_id == user_id, Order.status.in_(TERMINAL_STATUSES))
        .order_by(Order.created_at.desc())
    )


def user_tickets_query(user_id: UUID) -> Select:
    return (
        select(SupportTicket)
        .where(SupportTicket.user_id == user_id)
        .options(selectinload(SupportTicket.messages))
        .order_by(SupportTicket.last_updated_at.desc())
    )


def all_tickets_query() -> Select:
    return (
        select(SupportTicket)
        .options(selectinload(SupportTicket.messages))
        .order_by(SupportTicket.last_updated_at.desc())
    )


def fetch_all(session_factory, query: Select):
    """Build a fetch coroutine for LiveQuery that runs ``query`` in a fresh session"""
    async def fetch() -> List:
        async with session_factory() as session:
            result = await session.execute(
                query.execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    return fetch
