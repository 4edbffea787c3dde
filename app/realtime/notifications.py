"""Order status notifications for customers"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy import update
from starlette.requests import HTTPConnection
import structlog

from app.models.order import Order
from app.realtime.hub import ChangeHub, ORDERS
from app.realtime.queries import fetch_all, unannounced_terminal_orders_query
from app.realtime.subscriptions import LiveQuery

logger = structlog.get_logger()


@dataclass
class Notification:
    order_id: UUID
    message: str


def build_message(order: Order) -> str:
    return f"Order #{order.order_code} is now {order.status}!"


class NotificationCenter:
    """Notification list and unread flag for one customer"""

    def __init__(self):
        self.notifications: List[Notification] = []
        self.has_unread = False

    def push(self, new: List[Notification]) -> None:
        """Prepend new notifications, keeping one entry per order"""
        if not new:
            return
        merged: Dict[UUID, Notification] = {}
        for notification in new + self.notifications:
            merged.setdefault(notification.order_id, notification)
        self.notifications = list(merged.values())
        self.has_unread = True

    def mark_read(self) -> None:
        self.has_unread = False


class NotificationRegistry:
    """Process-wide map of user id to NotificationCenter"""

    def __init__(self):
        self._centers: Dict[UUID, NotificationCenter] = {}

    def center_for(self, user_id: UUID) -> NotificationCenter:
        center = self._centers.get(user_id)
        if center is None:
            center = NotificationCenter()
            self._centers[user_id] = center
        return center

    def discard(self, user_id: UUID) -> None:
        self._centers.pop(user_id, None)


def get_notification_registry(conn: HTTPConnection) -> NotificationRegistry:
    """Dependency: the registry created with the application"""
    return conn.app.state.notification_registry


class NotificationDeriver:
    """
    Turns orders that reached ready/cancelled into customer notifications.

    Every detected order in a snapshot is announced locally first, then a
    single batched write flags all of them ``is_notified``. If that write
    fails the order is picked up again by a later snapshot, so a customer
    may see the same notification twice.
    """

    def __init__(
        self,
        hub: ChangeHub,
        session_factory,
        center: NotificationCenter,
        user_id: UUID,
        on_change: Optional[Callable[[NotificationCenter], Awaitable[None]]] = None,
    ):
        self.hub = hub
        self.session_factory = session_factory
        self.center = center
        self.user_id = user_id
        self.on_change = on_change
        self._fetch = fetch_all(session_factory, unannounced_terminal_orders_query(user_id))

    def live(self, on_error=None) -> LiveQuery:
        """LiveQuery that derives notifications on every snapshot"""
        return LiveQuery(
            self.hub,
            [ORDERS],
            self._fetch,
            on_snapshot=self.handle_snapshot,
            on_error=on_error,
            name="order_notifications",
        )

    async def derive_once(self) -> List[Notification]:
        """Run a single fetch-and-derive pass"""
        orders = await self._fetch()
        return await self.handle_snapshot(orders)

    async def handle_snapshot(self, orders: List[Order]) -> List[Notification]:
        if not orders:
            return []

        new = [Notification(order_id=order.id, message=build_message(order)) for order in orders]
        self.center.push(new)

        logger.info(
            "Order notifications derived",
            user_id=str(self.user_id),
            count=len(new),
        )

        if self.on_change is not None:
            await self.on_change(self.center)

        await self._mark_announced([order.id for order in orders])
        return new

    async def _mark_announced(self, order_ids: List[UUID]) -> None:
        try:
            async with self.session_factory() as session:
                await session.execute(
                    update(Order)
                    .where(Order.id.in_(order_ids))
                    .values(is_notified=True)
                    .execution_options(synchronize_session=False)
                )
                await session.commit()
        except Exception as e:
            logger.error(
                "Failed to mark orders as notified",
                user_id=str(self.user_id),
                order_ids=[str(order_id) for order_id in order_ids],
                error=str(e),
            )
            return

        await self.hub.publish(ORDERS)
