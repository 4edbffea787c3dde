"""Live WebSocket feeds

Each feed authenticates with an access token passed as ``?token=``, then
pushes ``{"type": "snapshot", "data": ...}`` frames whenever the underlying
query result changes. A failing query sends ``{"type": "error", ...}`` and
closes the socket.
"""

from datetime import datetime
import json
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from starlette.websockets import WebSocketState
import structlog

from app.analytics.aggregation import build_dashboard
from app.config import settings
from app.database import get_session_factory
from app.models.user import User
from app.realtime.hub import ChangeHub, MENU_ITEMS, ORDERS, SUPPORT, USERS, get_change_hub
from app.realtime.notifications import (
    NotificationCenter,
    NotificationDeriver,
    NotificationRegistry,
    get_notification_registry,
)
from app.realtime.queries import (
    all_orders_query,
    all_tickets_query,
    fetch_all,
    menu_items_query,
    pending_orders_query,
    user_orders_query,
    user_tickets_query,
)
from app.realtime.subscriptions import LiveQuery
from app.schemas.menu import MenuItemResponse
from app.services.names import UserNameLookup
from app.api.auth import user_from_token
from app.api.notifications import notifications_response
from app.api.orders import order_response, split_desk, split_my_orders
from app.api.support import ticket_response

router = APIRouter()
logger = structlog.get_logger()

Render = Callable[[List], Awaitable[Any]]
MessageHandler = Callable[[dict], Awaitable[None]]

FEED_FAILED = "Live feed failed. Please reload."


async def _authenticate(
    websocket: WebSocket,
    token: Optional[str],
    session_factory,
    admin: bool = False,
) -> Optional[User]:
    """Resolve the socket's user or reject the handshake"""
    async with session_factory() as session:
        user = await user_from_token(token, session)

    allowed = user is not None and (user.is_admin if admin else user.email_verified)
    if not allowed:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None

    return user


async def send_snapshot(websocket: WebSocket, data: Any) -> None:
    await websocket.send_json({"type": "snapshot", "data": jsonable_encoder(data)})


async def _stream(
    websocket: WebSocket,
    hub: ChangeHub,
    collections: Iterable[str],
    fetch,
    render: Render,
    name: str,
    on_message: Optional[MessageHandler] = None,
) -> None:
    """Serve one LiveQuery over an accepted socket until either side goes away"""

    async def on_snapshot(docs: List) -> None:
        await send_snapshot(websocket, await render(docs))

    async def on_error(e: Exception) -> None:
        await websocket.send_json({"type": "error", "detail": FEED_FAILED})
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)

    query = LiveQuery(hub, collections, fetch, on_snapshot=on_snapshot, on_error=on_error, name=name)
    await _serve(websocket, query, name, on_message)


async def _serve(
    websocket: WebSocket,
    query: LiveQuery,
    name: str,
    on_message: Optional[MessageHandler] = None,
) -> None:
    try:
        async with query:
            # A failed query has already closed the socket
            while not query.closed and websocket.application_state == WebSocketState.CONNECTED:
                raw = await websocket.receive_text()
                if on_message is None:
                    continue
                try:
                    message = json.loads(raw)
                except ValueError:
                    logger.warning("Ignoring malformed live feed message", feed=name)
                    continue
                if isinstance(message, dict):
                    await on_message(message)
    except WebSocketDisconnect:
        pass
    finally:
        query.close()
        logger.info("Live feed closed", feed=name)


def _plain(render_one: Callable[[Any], Any]) -> Render:
    async def render(docs: List) -> List:
        return [render_one(doc) for doc in docs]

    return render


@router.websocket("/menu")
async def live_menu(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    hub: ChangeHub = Depends(get_change_hub),
    session_factory=Depends(get_session_factory),
):
    """Menu items, alphabetical"""
    if not await _authenticate(websocket, token, session_factory):
        return
    await websocket.accept()

    await _stream(
        websocket,
        hub,
        [MENU_ITEMS],
        fetch_all(session_factory, menu_items_query()),
        _plain(MenuItemResponse.model_validate),
        name="menu",
    )


@router.websocket("/orders/mine")
async def live_my_orders(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    hub: ChangeHub = Depends(get_change_hub),
    session_factory=Depends(get_session_factory),
):
    """Customer's orders split into pending and past"""
    user = await _authenticate(websocket, token, session_factory)
    if not user:
        return
    await websocket.accept()

    async def render(orders: List) -> Any:
        return split_my_orders(orders)

    await _stream(
        websocket,
        hub,
        [ORDERS],
        fetch_all(session_factory, user_orders_query(user.id)),
        render,
        name="my_orders",
    )


@router.websocket("/orders/desk")
async def live_order_desk(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    hub: ChangeHub = Depends(get_change_hub),
    session_factory=Depends(get_session_factory),
):
    """Pending orders split into immediate and scheduled"""
    if not await _authenticate(websocket, token, session_factory, admin=True):
        return
    await websocket.accept()

    async def render(orders: List) -> Any:
        return split_desk(orders)

    await _stream(
        websocket,
        hub,
        [ORDERS],
        fetch_all(session_factory, pending_orders_query()),
        render,
        name="order_desk",
    )


@router.websocket("/orders/all")
async def live_all_orders(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    hub: ChangeHub = Depends(get_change_hub),
    session_factory=Depends(get_session_factory),
):
    """Every order with customer names, plus the dashboard computed from the same snapshot"""
    if not await _authenticate(websocket, token, session_factory, admin=True):
        return
    await websocket.accept()

    async def render(orders: List) -> Any:
        async with session_factory() as session:
            names = UserNameLookup(session)
            await names.resolve(order.user_id for order in orders)

        return {
            "orders": [order_response(order, names.name_for(order.user_id)) for order in orders],
            "dashboard": build_dashboard(
                orders,
                now=datetime.utcnow(),
                revenue_days=settings.dashboard_revenue_days,
                top_limit=settings.dashboard_top_items,
            ),
        }

    await _stream(
        websocket,
        hub,
        [ORDERS, USERS],
        fetch_all(session_factory, all_orders_query()),
        render,
        name="all_orders",
    )


@router.websocket("/support/mine")
async def live_my_tickets(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    hub: ChangeHub = Depends(get_change_hub),
    session_factory=Depends(get_session_factory),
):
    """Customer's support tickets with their message logs"""
    user = await _authenticate(websocket, token, session_factory)
    if not user:
        return
    await websocket.accept()

    await _stream(
        websocket,
        hub,
        [SUPPORT],
        fetch_all(session_factory, user_tickets_query(user.id)),
        _plain(ticket_response),
        name="my_tickets",
    )


@router.websocket("/support")
async def live_all_tickets(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    hub: ChangeHub = Depends(get_change_hub),
    session_factory=Depends(get_session_factory),
):
    """All support tickets with current author names"""
    if not await _authenticate(websocket, token, session_factory, admin=True):
        return
    await websocket.accept()

    async def render(tickets: List) -> Any:
        async with session_factory() as session:
            names = UserNameLookup(session)
            await names.resolve(ticket.user_id for ticket in tickets)

        return [ticket_response(ticket, names.name_for(ticket.user_id)) for ticket in tickets]

    await _stream(
        websocket,
        hub,
        [SUPPORT, USERS],
        fetch_all(session_factory, all_tickets_query()),
        render,
        name="all_tickets",
    )


@router.websocket("/notifications")
async def live_notifications(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    hub: ChangeHub = Depends(get_change_hub),
    registry: NotificationRegistry = Depends(get_notification_registry),
    session_factory=Depends(get_session_factory),
):
    """Order status notifications; accepts ``{"action": "mark_read"}``"""
    user = await _authenticate(websocket, token, session_factory)
    if not user:
        return
    if user.is_admin:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await websocket.accept()

    center = registry.center_for(user.id)

    async def push(center: NotificationCenter) -> None:
        await send_snapshot(websocket, notifications_response(center))

    async def on_error(e: Exception) -> None:
        await websocket.send_json({"type": "error", "detail": FEED_FAILED})
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)

    async def on_message(message: dict) -> None:
        if message.get("action") == "mark_read":
            center.mark_read()
            await push(center)

    deriver = NotificationDeriver(hub, session_factory, center, user.id, on_change=push)

    # Current list first; the deriver only pushes when something new arrives
    await push(center)
    await _serve(websocket, deriver.live(on_error=on_error), "notifications", on_message)
