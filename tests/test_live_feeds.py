"""Tests for the live WebSocket feeds"""

import asyncio
from contextlib import asynccontextmanager
import json

import pytest
from fastapi import WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from app.api import live
from app.api.auth import create_access_token
from app.realtime.hub import ORDERS
from app.realtime.notifications import NotificationRegistry


class FakeWebSocket:
    """Records frames sent by a feed; ``disconnect()`` ends the session"""

    def __init__(self):
        self.accepted = False
        self.application_state = WebSocketState.CONNECTING
        self.close_code = None
        self.sent = []
        self.incoming = asyncio.Queue()

    async def accept(self):
        self.accepted = True
        self.application_state = WebSocketState.CONNECTED

    async def send_json(self, data):
        self.sent.append(data)

    async def close(self, code=1000):
        self.close_code = code
        self.application_state = WebSocketState.DISCONNECTED
        # The client answers a close with a disconnect
        await self.incoming.put(None)

    async def receive_text(self):
        if self.application_state != WebSocketState.CONNECTED:
            raise RuntimeError('WebSocket is not connected. Need to call "accept" first.')
        message = await self.incoming.get()
        if message is None:
            raise WebSocketDisconnect(code=1000)
        return message

    async def say(self, payload):
        await self.incoming.put(json.dumps(payload))

    async def disconnect(self):
        await self.incoming.put(None)


async def _wait_for(condition):
    for _ in range(200):
        if condition():
            return
        await asyncio.sleep(0.01)
    raise AssertionError("timed out waiting for the feed")


@pytest.mark.asyncio
async def test_feed_rejects_missing_token(hub, session_factory):
    """Test a socket without a valid token is closed before accepting"""
    ws = FakeWebSocket()

    await live.live_menu(ws, token=None, hub=hub, session_factory=session_factory)

    assert not ws.accepted
    assert ws.close_code == status.WS_1008_POLICY_VIOLATION


@pytest.mark.asyncio
async def test_admin_feed_rejects_customers(hub, session_factory, test_user):
    """Test customers cannot open the order desk feed"""
    ws = FakeWebSocket()

    await live.live_order_desk(
        ws, token=create_access_token(test_user), hub=hub, session_factory=session_factory
    )

    assert not ws.accepted
    assert ws.close_code == status.WS_1008_POLICY_VIOLATION


@pytest.mark.asyncio
async def test_my_orders_feed(test_db, hub, session_factory, test_user, make_order):
    """Test the customer's order feed re-sends the whole list on change"""
    ws = FakeWebSocket()
    task = asyncio.create_task(
        live.live_my_orders(
            ws, token=create_access_token(test_user), hub=hub, session_factory=session_factory
        )
    )

    await _wait_for(lambda: len(ws.sent) == 1)
    assert ws.sent[0] == {"type": "snapshot", "data": {"pending": [], "past": []}}

    test_db.add(make_order(test_user, "pending", order_code="ORDER_FEED00001"))
    await test_db.commit()
    await hub.publish(ORDERS)

    await _wait_for(lambda: len(ws.sent) == 2)
    pending = ws.sent[1]["data"]["pending"]
    assert [o["order_code"] for o in pending] == ["ORDER_FEED00001"]

    await ws.disconnect()
    await task

    assert hub.listener_count(ORDERS) == 0


@pytest.mark.asyncio
async def test_all_orders_feed_includes_dashboard(
    test_db, hub, session_factory, test_user, test_admin_user, make_order
):
    """Test the admin order feed carries names and the dashboard"""
    test_db.add(make_order(test_user, "ready", order_code="ORDER_FEED00002"))
    await test_db.commit()

    ws = FakeWebSocket()
    task = asyncio.create_task(
        live.live_all_orders(
            ws, token=create_access_token(test_admin_user), hub=hub, session_factory=session_factory
        )
    )

    await _wait_for(lambda: len(ws.sent) == 1)
    data = ws.sent[0]["data"]
    assert data["orders"][0]["customer_name"] == "Test User"
    assert data["dashboard"]["status_breakdown"]["ready"] == 1

    await ws.disconnect()
    await task


@pytest.mark.asyncio
async def test_feed_error_closes_socket(hub, session_factory, test_user):
    """Test a failing query sends an error frame and closes the socket"""
    calls = []

    @asynccontextmanager
    async def flaky_factory():
        calls.append(1)
        if len(calls) > 1:
            raise RuntimeError("permission denied")
        async with session_factory() as session:
            yield session

    ws = FakeWebSocket()

    await live.live_my_orders(
        ws, token=create_access_token(test_user), hub=hub, session_factory=flaky_factory
    )

    assert ws.sent == [{"type": "error", "detail": live.FEED_FAILED}]
    assert ws.close_code == status.WS_1011_INTERNAL_ERROR
    assert hub.listener_count(ORDERS) == 0


@pytest.mark.asyncio
async def test_notifications_feed(test_db, hub, session_factory, test_user, make_order):
    """Test notifications arrive live and can be marked read"""
    order = make_order(test_user, "pending", order_code="ORDER_FEED00003")
    test_db.add(order)
    await test_db.commit()

    ws = FakeWebSocket()
    task = asyncio.create_task(
        live.live_notifications(
            ws,
            token=create_access_token(test_user),
            hub=hub,
            registry=NotificationRegistry(),
            session_factory=session_factory,
        )
    )

    await _wait_for(lambda: len(ws.sent) == 1)
    assert ws.sent[0]["data"] == {"notifications": [], "has_unread": False}

    order.status = "ready"
    await test_db.commit()
    await hub.publish(ORDERS)

    await _wait_for(lambda: len(ws.sent) == 2)
    data = ws.sent[1]["data"]
    assert data["has_unread"] is True
    assert data["notifications"][0]["message"] == "Order #ORDER_FEED00003 is now ready!"

    await ws.say({"action": "mark_read"})

    await _wait_for(lambda: len(ws.sent) == 3)
    assert ws.sent[2]["data"]["has_unread"] is False
    assert len(ws.sent[2]["data"]["notifications"]) == 1

    await ws.disconnect()
    await task

    assert hub.listener_count(ORDERS) == 0


def test_feed_error_over_real_socket(monkeypatch):
    """Test a feed whose first query fails ends cleanly on a real connection"""
    from types import SimpleNamespace
    from uuid import uuid4

    from fastapi.testclient import TestClient

    from app.database import get_session_factory
    from app.main import app

    user = SimpleNamespace(id=uuid4(), is_admin=False, email_verified=True)

    async def fake_user_from_token(token, session):
        return user if token == "valid" else None

    calls = []

    @asynccontextmanager
    async def failing_factory():
        calls.append(1)
        if len(calls) > 1:
            raise RuntimeError("database unavailable")
        yield None

    monkeypatch.setattr(live, "user_from_token", fake_user_from_token)
    app.dependency_overrides[get_session_factory] = lambda: failing_factory

    try:
        client = TestClient(app)
        with client.websocket_connect("/live/orders/mine?token=valid") as ws:
            assert ws.receive_json() == {"type": "error", "detail": live.FEED_FAILED}
            with pytest.raises(WebSocketDisconnect) as exc:
                ws.receive_json()
            assert exc.value.code == status.WS_1011_INTERNAL_ERROR
    finally:
        app.dependency_overrides.pop(get_session_factory, None)
