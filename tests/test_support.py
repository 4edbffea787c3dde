"""Tests for support tickets"""

import pytest
from httpx import AsyncClient

from app.api.auth import create_access_token


def _auth(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


async def _open_ticket(client, user, **overrides):
    payload = {
        "area": "order-query",
        "subject": "Missing coffee",
        "description": "My order came without the coffee.",
        "order_code": "ORDER_ABC123XYZ",
    }
    payload.update(overrides)
    return await client.post("/support", json=payload, headers=_auth(user))


@pytest.mark.asyncio
async def test_open_ticket(client: AsyncClient, test_user):
    """Test the description becomes the first message"""
    response = await _open_ticket(client, test_user)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "Open"
    assert data["area"] == "order-query"
    assert data["user_name"] == "Test User"
    assert len(data["messages"]) == 1
    assert data["messages"][0]["text"] == "My order came without the coffee."
    assert data["messages"][0]["sender_name"] == "Test User"


@pytest.mark.asyncio
async def test_open_ticket_default_area(client: AsyncClient, test_user):
    """Test tickets default to feedback"""
    response = await client.post(
        "/support",
        json={"subject": "Great food", "description": "Loved the biryani."},
        headers=_auth(test_user),
    )

    assert response.status_code == 201
    assert response.json()["area"] == "feedback"
    assert response.json()["order_code"] is None


@pytest.mark.asyncio
async def test_conversation(client: AsyncClient, test_user, test_admin_user):
    """Test customer and admin replies are appended in order"""
    ticket = (await _open_ticket(client, test_user)).json()

    response = await client.post(
        f"/support/{ticket['id']}/messages",
        json={"text": "Sorry about that, refund on the way."},
        headers=_auth(test_admin_user),
    )
    assert response.status_code == 200

    response = await client.post(
        f"/support/{ticket['id']}/messages",
        json={"text": "Thanks!"},
        headers=_auth(test_user),
    )

    assert response.status_code == 200
    messages = response.json()["messages"]
    assert [m["text"] for m in messages] == [
        "My order came without the coffee.",
        "Sorry about that, refund on the way.",
        "Thanks!",
    ]
    assert [m["sender_name"] for m in messages] == ["Test User", "Admin", "Test User"]


@pytest.mark.asyncio
async def test_blank_message_rejected(client: AsyncClient, test_user):
    """Test whitespace-only replies are not sent"""
    ticket = (await _open_ticket(client, test_user)).json()

    response = await client.post(
        f"/support/{ticket['id']}/messages",
        json={"text": "   "},
        headers=_auth(test_user),
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_toggle_status(client: AsyncClient, test_user, test_admin_user):
    """Test an admin resolving and re-opening a ticket"""
    ticket = (await _open_ticket(client, test_user)).json()

    response = await client.post(f"/support/{ticket['id']}/toggle", headers=_auth(test_admin_user))

    assert response.status_code == 200
    assert response.json()["status"] == "Resolved"

    response = await client.post(f"/support/{ticket['id']}/toggle", headers=_auth(test_admin_user))

    assert response.json()["status"] == "Open"


@pytest.mark.asyncio
async def test_customers_cannot_toggle(client: AsyncClient, test_user):
    """Test ticket status is admin only"""
    ticket = (await _open_ticket(client, test_user)).json()

    response = await client.post(f"/support/{ticket['id']}/toggle", headers=_auth(test_user))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_my_tickets(client: AsyncClient, test_user, test_admin_user):
    """Test customers see only their own tickets"""
    await _open_ticket(client, test_user)

    response = await client.get("/support/mine", headers=_auth(test_user))

    assert response.status_code == 200
    assert len(response.json()) == 1

    response = await client.get("/support", headers=_auth(test_admin_user))

    assert response.status_code == 200
    assert [t["user_name"] for t in response.json()] == ["Test User"]


@pytest.mark.asyncio
async def test_admin_filter_by_status(client: AsyncClient, test_user, test_admin_user):
    """Test filtering the admin ticket list"""
    ticket = (await _open_ticket(client, test_user)).json()
    await _open_ticket(client, test_user, subject="Another one")
    await client.post(f"/support/{ticket['id']}/toggle", headers=_auth(test_admin_user))

    response = await client.get(
        "/support", params={"status": "Resolved"}, headers=_auth(test_admin_user)
    )

    assert [t["id"] for t in response.json()] == [ticket["id"]]


@pytest.mark.asyncio
async def test_order_options(client: AsyncClient, test_db, test_user, make_order):
    """Test only finished orders are offered as ticket references"""
    test_db.add(make_order(test_user, "ready", order_code="ORDER_DONE00001"))
    test_db.add(make_order(test_user, "pending", order_code="ORDER_WAIT00001"))
    await test_db.commit()

    response = await client.get("/support/order-options", headers=_auth(test_user))

    assert response.status_code == 200
    assert response.json() == ["ORDER_DONE00001"]


@pytest.mark.asyncio
async def test_unverified_customer_cannot_reply(client: AsyncClient, test_db, unverified_user):
    """Test replying from the customer area needs a verified email"""
    from app.models.support import SupportMessage, SupportTicket

    ticket = SupportTicket(
        user_id=unverified_user.id,
        user_name=unverified_user.name,
        area="feedback",
        subject="Hello",
    )
    ticket.messages.append(
        SupportMessage(
            position=0,
            text="First message",
            sender_id=unverified_user.id,
            sender_name=unverified_user.name,
        )
    )
    test_db.add(ticket)
    await test_db.commit()

    response = await client.post(
        f"/support/{ticket.id}/messages",
        json={"text": "Anyone there?"},
        headers=_auth(unverified_user),
    )

    assert response.status_code == 403
    assert response.headers["X-Redirect-To"] == "/verify-email"


@pytest.mark.asyncio
async def test_simultaneous_replies(client: AsyncClient, test_engine, test_user, test_admin_user):
    """Test replies sent at the same time both land, each in its own position"""
    import asyncio
    from uuid import UUID

    from sqlalchemy import select
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from app.api.support import add_message
    from app.models.support import SupportMessage
    from app.realtime.hub import ChangeHub
    from app.schemas.support import MessageCreate

    ticket_id = UUID((await _open_ticket(client, test_user)).json()["id"])

    factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    hub = ChangeHub()

    async with factory() as first, factory() as second:
        await asyncio.gather(
            add_message(ticket_id, MessageCreate(text="Still waiting"), test_user, first, hub),
            add_message(ticket_id, MessageCreate(text="On its way"), test_admin_user, second, hub),
        )

    async with factory() as session:
        result = await session.execute(
            select(SupportMessage)
            .where(SupportMessage.ticket_id == ticket_id)
            .order_by(SupportMessage.position)
        )
        messages = result.scalars().all()

    assert [m.position for m in messages] == [0, 1, 2]
    assert {m.text for m in messages[1:]} == {"Still waiting", "On its way"}
