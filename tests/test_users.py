"""Tests for user administration, account settings and analytics endpoints"""

from datetime import timedelta

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_list_users(admin_client: AsyncClient, test_user):
    """Test admins can list all users"""
    response = await admin_client.get("/users")

    assert response.status_code == 200
    emails = {user["email"] for user in response.json()}
    assert emails == {"test@example.com", "admin@example.com"}


@pytest.mark.asyncio
async def test_list_users_admin_only(authenticated_client: AsyncClient):
    """Test customers cannot list users"""
    response = await authenticated_client.get("/users")

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_toggle_admin(admin_client: AsyncClient, test_user):
    """Test granting and revoking admin rights"""
    response = await admin_client.post(f"/users/{test_user.id}/toggle-admin")

    assert response.status_code == 200
    assert response.json()["is_admin"] is True

    response = await admin_client.post(f"/users/{test_user.id}/toggle-admin")

    assert response.json()["is_admin"] is False


@pytest.mark.asyncio
async def test_cannot_toggle_self(admin_client: AsyncClient, test_admin_user):
    """Test an admin cannot change their own admin flag"""
    response = await admin_client.post(f"/users/{test_admin_user.id}/toggle-admin")

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_toggle_unknown_user(admin_client: AsyncClient):
    """Test toggling a user that does not exist"""
    response = await admin_client.post("/users/00000000-0000-0000-0000-000000000000/toggle-admin")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_account(authenticated_client: AsyncClient):
    """Test reading and renaming the current account"""
    response = await authenticated_client.get("/account")

    assert response.status_code == 200
    assert response.json() == {"name": "Test User", "email": "test@example.com"}

    response = await authenticated_client.put("/account", json={"name": "Renamed User"})

    assert response.status_code == 200
    assert response.json()["name"] == "Renamed User"

    response = await authenticated_client.get("/auth/me")

    assert response.json()["name"] == "Renamed User"
    assert response.json()["is_admin"] is False


@pytest.mark.asyncio
async def test_account_rename_shows_in_admin_lists(
    client: AsyncClient, test_db, test_user, test_admin_user, make_order
):
    """Test admin order lists resolve the customer's current name"""
    from app.api.auth import create_access_token

    test_db.add(make_order(test_user, "pending", order_code="ORDER_NAME00001"))
    await test_db.commit()

    await client.put(
        "/account",
        json={"name": "Asha K"},
        headers={"Authorization": f"Bearer {create_access_token(test_user)}"},
    )
    response = await client.get(
        "/orders",
        headers={"Authorization": f"Bearer {create_access_token(test_admin_user)}"},
    )

    assert response.json()[0]["customer_name"] == "Asha K"


@pytest.mark.asyncio
async def test_dashboard(admin_client: AsyncClient, test_db, test_user, make_order):
    """Test the dashboard endpoint aggregates stored orders"""
    items = [{"name": "Veg Biryani", "quantity": 2, "price_cents": 12000}]
    test_db.add(make_order(test_user, "ready", items, age=timedelta(days=1), order_code="ORDER_DASH00001"))
    test_db.add(make_order(test_user, "ready", items, age=timedelta(days=40), order_code="ORDER_DASH00002"))
    test_db.add(make_order(test_user, "pending", order_code="ORDER_DASH00003"))
    await test_db.commit()

    response = await admin_client.get("/analytics/dashboard")

    assert response.status_code == 200
    data = response.json()
    assert data["top_items"] == [{"name": "Veg Biryani", "quantity": 4}]
    assert len(data["daily_revenue"]) == 1
    assert data["daily_revenue"][0]["revenue_cents"] == 24000
    assert data["status_breakdown"]["ready"] == 2
    assert data["status_breakdown"]["pending"] == 1
    assert data["status_breakdown"]["total"] == 3


@pytest.mark.asyncio
async def test_payments(admin_client: AsyncClient, test_db, test_user, make_order):
    """Test the payments overview endpoint"""
    test_db.add(make_order(test_user, "ready", order_code="ORDER_PAY000001"))
    test_db.add(make_order(test_user, "pending", order_code="ORDER_PAY000002"))
    await test_db.commit()

    response = await admin_client.get("/analytics/payments")

    assert response.status_code == 200
    data = response.json()
    assert data["total_revenue_cents"] == 6000
    assert data["pending_payments"] == 1
    assert data["total_transactions"] == 2


@pytest.mark.asyncio
async def test_analytics_admin_only(authenticated_client: AsyncClient):
    """Test customers cannot see analytics"""
    response = await authenticated_client.get("/analytics/dashboard")

    assert response.status_code == 403
