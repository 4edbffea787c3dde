"""Test configuration and fixtures"""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from uuid import uuid4

import app.api.auth as auth_api
from app.main import app
from app.database import Base, get_db, get_session_factory
from app.models.user import User
from app.models.menu import MenuItem
from app.models.order import Order, OrderStatus
from app.api.auth import get_password_hash, create_access_token
from app.realtime.hub import ChangeHub
from app.realtime.notifications import NotificationRegistry


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """In-memory database shared by every connection of one test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    """Create test database session"""
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session


@pytest.fixture
def session_factory(test_db):
    """Session factory handing out the test session, as used by live queries"""
    @asynccontextmanager
    async def factory():
        yield test_db

    return factory


@pytest.fixture
def hub():
    return ChangeHub()


@pytest.fixture(autouse=True)
def queued_emails(monkeypatch):
    """Record email jobs instead of sending them to the broker"""
    queued = []

    def fake_queue_email(task, user):
        queued.append((task.name, user.id))

    monkeypatch.setattr(auth_api, "queue_email", fake_queue_email)
    return queued


async def _make_user(test_db, email, password, name, is_admin=False, email_verified=True):
    user = User(
        id=uuid4(),
        email=email,
        hashed_password=get_password_hash(password),
        name=name,
        is_admin=is_admin,
        is_active=True,
        email_verified=email_verified,
    )
    test_db.add(user)
    await test_db.commit()
    return user


@pytest.fixture
async def test_user(test_db):
    """Create a verified customer"""
    return await _make_user(test_db, "test@example.com", "testpass123", "Test User")


@pytest.fixture
async def unverified_user(test_db):
    """Create a customer who has not verified their email yet"""
    return await _make_user(
        test_db, "new@example.com", "newpass123", "New User", email_verified=False
    )


@pytest.fixture
async def test_admin_user(test_db):
    """Create an admin user"""
    return await _make_user(
        test_db, "admin@example.com", "adminpass123", "Admin User", is_admin=True
    )


@pytest.fixture
async def test_menu_items(test_db):
    """Create test menu items"""
    items = [
        MenuItem(
            item_code="MI-001",
            name="Masala Dosa",
            description="Crisp rice crepe with potato filling",
            price_cents=6000,
        ),
        MenuItem(
            item_code="MI-002",
            name="Veg Biryani",
            description="Basmati rice with vegetables",
            price_cents=12000,
        ),
        MenuItem(
            item_code="MI-003",
            name="Filter Coffee",
            description="South Indian coffee",
            price_cents=2500,
        ),
    ]

    for item in items:
        test_db.add(item)

    await test_db.commit()
    return items


def _build_order(user, status=OrderStatus.PENDING.value, items=None, age=timedelta(0), **kwargs):
    items = items or [{"name": "Masala Dosa", "quantity": 1, "price_cents": 6000}]
    created = datetime.utcnow() - age
    return Order(
        id=uuid4(),
        user_id=user.id,
        items_json=items,
        amount_cents=sum(item["price_cents"] * item["quantity"] for item in items),
        payment_method=kwargs.pop("payment_method", "gpay"),
        status=status,
        created_at=created,
        updated_at=created,
        **kwargs,
    )


@pytest.fixture
def make_order():
    """Build an unsaved order for a user, ``age`` before now"""
    return _build_order


@pytest.fixture
async def client(test_db, session_factory):
    """Create test client with overridden database"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.state.change_hub = ChangeHub()
    app.state.notification_registry = NotificationRegistry()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def authenticated_client(client, test_user):
    """Create authenticated test client"""
    token = create_access_token(test_user)
    client.headers["Authorization"] = f"Bearer {token}"

    return client


@pytest.fixture
async def admin_client(client, test_admin_user):
    """Create admin authenticated test client"""
    token = create_access_token(test_admin_user)
    client.headers["Authorization"] = f"Bearer {token}"

    return client
