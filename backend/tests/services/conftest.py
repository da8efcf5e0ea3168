"""Service test fixtures — async DB, FastAPI test client and fake external clients.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB sessions
    - db_manager patched so the readiness probe sees the test engine
    - Payment gateway and image host replaced with in-memory fakes

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (the guarded stock UPDATE behaves the same on SQLite and PostgreSQL)
    - Fixture data committed through test_db before any request; assertions read
      through a fresh session (fresh_db) so they see what the routes committed
    - Auth cookie minted directly from the user row: login itself is covered
      by the auth route tests
"""

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

import stylesage.models  # noqa: F401  (registers tables)
import stylesage.infrastructure.database as db_module
from stylesage.api.dependencies import get_image_host, get_payment_gateway
from stylesage.config import get_settings
from stylesage.db.base import Base
from stylesage.infrastructure import security
from stylesage.infrastructure.database import get_db, DatabaseSessionManager
from stylesage.main import app
from stylesage.models.product import Product, StockLevel
from stylesage.models.user import User
from tests.services.fakes import FakeGateway, FakeImageHost, login_as

ADMIN_EMAIL = "admin@stylesage.com"
PASSWORD = "secret123"


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def fresh_db(test_session_factory):
    """Open a new session for assertions on committed state."""
    return test_session_factory


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def image_host():
    return FakeImageHost()


@pytest.fixture
async def client(test_engine, test_session_factory, gateway, image_host):
    """FastAPI test client with DB and external clients overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_image_host] = lambda: image_host

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


# ─── Data helpers ────────────────────────────────────────────────

@pytest.fixture
def make_user(test_db):
    async def _make(email="shopper@example.com", name="Shopper", role="user"):
        user = User(
            email=email,
            name=name,
            password_hash=security.hash_password(PASSWORD),
            role=role,
            provider="email",
            is_email_verified=False,
        )
        test_db.add(user)
        await test_db.commit()
        return user
    return _make


@pytest.fixture
def make_product(test_db):
    async def _make(
        name="Naruto Tee", price="499", stock=None, category="anime",
        is_active=True, is_featured=False, tags=None,
    ):
        stock = {"M": 5} if stock is None else stock
        slug = name.lower().replace(" ", "-")
        product = Product(
            name=name,
            slug=slug,
            description=f"{name} description",
            price=Decimal(price),
            original_price=None,
            images=[f"https://res.cloudinary.com/demo/image/upload/v1/tshirt-products/{slug}.jpg"],
            category=category,
            tags=list(tags or []),
            sizes=list(stock) or ["M"],
            colors=["Black"],
            is_active=is_active,
            is_featured=is_featured,
            rating=4.5,
            reviews=3,
            stock_levels=[StockLevel(size=s, quantity=q) for s, q in stock.items()],
        )
        test_db.add(product)
        await test_db.commit()
        return product
    return _make


@pytest.fixture
async def shopper(client, make_user):
    user = await make_user()
    login_as(client, user)
    return user


@pytest.fixture
async def admin(client, make_user):
    user = await make_user(email=ADMIN_EMAIL, name="Admin", role="admin")
    login_as(client, user)
    return user
