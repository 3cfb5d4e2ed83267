"""
Pytest Configuration and Fixtures

Provides fixtures for:
- Database sessions (async, in-memory SQLite)
- HTTP client with the get_db dependency overridden
- In-memory Redis replacement
- Test data factories (users, products, orders) and auth headers
"""
# JWT_SECRET_KEY must exist before importing app; the validator requires it when DEBUG=False
import os
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-for-testing-only-do-not-use-in-production")

import pytest
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import patch

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.auth import create_access_token
from app.core.config import settings
from app.db.database import Base, get_db
from app.db.models.order import Order
from app.db.models.product import Product
from app.db.models.user import User, UserRole
from app.domain.services.inventory_service import LineRequest
from app.domain.services.order_service import OrderService
from app.main import app


# Test database URL (SQLite in memory for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SHIPPING_ADDRESS = {
    "full_name": "Dana Levi",
    "address": "12 Market Street",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "USA",
    "phone": "+1 217 555 0100",
}


@pytest.fixture(scope="function")
async def async_engine():
    """Create async test database engine"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests"""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
async def test_client(db_session: AsyncSession):
    """Create test client with database override"""
    from httpx import AsyncClient, ASGITransport

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Redis
# ============================================================================

class FakeRedis:
    """In-memory Redis replacement with the subset of commands the app uses"""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}
        self._ttls: dict[str, int] = {}
        self.scripts: list[str] = []

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, nx: bool = False, ex: int | None = None) -> bool | None:
        """SET with NX (only if missing) and EX (expiry in seconds)"""
        if nx and key in self._store:
            return None
        self._store[key] = value
        if ex is not None:
            self._ttls[key] = ex
        return True

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self._store.pop(key, None)
            self._ttls.pop(key, None)

    async def eval(self, script: str, numkeys: int, *keys_and_args: str) -> int:
        """Only the lock release script: compare-and-delete KEYS[1] against ARGV[1]"""
        self.scripts.append(script)
        key, token = keys_and_args[0], keys_and_args[numkeys]
        if self._store.get(key) != token:
            return 0
        await self.delete(key)
        return 1

    def ttl_of(self, key: str) -> int | None:
        return self._ttls.get(key)

    async def aclose(self) -> None:
        self._store.clear()
        self._ttls.clear()


@pytest.fixture(autouse=True)
def fake_redis():
    """Replace get_redis with FakeRedis for every test"""
    _fake = FakeRedis()

    async def _get_fake_redis():
        return _fake

    with patch("app.core.redis_client.get_redis", _get_fake_redis):
        yield _fake


# ============================================================================
# JWT
# ============================================================================

_TEST_JWT_SECRET = "test-jwt-secret-key-for-testing-only-do-not-use-in-production"


@pytest.fixture(autouse=True)
def set_jwt_secret():
    with patch.object(settings, "JWT_SECRET_KEY", _TEST_JWT_SECRET), \
         patch.object(settings, "JWT_ALGORITHM", "HS256"), \
         patch.object(settings, "JWT_ACCESS_TOKEN_EXPIRE_MINUTES", 480):
        yield


@pytest.fixture
def auth_headers():
    """Build a Bearer header for a user"""
    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(user.id, user.role.value)
        return {"Authorization": f"Bearer {token}"}

    return _headers


# ============================================================================
# Test Data Factories
# ============================================================================

_email_counter = 0


def _next_email() -> str:
    global _email_counter
    _email_counter += 1
    return f"user{_email_counter}@example.com"


@pytest.fixture
def user_factory(db_session: AsyncSession):
    """Factory for creating test users"""
    async def _create_user(
        name: str = "Test User",
        email: str | None = None,
        role: UserRole = UserRole.USER,
        wallet_balance: Decimal | str = Decimal("0.00"),
        is_active: bool = True,
    ) -> User:
        user = User(
            name=name,
            email=email or _next_email(),
            role=role,
            wallet_balance=Decimal(str(wallet_balance)),
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def product_factory(db_session: AsyncSession):
    """Factory for creating test products"""
    async def _create_product(
        name: str = "Hardware Wallet",
        price: Decimal | str = Decimal("10.00"),
        stock: int = 10,
        is_active: bool = True,
        description: str | None = None,
    ) -> Product:
        product = Product(
            name=name,
            price=Decimal(str(price)),
            stock=stock,
            is_active=is_active,
            description=description,
        )
        db_session.add(product)
        await db_session.commit()
        await db_session.refresh(product)
        return product

    return _create_product


@pytest.fixture
def order_factory(db_session: AsyncSession):
    """Factory placing orders through OrderService"""
    async def _create_order(
        user: User,
        lines: list[tuple[Product, int]],
        payment_method: str = "wallet",
        **kwargs,
    ) -> Order:
        if payment_method == "crypto":
            kwargs.setdefault("cryptocurrency", "BTC")
            kwargs.setdefault("wallet_address", "bc1qexampleaddress")
        return await OrderService(db_session).create_order(
            user_id=user.id,
            items=[LineRequest(product_id=p.id, quantity=q) for p, q in lines],
            shipping_address=dict(SHIPPING_ADDRESS),
            payment_method=payment_method,
            **kwargs,
        )

    return _create_order


# ============================================================================
# Sample Test Data
# ============================================================================

@pytest.fixture
async def sample_customer(user_factory) -> User:
    return await user_factory(name="Sample Customer", wallet_balance=Decimal("100.00"))


@pytest.fixture
async def sample_admin(user_factory) -> User:
    return await user_factory(name="Store Admin", role=UserRole.ADMIN)


@pytest.fixture
async def sample_product(product_factory) -> Product:
    return await product_factory(name="Ledger Nano", price=Decimal("10.00"), stock=5)
