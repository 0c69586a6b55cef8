"""
Centralized Test Configuration.
"""

import os

# The app's own engine must never point at a real server during tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from truckspot.app.main import app
from truckspot.app.db.session import get_db, Base
from truckspot.app.core.redis_client import get_redis
import truckspot.app.core.redis_client as redis_client_module
from truckspot.app.core.jwt import create_access_token
from truckspot.app.core.dependencies import memory_location_repository
from truckspot.app.core.reliability import persistence_circuit_breaker
from truckspot.app.models.enums import UserRole
from truckspot.app.models.food_truck import FoodTruck
from truckspot.app.models.user import User
from truckspot.app.services.broadcast import CUSTOMERS_CHANNEL, broadcast_gateway, truck_channel

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


# Redis Fixture (Session Scope)
@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Apply overrides once for the session.
    Global override is safer here than per-test override to avoid app state flux.
    """
    # Patch the global redis client used by token revocation
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield

    # Restore and clear
    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()
    persistence_circuit_breaker.reset_state()
    memory_location_repository.clear()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def session_factory():
    return TestingSessionLocal


# Factories

async def create_user(db_session, username: str, role: UserRole, is_active: bool = True) -> User:
    user = User(
        email=f"{username}@test.com",
        username=username,
        role=role,
        is_active=is_active,
    )
    db_session.add(user)
    await db_session.commit()
    return user


async def create_truck(db_session, owner: User, name: str = "Taco Loco", **preferences) -> FoodTruck:
    truck = FoodTruck(
        owner_id=owner.id,
        name=name,
        business_name=f"{name} LLC",
        location_history=[],
        **preferences,
    )
    db_session.add(truck)
    await db_session.commit()
    return truck


def token_for(user: User) -> str:
    return create_access_token({"sub": user.username, "user_id": user.id, "role": user.role.value})


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def owner(db_session):
    return await create_user(db_session, "taco_owner", UserRole.OWNER)


@pytest.fixture
async def other_owner(db_session):
    return await create_user(db_session, "burger_owner", UserRole.OWNER)


@pytest.fixture
async def customer(db_session):
    return await create_user(db_session, "hungry_customer", UserRole.CUSTOMER)


@pytest.fixture
async def admin(db_session):
    return await create_user(db_session, "marketplace_admin", UserRole.ADMIN)


@pytest.fixture
async def truck(db_session, owner):
    return await create_truck(db_session, owner)


@pytest.fixture
def owner_token(owner):
    return token_for(owner)


@pytest.fixture
def customer_token(customer):
    return token_for(customer)


@pytest.fixture
def admin_token(admin):
    return token_for(admin)


@pytest.fixture
def make_truck(db_session, owner):
    """Factory for trucks with custom tracking preferences."""
    async def _make(name: str = "Taco Loco", truck_owner: User = None, **preferences) -> FoodTruck:
        return await create_truck(db_session, truck_owner or owner, name=name, **preferences)
    return _make


@pytest.fixture
def make_user(db_session):
    async def _make(username: str, role: UserRole = UserRole.CUSTOMER, is_active: bool = True) -> User:
        return await create_user(db_session, username, role, is_active=is_active)
    return _make


@pytest.fixture
def headers():
    """Build Authorization headers for a user."""
    return lambda user: auth(token_for(user))


@pytest.fixture
def customer_feed():
    """Subscription to the customers channel of the app's gateway."""
    subscription = broadcast_gateway.subscribe(CUSTOMERS_CHANNEL)
    yield subscription
    subscription.close()


@pytest.fixture
def owner_feed(truck):
    subscription = broadcast_gateway.subscribe(truck_channel(truck.id))
    yield subscription
    subscription.close()


def drain(subscription) -> list:
    """Pop every queued event without waiting."""
    events = []
    while (item := subscription.get_nowait()) is not None:
        events.append(item)
    return events


@pytest.fixture
def drain_events():
    return drain
