import sys
import os
from pathlib import Path

# Add backend directory to Python path for imports
backend_dir = Path(__file__).parent.parent / "backend"
sys.path.insert(0, str(backend_dir))

# Must be set before config is imported; load_dotenv never overrides these
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import get_db
from main import app
from models import Base, User, Product, PricingTier
from routers.auth.helpers import auth_helpers
from routers.auth.schemas import Principal

TEST_PASSWORD = "secret123"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite leaves foreign keys unenforced unless asked
    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)


async def create_user(session_factory, role: str, email: str, name: str = None) -> User:
    async with session_factory() as session:
        user = User(
            name=name or email.split("@")[0],
            email=email,
            password_hash=auth_helpers.hash_password(TEST_PASSWORD),
            role=role,
            company_name=f"{role.title()} Co"
        )
        session.add(user)
        await session.commit()
        return user


async def create_product(session_factory, vendor: User, stock: str = "500", tiers=None, **fields) -> Product:
    if tiers is None:
        tiers = [(1, 10.0, "Standard"), (100, 9.5, "Bulk")]
    async with session_factory() as session:
        product = Product(
            vendor_id=vendor.id,
            name=fields.pop("name", "Steel Pipe"),
            category=fields.pop("category", "Construction"),
            unit=fields.pop("unit", "meter"),
            moq=fields.pop("moq", 10),
            price=fields.pop("price", "$10.00/m"),
            stock=stock,
            **fields
        )
        product.tiers = [
            PricingTier(min_quantity=min_quantity, unit_price=unit_price, label=label)
            for min_quantity, unit_price, label in tiers
        ]
        session.add(product)
        await session.commit()
        return product


def principal_for(user: User) -> Principal:
    return Principal(user_id=user.id, role=user.role, email=user.email)


def auth_headers(user: User) -> dict:
    token = auth_helpers.create_access_token(user.id, user.role, user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def buyer(session_factory):
    return await create_user(session_factory, "buyer", "buyer@example.com")


@pytest_asyncio.fixture
async def other_buyer(session_factory):
    return await create_user(session_factory, "buyer", "buyer2@example.com")


@pytest_asyncio.fixture
async def vendor(session_factory):
    return await create_user(session_factory, "vendor", "vendor@example.com")


@pytest_asyncio.fixture
async def other_vendor(session_factory):
    return await create_user(session_factory, "vendor", "vendor2@example.com")


@pytest_asyncio.fixture
async def admin(session_factory):
    return await create_user(session_factory, "admin", "admin@example.com")


@pytest_asyncio.fixture
async def product(session_factory, vendor):
    return await create_product(session_factory, vendor)
