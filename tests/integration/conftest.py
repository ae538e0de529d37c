from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from tests.fixtures.json_loader import TestDataLoader
from src.depends import get_payment_gateway, get_read_cache, get_unit_of_work
from src.adapter.services.demo_gateway import DemoPaymentGateway
from src.adapter.services.signature import sign_payload
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import generate_jwt
from src.app.services.read_cache import ReadThroughCache

WEBHOOK_SALT = "integration-webhook-salt"


@pytest_asyncio.fixture
def test_data():
    return TestDataLoader()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest.fixture
def gateway():
    return DemoPaymentGateway(frontend_url="http://localhost:3000", salt=WEBHOOK_SALT)


@pytest_asyncio.fixture
async def client(db_session, gateway):
    from httpx import ASGITransport
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)
    cache = ReadThroughCache(maxsize=128, ttl=60)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_read_cache] = lambda: cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers():
    from config import ApplicationConfig

    return {"X-Admin-API-Key": ApplicationConfig.ADMIN_API_KEY}


@pytest.fixture
def customer_headers():
    """Bearer headers for a fresh customer; call again for a second customer"""

    def _headers(customer_id=None, role="customer"):
        token = generate_jwt(customer_id or uuid4(), role=role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def tiers(client, admin_headers):
    """Seed the default tiers and return them keyed by code"""
    response = await client.post("/admin/membership-tiers/seed", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get("/membership/tiers")
    return {tier["code"]: tier for tier in response.json()["tiers"]}


@pytest.fixture
def signed_webhook(test_data):
    """Build a signed gateway notification from a test_data template"""

    def _build(template: str, **fields):
        payload = test_data.webhook(template, **fields)
        payload["hmac"] = sign_payload(payload, WEBHOOK_SALT)
        return payload

    return _build
