"""Pytest configuration and fixtures for FactuCR tests.

The API runs against an in-memory SQLite database (aiosqlite) holding
both the public and the tenant tables; get_db / get_tenant_db are
overridden to hand out one shared session per test, committing on
success and rolling back on error exactly like the real dependencies.
"""

import os

# Must be set before factucr.config is imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DEBUG", "false")

from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import factucr.models  # noqa: F401  register every table
from factucr.auth.jwt import create_access_token
from factucr.auth.permissions import resolve_permissions
from factucr.database import PublicBase, TenantBase, get_db, get_tenant_db
from factucr.main import app
from factucr.models.public.enterprise import Enterprise
from factucr.models.public.user import User, UserRole
from factucr.models.tenant.company_profile import CompanyProfile
from factucr.models.tenant.customer import Customer
from factucr.models.tenant.product_service import ProductService

TENANT_SCHEMA = "tenant_test123456"


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(PublicBase.metadata.create_all)
        await conn.run_sync(TenantBase.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Test client with both DB dependencies bound to the test session."""

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_tenant_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest_asyncio.fixture
async def test_enterprise(db_session: AsyncSession) -> Enterprise:
    enterprise = Enterprise(name="Ferretería El Clavo S.A.", tenant_schema=TENANT_SCHEMA)
    db_session.add(enterprise)
    await db_session.commit()
    return enterprise


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession, test_enterprise: Enterprise) -> User:
    user = User(
        email="admin@elclavo.cr",
        full_name="Ana Solano",
        role=UserRole.ADMINISTRATOR,
        is_active=True,
        enterprise_id=test_enterprise.id,
    )
    db_session.add(user)
    await db_session.commit()
    return user


def make_token(user: User, role: UserRole = UserRole.ADMINISTRATOR) -> str:
    return create_access_token(
        user_id=user.id,
        role=role.value,
        permissions=resolve_permissions(role.value),
        tenant_schema=TENANT_SCHEMA,
    )


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Administrator (all permissions) in the test tenant."""
    return {"Authorization": f"Bearer {make_token(test_user)}"}


@pytest.fixture
def accountant_headers(test_user: User) -> dict:
    """Read/report-only role."""
    return {"Authorization": f"Bearer {make_token(test_user, UserRole.ACCOUNTANT)}"}


@pytest_asyncio.fixture
async def customer(db_session: AsyncSession) -> Customer:
    customer = Customer(
        name="Distribuidora La Sabana S.A.",
        identification_type="Business",
        identification_number="3-101-654321",
        phone1="22334455",
        email="compras@lasabana.cr",
        province="1",
        canton="01",
        district="08",
        address="Sabana Norte, 200 m oeste del ICE",
    )
    db_session.add(customer)
    await db_session.commit()
    return customer


@pytest_asyncio.fixture
async def product(db_session: AsyncSession) -> ProductService:
    product = ProductService(
        code="SRV-001",
        name="Soporte técnico por hora",
        item_type="Service",
        unit_measure="h",
        unit_price=Decimal("10.00"),
        tax_rate=Decimal("13.00"),
    )
    db_session.add(product)
    await db_session.commit()
    return product


@pytest_asyncio.fixture
async def goods_product(db_session: AsyncSession) -> ProductService:
    product = ProductService(
        code="PRD-100",
        name="Cable UTP Cat6 <305 m>",
        item_type="Product",
        unit_measure="Unid",
        unit_price=Decimal("45000.00"),
        tax_rate=Decimal("13.00"),
    )
    db_session.add(product)
    await db_session.commit()
    return product


@pytest_asyncio.fixture
async def company_profile(db_session: AsyncSession) -> CompanyProfile:
    profile = CompanyProfile(
        business_name="Ferretería El Clavo S.A.",
        commercial_name="El Clavo",
        legal_id="3-101-123456",
        activity_code="620100000000",
        province="1",
        canton="01",
        district="01",
        address="Avenida Central, calle 5",
        phone="22222222",
        email="facturas@elclavo.cr",
    )
    db_session.add(profile)
    await db_session.commit()
    return profile


def build_invoice_payload(customer_id: str, product_id: str, **overrides) -> dict:
    payload = {
        "customer_id": customer_id,
        "payment_method": "Cash",
        "sale_condition": "Cash",
        "details": [
            {"product_id": product_id, "quantity": "2", "unit_price": "10.00", "item_discount": "0"},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def invoice_payload():
    """Factory for a one-line create/update payload (2 × 10.00 at 13%)."""
    return build_invoice_payload


@pytest_asyncio.fixture
async def draft_invoice(client: AsyncClient, auth_headers: dict, customer, product) -> dict:
    """A Draft invoice created through the API (INV-001, grand total 22.60)."""
    resp = await client.post(
        "/api/invoices/",
        json=build_invoice_payload(customer.id, product.id),
        headers=auth_headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "integration: Integration tests")
