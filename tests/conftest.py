import os

# Settings are read from the environment at import time.
os.environ.setdefault("APP_SECRET", "test-secret-0123456789")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "DEVELOPMENT"

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from erp_api.core.scope import TenantScope  # noqa: E402
from erp_api.core.security import get_password_hash  # noqa: E402
from erp_api.core.settings import AppSettings  # noqa: E402
from erp_api.db.base import Base  # noqa: E402
from erp_api.db.models import (  # noqa: E402
    City,
    Country,
    Product,
    PurchaseOrder,
    PurchaseOrderItem,
    Recipe,
    RecipeItem,
    State,
    Supplier,
    Tenant,
    User,
)
from erp_api.db.session import get_async_session  # noqa: E402
from erp_api.services.error_reporter import ErrorReporter  # noqa: E402

PASSWORD = "s3cret-pass"


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings()


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


def scope_for(tenant_id: int, user_id: int = 0) -> TenantScope:
    return TenantScope(tenant_id=tenant_id, subject_id=user_id, role="admin", username=f"user-{user_id}")


@pytest.fixture(scope="session")
def password_hash() -> str:
    # bcrypt is slow; hash once per run
    return get_password_hash(PASSWORD)


@pytest.fixture
async def world(session_factory, password_hash):
    """
    Two tenants with one user, supplier and two products each, a purchase
    order with two lines and a recipe with one input for tenant A, plus a
    small geography chain.
    """
    async with session_factory() as session:
        tenant_a, tenant_b = Tenant(name="Tenant A"), Tenant(name="Tenant B")
        session.add_all([tenant_a, tenant_b])
        await session.flush()

        alice = User(tenant_id=tenant_a.id, username="alice", hashed_password=password_hash, role="admin")
        bob = User(tenant_id=tenant_b.id, username="bob", hashed_password=password_hash, role="user")
        carol = User(
            tenant_id=tenant_a.id, username="carol", hashed_password=password_hash, role="user", is_active=False
        )
        supplier_a = Supplier(tenant_id=tenant_a.id, name="Acme Metals", tax_id="11.111")
        supplier_b = Supplier(tenant_id=tenant_b.id, name="Beta Plastics", tax_id="22.222")
        session.add_all([alice, bob, carol, supplier_a, supplier_b])
        await session.flush()

        product_a1 = Product(tenant_id=tenant_a.id, sku="A-001", name="Steel rod")
        product_a2 = Product(tenant_id=tenant_a.id, sku="A-002", name="Steel plate")
        product_b1 = Product(tenant_id=tenant_b.id, sku="B-001", name="PVC pipe")
        session.add_all([product_a1, product_a2, product_b1])
        await session.flush()

        order_a = PurchaseOrder(tenant_id=tenant_a.id, code="PO-1", supplier_id=supplier_a.id)
        other_order_a = PurchaseOrder(tenant_id=tenant_a.id, code="PO-2", supplier_id=supplier_a.id)
        session.add_all([order_a, other_order_a])
        await session.flush()

        line_1 = PurchaseOrderItem(
            tenant_id=tenant_a.id, purchase_order_id=order_a.id, product_id=product_a1.id, quantity=10, unit_cost=2
        )
        line_2 = PurchaseOrderItem(
            tenant_id=tenant_a.id, purchase_order_id=order_a.id, product_id=product_a2.id, quantity=3, unit_cost=7
        )
        foreign_line = PurchaseOrderItem(
            tenant_id=tenant_a.id,
            purchase_order_id=other_order_a.id,
            product_id=product_a1.id,
            quantity=1,
            unit_cost=1,
        )
        recipe_a = Recipe(tenant_id=tenant_a.id, product_id=product_a2.id, description="Plate from rods")
        session.add_all([line_1, line_2, foreign_line, recipe_a])
        await session.flush()

        recipe_input = RecipeItem(tenant_id=tenant_a.id, recipe_id=recipe_a.id, product_id=product_a1.id, quantity=4)
        country = Country(name="Brazil", iso_code="BRA")
        session.add_all([recipe_input, country])
        await session.flush()
        state = State(country_id=country.id, name="Santa Catarina", uf="SC", ibge_code=42)
        session.add(state)
        await session.flush()
        session.add_all(
            [
                City(state_id=state.id, name="Chapecó", ibge_code=4204202),
                City(state_id=state.id, name="São Miguel do Oeste", ibge_code=4217202),
            ]
        )
        await session.commit()

        return SimpleNamespace(
            tenant_a=tenant_a.id,
            tenant_b=tenant_b.id,
            alice=alice,
            bob=bob,
            carol=carol,
            supplier_a=supplier_a.id,
            supplier_b=supplier_b.id,
            product_a1=product_a1.id,
            product_a2=product_a2.id,
            product_b1=product_b1.id,
            order_a=order_a.id,
            other_order_a=other_order_a.id,
            line_1=line_1.id,
            line_2=line_2.id,
            foreign_line=foreign_line.id,
            recipe_a=recipe_a.id,
            recipe_input=recipe_input.id,
            country=country.id,
            state=state.id,
        )


@pytest.fixture
async def client(session_factory):
    from erp_api.api.main import app

    async def _session_override():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = _session_override
    app.state.error_reporter = ErrorReporter(session_factory)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


def cookie_value(response, name: str = "erp-access") -> str:
    """Extract a cookie value from the raw Set-Cookie header."""
    for header in response.headers.get_list("set-cookie"):
        pair = header.split(";", 1)[0]
        key, _, value = pair.partition("=")
        if key.strip() == name:
            return value.strip().strip('"')
    raise AssertionError(f"cookie {name!r} not set")


async def login(client: AsyncClient, username: str = "alice") -> dict:
    """Log in and return headers carrying the session cookie."""
    response = await client.post("/api/v1/auth/login", json={"username": username, "password": PASSWORD})
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return {"Cookie": f"erp-access={cookie_value(response)}"}
