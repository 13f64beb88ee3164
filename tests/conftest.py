# tests/conftest.py
"""
Shared fixtures: environment, an in-memory database per test, an HTTP
client bound to it, and helpers that walk a quotation through the pipeline.
"""

import os

# Must be set before anything under app/ is imported.
os.environ["APP_ENV"] = "development"
os.environ["DB_TYPE"] = "sqlite"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.db import Base, get_db, enable_sqlite_foreign_keys
from app.models.enums.boq_status import BoqCategory
from app.models.enums.quotation_status import QuotationItemCategory
from app.schemas.eto.boq_schemas import BoqCreate, BoqItemCreate
from app.schemas.eto.drawing_schemas import DrawingSubmit
from app.schemas.eto.quotation_schemas import QuotationCreate, QuotationItemIn, PurchaseOrderIn
from app.services.eto.boq_service import create_boq
from app.services.eto.drawing_service import submit_drawing
from app.services.eto.quotation_service import create_quotation
from app.services.eto.order_conversion_service import send_to_customer, mark_po_received


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# =====================================================
# PIPELINE HELPERS
# =====================================================
def quotation_payload(**overrides) -> QuotationCreate:
    data = {
        "customer_name": "Acme Fabrication",
        "customer_email": "buyer@acme.test",
        "title": "Stainless mixing tank",
        "items": [
            QuotationItemIn(description="Tank shell", category=QuotationItemCategory.material, quantity=Decimal("2"), unit_price=Decimal("50")),
            QuotationItemIn(description="Welding", category=QuotationItemCategory.labor, quantity=Decimal("1"), unit_price=Decimal("200")),
        ],
    }
    data.update(overrides)
    return QuotationCreate(**data)


@pytest.fixture
def new_quotation(db):
    async def _create(**overrides):
        return await create_quotation(db, quotation_payload(**overrides), "alice")

    return _create


@pytest.fixture
def quotation_with_boq(db, new_quotation):
    async def _create(**overrides):
        q = await new_quotation(**overrides)
        await submit_drawing(db, DrawingSubmit(quotation_id=q.id, drawing_type="General Arrangement"), "eve")
        boq = await create_boq(
            db,
            BoqCreate(
                quotation_id=q.id,
                items=[BoqItemCreate(description="Plate 4mm", category=BoqCategory.material, quantity=Decimal("2"), unit_rate=Decimal("50"))],
            ),
            "bob",
        )
        return q, boq

    return _create


@pytest.fixture
def quotation_with_po(db, quotation_with_boq):
    async def _create(po_number="PO-1", **overrides):
        q, _ = await quotation_with_boq(**overrides)
        await send_to_customer(db, q.id, "alice")
        return await mark_po_received(db, q.id, PurchaseOrderIn(po_number=po_number), "alice")

    return _create
