"""
Shared fixtures.

Integration tests run the real models against a file-backed sqlite
database (one per test) and drive the FastAPI app through
``httpx.ASGITransport`` with the session dependencies overridden.
"""

import os
import uuid
from datetime import date, datetime, timedelta, timezone

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_secret")
os.environ.setdefault("FIRECRAWL_API_KEY", "fc-test")
os.environ.pop("LLM_API_KEY", None)

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tenderalert.db.base import Base
from tenderalert.db.session import get_db, get_db_context, get_session_factory
from tenderalert.main import create_application
from tenderalert.models import (
    HistoricalTenderAward,
    Profile,
    SavedTender,
    Tender,
    TenderStatus,
    UserPreferences,
)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tenderalert.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(session_factory):
    application = create_application()

    async def override_get_db():
        async with get_db_context(session_factory) as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_session_factory] = lambda: session_factory
    return application


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
def make_profile(db):
    async def _make(**overrides) -> Profile:
        profile = Profile(
            id=overrides.pop("id", uuid.uuid4()),
            email=overrides.pop("email", f"{uuid.uuid4().hex[:8]}@example.co.ke"),
            **overrides,
        )
        db.add(profile)
        await db.commit()
        return profile

    return _make


@pytest.fixture
def make_preferences(db):
    async def _make(user_id: uuid.UUID, **overrides) -> UserPreferences:
        values = {
            "sectors": [],
            "counties": [],
            "keywords": [],
            "eligibility_types": [],
            "notification_email": True,
            "notification_push": True,
            "notification_sms": False,
        }
        values.update(overrides)
        preferences = UserPreferences(user_id=user_id, **values)
        db.add(preferences)
        await db.commit()
        return preferences

    return _make


@pytest.fixture
def make_tender(db):
    async def _make(**overrides) -> Tender:
        values = {
            "title": "Supply of office furniture",
            "organization": "Ministry of Education",
            "category": "Supply",
            "location": "Nairobi",
            "deadline": date.today() + timedelta(days=30),
            "status": TenderStatus.ACTIVE,
            "requirements": [],
            "created_at": datetime.now(timezone.utc) - timedelta(days=30),
        }
        values.update(overrides)
        tender = Tender(**values)
        db.add(tender)
        await db.commit()
        return tender

    return _make


@pytest.fixture
def save_tender_for(db):
    async def _save(user_id: uuid.UUID, tender_id: uuid.UUID) -> SavedTender:
        saved = SavedTender(user_id=user_id, tender_id=tender_id)
        db.add(saved)
        await db.commit()
        return saved

    return _save


@pytest.fixture
def make_award(db):
    async def _make(**overrides) -> HistoricalTenderAward:
        values = {
            "organization": "Kenya Rural Roads Authority",
            "category": "Construction",
            "location": "Nairobi",
            "awarded_amount": 10_000_000,
            "winner_type": "sme",
            "award_date": date(2024, 6, 1),
            "bid_count": 5,
            "source": "test",
        }
        values.update(overrides)
        award = HistoricalTenderAward(**values)
        db.add(award)
        await db.commit()
        return award

    return _make


async def call_action(client: httpx.AsyncClient, endpoint: str, action: str, **params) -> httpx.Response:
    body = {"action": action, **{k: (str(v) if isinstance(v, uuid.UUID) else v) for k, v in params.items()}}
    return await client.post(f"/api/v1/{endpoint}", json=body)


@pytest.fixture
def action(client):
    async def _call(endpoint: str, action_name: str, **params) -> httpx.Response:
        return await call_action(client, endpoint, action_name, **params)

    return _call
