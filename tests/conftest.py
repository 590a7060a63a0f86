"""Shared test fixtures."""

from types import SimpleNamespace
from typing import Any, Optional

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payout_accounts.config import settings
from payout_accounts.database import build_engine, build_session_factory, init_db
from payout_accounts.models.account import AcademyUser, AuditTrail, OutboxJob
from payout_accounts.providers.mock_provider import MockRouteProvider
from payout_accounts.schemas import CreatePayoutAccountRequest


@pytest.fixture(autouse=True)
def fast_settings(monkeypatch):
    """No in-process retries or job delays in tests."""
    monkeypatch.setattr(settings, "provider_read_retries", 0)
    monkeypatch.setattr(settings, "stakeholder_job_delay_seconds", 0.0)
    monkeypatch.setattr(settings, "outbox_max_attempts", 3)


@pytest_asyncio.fixture
async def session_factory():
    """A fresh in-memory database for each test, shared by every session."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)

    yield build_session_factory(engine)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_session(db_session: AsyncSession):
    """Database session pre-loaded with academy users."""
    users = [
        AcademyUser(id="ACD-001", first_name="Rahul", last_name="Sharma", email="rahul@example.in", mobile="9876543210"),
        AcademyUser(id="ACD-002", first_name="Priya", last_name="Nair", email="priya@example.in", mobile="9123456780"),
        AcademyUser(id="ACD-010", first_name="Meera", last_name="Iyer", email="meera@example.in", mobile=None),
    ]
    for user in users:
        db_session.add(user)
    await db_session.commit()

    yield db_session


@pytest.fixture
def provider():
    return MockRouteProvider()


@pytest.fixture
def make_request():
    """Build a CreatePayoutAccountRequest from sensible defaults."""

    def _make(
        business_type: str = "individual",
        bank: bool = False,
        gst: Optional[str] = None,
        stakeholder: Optional[dict[str, Any]] = None,
    ) -> CreatePayoutAccountRequest:
        body: dict[str, Any] = {
            "kyc_details": {
                "legal_business_name": "Sharma Cricket Academy",
                "business_type": business_type,
                "contact_name": "Rahul Sharma",
                "email": "rahul@example.in",
                "phone": "9876543210",
                "pan": "abcde1234f",
                "address": {
                    "street1": "12 MG Road",
                    "city": "Bengaluru",
                    "state": "Karnataka",
                    "postal_code": "560001",
                },
            },
        }
        if gst:
            body["kyc_details"]["gst"] = gst
        if bank:
            body["bank_information"] = {
                "account_number": "123456789012",
                "ifsc_code": "hdfc0001234",
                "account_holder_name": "Rahul Sharma",
                "bank_name": "HDFC Bank",
            }
        if stakeholder is not None:
            body["stakeholder"] = stakeholder
        return CreatePayoutAccountRequest.model_validate(body)

    return _make


async def jobs_of(session: AsyncSession, job_type: Optional[str] = None) -> list[OutboxJob]:
    stmt = select(OutboxJob).order_by(OutboxJob.id)
    if job_type is not None:
        stmt = stmt.where(OutboxJob.job_type == job_type)
    return list((await session.execute(stmt)).scalars().all())


async def audits_of(session: AsyncSession, action: Optional[str] = None) -> list[AuditTrail]:
    stmt = select(AuditTrail).order_by(AuditTrail.id)
    if action is not None:
        stmt = stmt.where(AuditTrail.action == action)
    return list((await session.execute(stmt)).scalars().all())


@pytest.fixture
def outbox():
    """Query helpers for outbox jobs and audit trails."""
    return SimpleNamespace(jobs=jobs_of, audits=audits_of)
