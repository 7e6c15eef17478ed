"""
Shared test fixtures and configuration for pytest.
"""

from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, Dict, Iterable, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from patient_records.api.dependencies import get_db
from patient_records.core.authorization import AuthorizationGate, CallerIdentity
from patient_records.core.identity_provider import CallerProfile, IdentityProviderError
from patient_records.core.security import TokenVerifier
from patient_records.core.validation import RequestValidator
from patient_records.db.base import Base
from patient_records.main import app
from patient_records.models import LifestyleEntry, MedicalHistoryEntry, Patient


# Test database configuration
TEST_DATABASE_URL = "sqlite+aiosqlite://"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TEST_SECRET_KEY = "test-secret-key"
TEST_ALGORITHM = "HS256"

# 2025-06-01: someone born 1994-01-01 is 31
FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

ALL_PERMISSIONS = (
    "patient:create",
    "patient:read",
    "patient:update",
    "medical_history:create",
    "medical_history:read",
    "medical_history:update",
    "medical_history:delete",
    "lifestyle:create",
    "lifestyle:read",
    "lifestyle:update",
    "lifestyle:delete",
)


class FakeProfileLookup:
    """In-memory identity provider keyed by user id."""

    def __init__(self, profiles: Optional[Dict[str, dict]] = None, failing: Iterable[str] = ()):
        self.profiles = profiles or {}
        self.failing = set(failing)
        self.calls = []

    async def get_profile(self, user_id: str) -> CallerProfile:
        self.calls.append(user_id)
        if user_id in self.failing:
            raise IdentityProviderError("identity provider unavailable")
        return CallerProfile(user_id=user_id, public_metadata=self.profiles.get(user_id, {}))


def make_token(
    sub: str,
    permissions: Iterable[str] = ALL_PERMISSIONS,
    expires_in: timedelta = timedelta(minutes=15),
    secret_key: str = TEST_SECRET_KEY,
) -> str:
    payload = {
        "sub": sub,
        "permissions": list(permissions),
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, secret_key, algorithm=TEST_ALGORITHM)


def auth_header(sub: str, permissions: Iterable[str] = ALL_PERMISSIONS) -> dict:
    return {"Authorization": f"Bearer {make_token(sub, permissions)}"}


def patient_payload(**overrides) -> dict:
    payload = {
        "user_id": 1,
        "full_name": "Jane Doe",
        "age": 31,
        "date_of_birth": "1994-01-01",
        "sex": "Female",
        "phone_number": "+14155550100",
        "email_address": "jane@example.com",
        "preferred_communication": "Email",
        "socioeconomic_status": "Middle",
        "geographic_location": "Accra",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def validator() -> RequestValidator:
    """Validator pinned to FIXED_NOW."""
    return RequestValidator(clock=lambda: FIXED_NOW)


@pytest.fixture
def profiles() -> FakeProfileLookup:
    """Caller "100" is a physician, "200" a clerk, "300" holds patient:read_all."""
    return FakeProfileLookup(
        profiles={
            "100": {"roles": ["physician"]},
            "200": {"role": "clerk"},
            "300": {"permissions": ["patient:read_all"]},
        },
        failing={"500"},
    )


@pytest.fixture
def authorizer(profiles: FakeProfileLookup) -> AuthorizationGate:
    return AuthorizationGate(profiles)


@pytest.fixture
def caller_factory():
    def _make(user_id: str) -> CallerIdentity:
        return CallerIdentity(user_id=user_id, permissions=frozenset(ALL_PERMISSIONS))

    return _make


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.

    Each test gets its own in-memory database on one shared connection, so
    the engine lives on the test's event loop.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )
    event.listen(test_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    TestSessionLocal = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )
    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def override_get_db(db_session: AsyncSession):
    """Override the get_db dependency for testing."""

    async def _override_get_db():
        yield db_session

    return _override_get_db


@pytest.fixture
async def client(
    override_get_db, validator: RequestValidator, authorizer: AuthorizationGate
) -> AsyncGenerator[AsyncClient, None]:
    """
    Test client backed by the sqlite session and the fake identity provider.
    """
    app.dependency_overrides[get_db] = override_get_db
    app.state.validator = validator
    app.state.authorizer = authorizer
    app.state.token_verifier = TokenVerifier(TEST_SECRET_KEY, TEST_ALGORITHM)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def test_patient(db_session: AsyncSession) -> Patient:
    """Patient with id 1 unless other rows exist."""
    patient = Patient(
        user_id=1,
        full_name="Jane Doe",
        age=31,
        date_of_birth=date(1994, 1, 1),
        sex="Female",
        phone_number="+14155550100",
        email_address="jane@example.com",
    )
    db_session.add(patient)
    await db_session.commit()
    await db_session.refresh(patient)
    return patient


@pytest.fixture
async def other_patient(db_session: AsyncSession, test_patient: Patient) -> Patient:
    patient = Patient(
        user_id=2,
        full_name="John Roe",
        age=40,
        date_of_birth=date(1985, 3, 2),
        sex="Male",
        email_address="john@example.com",
    )
    db_session.add(patient)
    await db_session.commit()
    await db_session.refresh(patient)
    return patient


@pytest.fixture
async def medical_history_entry(db_session: AsyncSession, test_patient: Patient) -> MedicalHistoryEntry:
    entry = MedicalHistoryEntry(
        patient_id=test_patient.patient_id,
        condition="Hypertension",
        diagnosis_date=date(2020, 5, 17),
        status="Active",
        details="Managed with lifestyle changes",
    )
    db_session.add(entry)
    await db_session.commit()
    await db_session.refresh(entry)
    return entry


@pytest.fixture
async def lifestyle_entry(db_session: AsyncSession, test_patient: Patient) -> LifestyleEntry:
    entry = LifestyleEntry(
        patient_id=test_patient.patient_id,
        lifestyle_factor="Smoking",
        value="10 per day",
        start_date=date(2010, 1, 1),
    )
    db_session.add(entry)
    await db_session.commit()
    await db_session.refresh(entry)
    return entry
