"""
Pytest Configuration and Centralized Fixtures.

Provides reusable mocks and fixtures for testing:
- Database sessions and query results
- Client, case and payment models in various states
- Token service and bearer headers
- API test client with the database dependency overridden
"""

import os
import tempfile
from collections.abc import AsyncGenerator, Iterator
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

TEST_JWT_SECRET = "test-secret-key-for-jwt-signing-min-32-chars"
TEST_ADMIN_KEY = "test-admin-key-0123456789"
TEST_DB_PATH = Path(tempfile.gettempdir()) / f"mdrg_test_{os.getpid()}.db"

# Set required environment variables BEFORE importing app modules
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{TEST_DB_PATH}")
os.environ.setdefault("JWT_SECRET", TEST_JWT_SECRET)
os.environ.setdefault("ADMIN_API_KEY", TEST_ADMIN_KEY)
os.environ.setdefault("TRACING_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
# Cheap argon2 parameters keep the suite fast
os.environ.setdefault("PASSWORD_TIME_COST", "1")
os.environ.setdefault("PASSWORD_MEMORY_COST", "1024")
os.environ.setdefault("PASSWORD_PARALLELISM", "1")

from mdrg.db.models import Case, Client, Payment
from mdrg.models.api import CasePriority, CaseStatus, ClientStatus, PaymentStatus
from mdrg.services.passwords import hash_password
from mdrg.services.tokens import TokenService

TEST_PASSWORD = "correct-horse-battery"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


# ============================================================================
# Database Session Fixtures
# ============================================================================


def make_result(
    scalar: Any | None = None,
    scalars: list | None = None,
    one: Any | None = None,
    rows: list | None = None,
) -> MagicMock:
    """Build a mock SQLAlchemy result for a single execute() call."""
    result = MagicMock()
    result.scalar_one_or_none = MagicMock(return_value=scalar)
    result.scalar_one = MagicMock(return_value=scalar)
    result.scalars = MagicMock(return_value=MagicMock(all=MagicMock(return_value=scalars or [])))
    result.one = MagicMock(return_value=one)
    result.all = MagicMock(return_value=rows or [])
    return result


@pytest.fixture
def db_session() -> AsyncMock:
    """Create a mock database session with sensible defaults."""
    session = AsyncMock(spec=AsyncSession)

    # Basic operations
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()

    # Default execute returns empty result
    session.execute = AsyncMock(return_value=make_result())

    return session


# ============================================================================
# Mock Client Fixtures
# ============================================================================


def create_mock_client(
    client_id: str = "MDRG0123456789ABCDEF0123456789ABCDEF",
    email: str = "jane@example.com",
    first_name: str = "Jane",
    last_name: str = "Doe",
    company_name: str | None = "Doe Ltd",
    status: ClientStatus = ClientStatus.ACTIVE,
    password_hash: str = TEST_PASSWORD_HASH,
) -> MagicMock:
    """Factory function to create mock Client objects."""
    client = MagicMock(spec=Client)
    client.id = 1
    client.client_id = client_id
    client.email = email
    client.password_hash = password_hash
    client.first_name = first_name
    client.last_name = last_name
    client.company_name = company_name
    client.phone = "020 7946 0000"
    client.address = "1 High Street"
    client.city = "London"
    client.postcode = "EC1A 1AA"
    client.country = "UK"
    client.status = status.value
    client.created_at = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)
    client.updated_at = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)
    client.last_login = None
    return client


@pytest.fixture
def active_client() -> MagicMock:
    """Active client account."""
    return create_mock_client()


@pytest.fixture
def other_client() -> MagicMock:
    """A second, unrelated active client."""
    return create_mock_client(
        client_id="MDRGFEDCBA9876543210FEDCBA9876543210",
        email="john@example.com",
        first_name="John",
        last_name="Smith",
        company_name=None,
    )


@pytest.fixture
def suspended_client() -> MagicMock:
    """Suspended client account."""
    return create_mock_client(status=ClientStatus.SUSPENDED)


# ============================================================================
# Mock Case/Payment Fixtures
# ============================================================================


def create_mock_case(
    case_id: str = "CASE0123456789ABCDEF0123456789ABCDEF",
    client_id: str = "MDRG0123456789ABCDEF0123456789ABCDEF",
    debtor_name: str = "Acme Widgets",
    amount_owed: Decimal = Decimal("1500.00"),
    currency: str = "GBP",
    status: CaseStatus = CaseStatus.PENDING,
    priority: CasePriority = CasePriority.MEDIUM,
) -> MagicMock:
    """Factory function to create mock Case objects."""
    case = MagicMock(spec=Case)
    case.id = 1
    case.case_id = case_id
    case.client_id = client_id
    case.debtor_name = debtor_name
    case.debtor_company = None
    case.debtor_email = "accounts@acme.example"
    case.debtor_phone = None
    case.debtor_address = None
    case.amount_owed = amount_owed
    case.currency = currency
    case.debt_type = "invoice"
    case.description = "Unpaid invoice"
    case.status = status.value
    case.priority = priority.value
    case.assigned_to = None
    case.notes = ""
    case.created_at = datetime(2026, 2, 1, 9, 0, 0, tzinfo=UTC)
    case.updated_at = datetime(2026, 2, 1, 9, 0, 0, tzinfo=UTC)
    return case


def create_mock_payment(
    payment_id: str = "PAY0123456789ABCDEF0123456789ABCDEF",
    case_id: str = "CASE0123456789ABCDEF0123456789ABCDEF",
    client_id: str = "MDRG0123456789ABCDEF0123456789ABCDEF",
    amount: Decimal = Decimal("500.00"),
    status: PaymentStatus = PaymentStatus.COMPLETED,
) -> MagicMock:
    """Factory function to create mock Payment objects."""
    payment = MagicMock(spec=Payment)
    payment.id = 1
    payment.payment_id = payment_id
    payment.case_id = case_id
    payment.client_id = client_id
    payment.amount = amount
    payment.payment_date = datetime(2026, 2, 10, 9, 0, 0, tzinfo=UTC)
    payment.payment_method = "bank_transfer"
    payment.status = status.value
    payment.reference = "REF-1"
    payment.notes = None
    return payment


@pytest.fixture
def mock_case(active_client: MagicMock) -> MagicMock:
    """Standard mock case owned by the active client."""
    return create_mock_case(client_id=active_client.client_id)


@pytest.fixture
def mock_payment(mock_case: MagicMock) -> MagicMock:
    """Standard mock payment on the standard case."""
    return create_mock_payment(case_id=mock_case.case_id, client_id=mock_case.client_id)


# ============================================================================
# Auth Fixtures
# ============================================================================


@pytest.fixture
def token_service() -> TokenService:
    """Token service using the test signing secret."""
    return TokenService(secret=TEST_JWT_SECRET)


@pytest.fixture
def auth_headers(token_service: TokenService, active_client: MagicMock) -> dict[str, str]:
    """Bearer header for the active client."""
    token = token_service.issue_token(
        active_client.client_id,
        active_client.email,
        active_client.first_name,
        active_client.last_name,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Administrative capability header."""
    return {"X-Admin-Key": TEST_ADMIN_KEY}


# ============================================================================
# FastAPI Test Client Fixtures
# ============================================================================


@pytest.fixture
def app() -> FastAPI:
    """Create FastAPI app for testing."""
    from mdrg.main import app as main_app

    return main_app


@pytest.fixture
def mock_activity() -> Iterator[AsyncMock]:
    """Replace the background activity writer in every route module."""
    recorder = AsyncMock()
    with (
        patch("mdrg.api.auth_routes.record_activity", recorder),
        patch("mdrg.api.client_routes.record_activity", recorder),
    ):
        yield recorder


@pytest.fixture
def client(app: FastAPI, db_session: AsyncMock, mock_activity: AsyncMock) -> Iterator[TestClient]:
    """Synchronous test client backed by the mock database session."""
    from mdrg.db.session import get_db

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(app: FastAPI):
    """Override authentication so requests act as the given client."""
    from mdrg.api.dependencies import get_current_client

    def _login(client_model: MagicMock) -> None:
        async def override_current_client():
            return client_model

        app.dependency_overrides[get_current_client] = override_current_client

    return _login


# ============================================================================
# Integration Fixtures
# ============================================================================


@pytest.fixture
async def live_app(app: FastAPI) -> AsyncGenerator[FastAPI, None]:
    """App bound to a freshly created SQLite schema; torn down afterwards."""
    from mdrg.db.models import Base
    from mdrg.db.session import close_engine, get_engine

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield app

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await close_engine()


@pytest.fixture
async def async_client(live_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async test client against the live SQLite database."""
    async with AsyncClient(
        transport=ASGITransport(app=live_app),
        base_url="http://test",
    ) as client:
        yield client


def pytest_sessionfinish(session, exitstatus):
    """Remove the temporary SQLite file."""
    TEST_DB_PATH.unlink(missing_ok=True)
