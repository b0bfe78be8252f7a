"""
Shared test fixtures and configuration for Bizabode backend tests.
"""
import os
from datetime import datetime
from typing import Any, Iterable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "true"
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only-min-32-chars")


def make_result(scalar: Any = None, scalars: Optional[Iterable] = None, rows: Optional[Iterable] = None) -> MagicMock:
    """Build a mock of the object returned by ``AsyncSession.execute``."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalar.return_value = scalar
    result.scalars.return_value.all.return_value = list(scalars or [])
    result.all.return_value = list(rows or [])
    result.rowcount = scalar if isinstance(scalar, int) else 0
    return result


@pytest.fixture
def mock_settings(monkeypatch):
    """Mock settings for testing."""
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("SECRET_KEY", "test-secret-key-for-testing-only-min-32-chars")
    monkeypatch.setenv("POSTGRES_PASSWORD", "testpassword")
    monkeypatch.setenv("POSTGRES_USER", "testuser")
    monkeypatch.setenv("POSTGRES_DB", "testdb")


@pytest.fixture
def mock_db_session():
    """Create a mock async database session."""
    session = AsyncMock(spec=AsyncSession)
    session.execute = AsyncMock(return_value=make_result())
    session.commit = AsyncMock()
    session.flush = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def admin_user():
    """A back-office admin of company 1."""
    from app.models.user import User

    return User(
        id=1,
        company_id=1,
        email="admin@example.com",
        name="Ada Admin",
        hashed_password="not-a-hash",
        role="admin",
        is_active=True,
        permissions={},
    )


@pytest.fixture
def admin_principal(admin_user):
    from app.api.deps import Principal

    return Principal.from_user(admin_user)


@pytest.fixture
def sales_principal():
    from app.api.deps import Principal
    from app.models.user import User

    user = User(id=7, company_id=1, email="rep@example.com", name="Sam Rep", role="sales", is_active=True)
    return Principal.from_user(user)


@pytest.fixture
def employee():
    from app.models.employee import Employee

    return Employee(
        id=10,
        company_id=1,
        employee_code="EMP001",
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        position="Clerk",
        department="Operations",
        status="active",
    )


@pytest.fixture
def employee_principal(employee):
    from app.api.deps import Principal

    return Principal.from_employee(employee)


@pytest.fixture
def mock_request():
    """Create a mock FastAPI request object."""
    request = MagicMock()
    request.cookies = {}
    request.client = MagicMock()
    request.client.host = "127.0.0.1"
    request.headers = {}
    request.url = MagicMock()
    request.url.path = "/api/v1/test"
    request.method = "GET"
    request.state = MagicMock(spec=[])
    return request


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 15, 12, 0, 0)


@pytest.fixture
def limiter_off(monkeypatch):
    """Rate-limited routes can be called directly with a mock request."""
    from app.core.rate_limiter import limiter

    monkeypatch.setattr(limiter, "enabled", False)
    return limiter
