"""
PawCare Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own app instance built by create_app() over a
       fresh SQLite file in tmp_path, the in-memory session store, and a
       mocked notification sender. Nothing is shared between tests.

Fixture Hierarchy:
    test_settings ─┬─ app ─┬─ client        (anonymous HTTPX AsyncClient)
                   │       ├─ admin_client  (logged in as the bootstrap admin)
                   │       └─ storage ── db (adapter + AsyncSession for unit tests)
                   └─ mock_sender
"""

import os
import tempfile
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Override settings BEFORE any app imports: importing pawcare.main builds the
# module-level app from the environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_BACKEND"] = "sqlite"
os.environ["SQLITE_PATH"] = os.path.join(tempfile.mkdtemp(prefix="pawcare_test_"), "import.db")
os.environ["SESSION_BACKEND"] = "memory"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("SMTP_HOST", None)

from pawcare.config import Settings  # noqa: E402
from pawcare.main import create_app  # noqa: E402
from pawcare.services.notification_service import NotificationSender  # noqa: E402

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "Adm1n!Secret"
OPERATOR_EMAIL = "owner@pawcare.test"
CUSTOMER_PASSWORD = "Str0ng!Pass"

BOOKING_FORM = {
    "name": "Ana",
    "email": "ana@x.com",
    "phone": "9999999999",
    "service": "dog-walking",
}


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        environment="test",
        database_backend="sqlite",
        sqlite_path=str(tmp_path / "pawcare-test.db"),
        session_backend="memory",
        default_admin_username=ADMIN_USERNAME,
        default_admin_email="admin@pawcare.test",
        default_admin_password=ADMIN_PASSWORD,
        admin_email=OPERATOR_EMAIL,
        smtp_host=None,
        log_level="WARNING",
    )


@pytest.fixture
def mock_sender():
    """
    Notification sender double. `send` is an AsyncMock returning True, so
    tests assert on `mock_sender.send.await_args_list`.
    """
    sender = AsyncMock(spec=NotificationSender)
    sender.send.return_value = True
    return sender


@pytest_asyncio.fixture
async def app(test_settings, mock_sender):
    application = create_app(test_settings, notification_sender=mock_sender)
    yield application
    await application.state.storage.dispose()


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    The client keeps cookies, so a login in one request authenticates the next.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def admin_client(client):
    response = await client.post(
        "/api/auth/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return client


@pytest_asyncio.fixture
async def storage(app):
    adapter = app.state.storage
    await adapter.ensure_initialized()
    return adapter


@pytest_asyncio.fixture
async def db(storage):
    """An AsyncSession on the test database, for adapter-level tests."""
    async with storage.session_factory() as session:
        yield session


# ── Helpers ───────────────────────────────────────────────────────────────

async def register_customer(client, email="ana@x.com", name="Ana Silva", phone="9999999999"):
    response = await client.post(
        "/api/customer/register",
        json={"name": name, "email": email, "phone": phone, "password": CUSTOMER_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]


def sent_kinds(mock_sender):
    """[(kind, recipient), ...] in delivery order."""
    return [(c.args[0], c.args[1]) for c in mock_sender.send.await_args_list]
