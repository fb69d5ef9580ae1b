"""
Pytest configuration and fixtures.

WHY: Fixtures provide reusable test setup/teardown logic, reducing
duplication and ensuring consistent test environments.
"""

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.models.base import Base
from app.db.session import get_db
from app.core import deps
from app.services import email as email_module
from app.services.email import EmailService, MockEmailProvider
from app.services.pdf_service import InvoicePDFRenderer
from app.services.reminder_service import ReminderService
from tests.factories import InMemoryStorage


# Test database URL
# WHY: SQLite in memory keeps tests free of an external database
TEST_ASYNC_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """
    Create a test database engine.

    WHY: Function scope ensures each test gets a fresh database state,
    preventing test pollution and ensuring test isolation.
    """
    engine = create_async_engine(TEST_ASYNC_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session.

    Matches the app's session options (no expiry on commit, no autoflush).
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def email_service() -> EmailService:
    return EmailService(provider=MockEmailProvider())


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def renderer() -> InvoicePDFRenderer:
    return InvoicePDFRenderer()


@pytest.fixture
def drive_service() -> MagicMock:
    """
    Drive collaborator double.

    Configured by default; upload_pdf returns a fixed file id.
    """
    drive = MagicMock()
    drive.is_configured.return_value = True
    drive.upload_pdf = AsyncMock(
        return_value=MagicMock(file_id="drive-file-1", file_name="1.pdf")
    )
    return drive


@pytest.fixture
def summarize_service() -> MagicMock:
    service = MagicMock()
    service.summarize = AsyncMock(
        return_value=MagicMock(summary="Backend API development", model="llama3.2")
    )
    return service


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    email_service,
    storage,
    renderer,
    drive_service,
    summarize_service,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test HTTP client.

    WHY: AsyncClient over ASGITransport exercises the full app stack
    without a server. The database session and every external
    collaborator are replaced through dependency_overrides.

    Yields:
        AsyncClient: HTTP client for making test requests
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_email_service] = lambda: email_service
    app.dependency_overrides[deps.get_storage_service] = lambda: storage
    app.dependency_overrides[deps.get_pdf_renderer] = lambda: renderer
    app.dependency_overrides[deps.get_drive_service] = lambda: drive_service
    app.dependency_overrides[deps.get_summarize_service] = lambda: summarize_service
    app.dependency_overrides[deps.get_reminder_service] = lambda: ReminderService(email_service)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def use_mock_email_provider(monkeypatch):
    """
    Use mock email provider for all tests.

    WHY: Tests should not send real emails. MockEmailProvider records
    every message on a class-level list so tests can assert on it.
    """
    email_module.MockEmailProvider.clear_sent_emails()

    from app.core import config
    monkeypatch.setattr(config.settings, "RESEND_API_KEY", None)

    yield

    email_module.MockEmailProvider.clear_sent_emails()
