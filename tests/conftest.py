"""Pytest fixtures for PortzApp API tests."""

import uuid
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.app import app
from src.database.session import get_db
from src.models.enums import OrganizationBusinessType, UserRole
from src.modules.organization.auth import AuthenticatedUser, get_current_user


@pytest.fixture
def mock_db() -> AsyncMock:
    """An AsyncSession stand-in; tests queue ``execute`` results themselves."""
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    return db


@pytest.fixture
def current_user() -> AuthenticatedUser:
    return AuthenticatedUser(
        id=uuid.uuid4(),
        email="ops@northsea-shipping.com",
        organization_id=uuid.uuid4(),
        business_type=OrganizationBusinessType.VESSEL_OWNER,
        role=UserRole.ADMIN,
    )


@pytest_asyncio.fixture
async def async_client(
    mock_db: AsyncMock, current_user: AuthenticatedUser
) -> AsyncGenerator[AsyncClient, None]:
    """Yield an httpx AsyncClient wired to the FastAPI app with a mocked DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncMock, None]:
        yield mock_db

    async def override_get_current_user() -> AuthenticatedUser:
        return current_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
