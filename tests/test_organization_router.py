"""Router tests for organization and join-request endpoints."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.database.session import get_db
from src.exceptions import ForbiddenException
from src.models.enums import JoinRequestStatus, OrganizationBusinessType, UserRole
from src.modules.organization.auth import AuthenticatedUser, get_current_user
from src.modules.organization.router import router


def _make_user(role=UserRole.ADMIN) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=uuid.uuid4(),
        email="admin@rotterdam-agency.com",
        organization_id=uuid.uuid4(),
        business_type=OrganizationBusinessType.SHIPPING_AGENCY,
        role=role,
    )


_current = {"user": _make_user()}
_mock_db = AsyncMock()


async def _override_get_current_user():
    return _current["user"]


async def _override_get_db():
    yield _mock_db


app = FastAPI()
app.include_router(router)
app.dependency_overrides[get_current_user] = _override_get_current_user
app.dependency_overrides[get_db] = _override_get_db

client = TestClient(app)


@pytest.fixture(autouse=True)
def _reset_user():
    _current["user"] = _make_user()
    yield


def _make_org(slug="rotterdam-agency"):
    now = datetime.now(UTC)
    org = MagicMock()
    org.id = uuid.uuid4()
    org.name = "Rotterdam Agency"
    org.slug = slug
    org.business_type = OrganizationBusinessType.SHIPPING_AGENCY
    org.registration_code = None
    org.description = None
    org.created_at = now
    org.updated_at = now
    return org


def _make_join_request(status=JoinRequestStatus.PENDING):
    now = datetime.now(UTC)
    join_request = MagicMock()
    join_request.id = uuid.uuid4()
    join_request.user_id = _current["user"].id
    join_request.organization_id = uuid.uuid4()
    join_request.status = status
    join_request.message = None
    join_request.admin_notes = None
    join_request.reviewed_by_user_id = None
    join_request.reviewed_at = None
    join_request.created_at = now
    join_request.updated_at = now
    return join_request


@patch("src.modules.organization.router.OrganizationService")
def test_create_organization(mock_svc_cls):
    mock_svc = AsyncMock()
    mock_svc.create_organization.return_value = _make_org()
    mock_svc_cls.return_value = mock_svc

    response = client.post(
        "/organizations/",
        json={"name": "Rotterdam Agency", "business_type": "shipping_agency"},
    )

    assert response.status_code == 201
    assert response.json()["slug"] == "rotterdam-agency"
    kwargs = mock_svc.create_organization.call_args.kwargs
    assert kwargs["creator_user_id"] == _current["user"].id
    assert kwargs["slug"] is None


def test_create_organization_rejects_malformed_slug():
    response = client.post(
        "/organizations/",
        json={"name": "X", "business_type": "vessel_owner", "slug": "no spaces!"},
    )
    assert response.status_code == 422


@patch("src.modules.organization.router.OrganizationService")
def test_request_to_join(mock_svc_cls):
    mock_svc = AsyncMock()
    mock_svc.request_to_join.return_value = _make_join_request()
    mock_svc_cls.return_value = mock_svc
    org_id = uuid.uuid4()

    response = client.post("/organizations/join-requests", json={"organization_id": str(org_id)})

    assert response.status_code == 201
    assert response.json()["status"] == "pending"
    assert mock_svc.request_to_join.call_args.kwargs["organization_id"] == org_id


def test_join_requests_hidden_from_other_organizations():
    with pytest.raises(ForbiddenException):
        client.get(f"/organizations/{uuid.uuid4()}/join-requests")


@patch("src.modules.organization.router.OrganizationService")
def test_approve_passes_role(mock_svc_cls):
    mock_svc = AsyncMock()
    mock_svc.approve_join_request.return_value = _make_join_request(JoinRequestStatus.APPROVED)
    mock_svc_cls.return_value = mock_svc

    response = client.post(
        f"/organizations/join-requests/{uuid.uuid4()}/approve", json={"role": "finance"}
    )

    assert response.status_code == 200
    assert mock_svc.approve_join_request.call_args.kwargs["role"] == UserRole.FINANCE
