"""Router tests for invitation endpoints."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.database.session import get_db
from src.exceptions import ForbiddenException
from src.models.enums import InvitationType, OrganizationBusinessType, UserRole
from src.modules.invitation.router import router
from src.modules.organization.auth import AuthenticatedUser, get_current_user


def _make_user(role=UserRole.ADMIN) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=uuid.uuid4(),
        email="admin@northsea-shipping.com",
        organization_id=uuid.uuid4(),
        business_type=OrganizationBusinessType.VESSEL_OWNER,
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


def _make_invitation(email="bosun@northsea.com", batch_id=None):
    now = datetime.now(UTC)
    invitation = MagicMock()
    invitation.id = uuid.uuid4()
    invitation.type = InvitationType.USER_INVITATION
    invitation.email = email
    invitation.organization_id = _current["user"].organization_id
    invitation.invited_by_user_id = _current["user"].id
    invitation.role = UserRole.OPERATIONS
    invitation.expires_at = now + timedelta(days=14)
    invitation.batch_id = batch_id
    invitation.created_at = now
    return invitation


def _make_batch():
    batch = MagicMock()
    batch.id = uuid.uuid4()
    batch.organization_id = _current["user"].organization_id
    batch.name = "Bulk invitation"
    batch.total_jobs = 1
    batch.cancelled_at = None
    batch.created_at = datetime.now(UTC)
    return batch


class TestRouterPaths:
    def test_expected_paths(self):
        paths = {r.path for r in router.routes}
        assert {
            "/invitations/",
            "/invitations/bulk",
            "/invitations/batches/{batch_id}/cancel",
            "/invitations/{token}/accept",
            "/invitations/{token}/decline",
        } <= paths


@patch("src.modules.invitation.router.InvitationService")
def test_send_invitation(mock_svc_cls):
    mock_svc = AsyncMock()
    mock_svc.send_invitation.return_value = _make_invitation()
    mock_svc_cls.return_value = mock_svc

    response = client.post(
        "/invitations/", json={"email": "bosun@northsea.com", "role": "operations"}
    )

    assert response.status_code == 201
    assert response.json()["email"] == "bosun@northsea.com"
    kwargs = mock_svc.send_invitation.call_args.kwargs
    assert kwargs["organization_id"] == _current["user"].organization_id
    assert kwargs["role"] == UserRole.OPERATIONS


def test_send_invitation_rejects_malformed_email():
    response = client.post("/invitations/", json={"email": "bosun"})
    assert response.status_code == 422


@patch("src.modules.invitation.router.InvitationService")
def test_send_invitation_requires_admin(mock_svc_cls):
    _current["user"] = _make_user(role=UserRole.VIEWER)

    with pytest.raises(ForbiddenException):
        client.post("/invitations/", json={"email": "bosun@northsea.com"})
    mock_svc_cls.assert_not_called()


@patch("src.modules.invitation.router.InvitationService")
def test_bulk_invite_reports_skipped(mock_svc_cls):
    batch = _make_batch()
    mock_svc = AsyncMock()
    mock_svc.bulk_invite.return_value = (
        batch,
        [_make_invitation(batch_id=batch.id)],
        [{"email": "nope", "reason": "Invalid email address"}],
    )
    mock_svc_cls.return_value = mock_svc

    response = client.post(
        "/invitations/bulk",
        json={"invitations": [{"email": "bosun@northsea.com"}, {"email": "nope"}]},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["batch"]["id"] == str(batch.id)
    assert len(data["invitations"]) == 1
    assert data["skipped"] == [{"email": "nope", "reason": "Invalid email address"}]
    invites = mock_svc.bulk_invite.call_args.kwargs["invites"]
    assert invites[1] == {"email": "nope", "role": "viewer"}


@patch("src.modules.invitation.router.InvitationService")
def test_decline_returns_no_content(mock_svc_cls):
    mock_svc = AsyncMock()
    mock_svc_cls.return_value = mock_svc

    response = client.post("/invitations/abc/decline")

    assert response.status_code == 204
    mock_svc.decline.assert_awaited_once_with("abc")
