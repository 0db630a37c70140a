"""Router tests for catalog endpoints."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.database.session import get_db
from src.exceptions import ForbiddenException
from src.models.enums import OrganizationBusinessType, ServiceStatus, UserRole
from src.modules.catalog.router import router
from src.modules.organization.auth import AuthenticatedUser, get_current_user


def _make_user(business_type=OrganizationBusinessType.SHIPPING_AGENCY) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=uuid.uuid4(),
        email="ops@rotterdam-agency.com",
        organization_id=uuid.uuid4(),
        business_type=business_type,
        role=UserRole.OPERATIONS,
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


def _make_service(status=ServiceStatus.ACTIVE):
    now = datetime.now(UTC)
    service = MagicMock()
    service.id = uuid.uuid4()
    service.organization_id = _current["user"].organization_id
    service.port_id = uuid.uuid4()
    service.service_sub_category_id = uuid.uuid4()
    service.name = "Fresh water supply"
    service.description = None
    service.price = Decimal("320.00")
    service.status = status
    service.created_at = now
    service.updated_at = now
    return service


@patch("src.modules.catalog.router.CatalogService")
def test_category_services(mock_svc_cls):
    mock_svc = AsyncMock()
    mock_svc.get_category_services.return_value = [_make_service()]
    mock_svc_cls.return_value = mock_svc

    response = client.get(f"/catalog/categories/{uuid.uuid4()}/services")

    assert response.status_code == 200
    assert [s["name"] for s in response.json()] == ["Fresh water supply"]


@patch("src.modules.catalog.router.CatalogService")
def test_list_services_defaults_to_active(mock_svc_cls):
    mock_svc = AsyncMock()
    mock_svc.list_services.return_value = []
    mock_svc_cls.return_value = mock_svc
    port_id = uuid.uuid4()

    response = client.get("/catalog/services", params={"port_id": str(port_id)})

    assert response.status_code == 200
    kwargs = mock_svc.list_services.call_args.kwargs
    assert kwargs["port_id"] == port_id
    assert kwargs["status"] == ServiceStatus.ACTIVE


@patch("src.modules.catalog.router.CatalogService")
def test_create_service(mock_svc_cls):
    mock_svc = AsyncMock()
    mock_svc.create_service.return_value = _make_service()
    mock_svc_cls.return_value = mock_svc

    response = client.post(
        "/catalog/services",
        json={
            "port_id": str(uuid.uuid4()),
            "sub_category_id": str(uuid.uuid4()),
            "name": "Fresh water supply",
            "price": "320.00",
        },
    )

    assert response.status_code == 201
    assert mock_svc.create_service.call_args.kwargs["price"] == Decimal("320.00")


def test_vessel_owner_cannot_publish_services():
    _current["user"] = _make_user(OrganizationBusinessType.VESSEL_OWNER)

    with pytest.raises(ForbiddenException):
        client.post(
            "/catalog/services",
            json={
                "port_id": str(uuid.uuid4()),
                "sub_category_id": str(uuid.uuid4()),
                "name": "Towage",
                "price": "900",
            },
        )
