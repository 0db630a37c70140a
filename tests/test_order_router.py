"""Router tests for order endpoints."""

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
from src.models.enums import (
    OrderServiceStatus,
    OrderStatus,
    OrganizationBusinessType,
    UserRole,
)
from src.modules.order.router import _require_shipping_agency, _require_vessel_owner, router
from src.modules.organization.auth import AuthenticatedUser, get_current_user

# ── Test app setup ────────────────────────────────────────────────────────


def _make_user(business_type=OrganizationBusinessType.VESSEL_OWNER) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=uuid.uuid4(),
        email="ops@northsea-shipping.com",
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


def _make_mock_order(placed_by=None, provider=None, status=OrderStatus.PENDING_AGENCY_CONFIRMATION):
    now = datetime.now(UTC)
    order_id = uuid.uuid4()
    line = MagicMock()
    line.id = uuid.uuid4()
    line.order_id = order_id
    line.service_id = uuid.uuid4()
    line.provider_organization_id = provider or uuid.uuid4()
    line.price_snapshot = Decimal("250.00")
    line.status = OrderServiceStatus.UNCONFIRMED
    line.responded_at = None
    line.responded_by_user_id = None
    line.notes = None

    order = MagicMock()
    order.id = order_id
    order.order_number = "ORD-2026-000001"
    order.vessel_id = uuid.uuid4()
    order.port_id = uuid.uuid4()
    order.placed_by_user_id = uuid.uuid4()
    order.placed_by_organization_id = placed_by or uuid.uuid4()
    order.status = status
    order.notes = None
    order.cancelled_at = None
    order.cancellation_reason = None
    order.total_price = Decimal("250.00")
    order.line_items = [line]
    order.providing_organization_ids = [line.provider_organization_id]
    order.created_at = now
    order.updated_at = now
    return order


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


class TestRouterPaths:
    def test_expected_paths(self):
        paths = {r.path for r in router.routes}
        assert {
            "/orders/",
            "/orders/provider",
            "/orders/{order_id}",
            "/orders/{order_id}/submit",
            "/orders/{order_id}/cancel",
            "/orders/{order_id}/services/{line_item_id}/respond",
            "/orders/{order_id}/respond",
        } <= paths

    def test_create_and_list_share_root(self):
        methods = set()
        for r in router.routes:
            if r.path == "/orders/":
                methods.update(r.methods)
        assert {"GET", "POST"} <= methods


class TestHelperFunctions:
    def test_vessel_owner_guard(self):
        _require_vessel_owner(_make_user(OrganizationBusinessType.VESSEL_OWNER))
        _require_vessel_owner(_make_user(OrganizationBusinessType.PORTZAPP_TEAM))
        with pytest.raises(ForbiddenException, match="vessel owner"):
            _require_vessel_owner(_make_user(OrganizationBusinessType.SHIPPING_AGENCY))

    def test_shipping_agency_guard(self):
        _require_shipping_agency(_make_user(OrganizationBusinessType.SHIPPING_AGENCY))
        with pytest.raises(ForbiddenException, match="shipping agency"):
            _require_shipping_agency(_make_user(OrganizationBusinessType.VESSEL_OWNER))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@patch("src.modules.order.router.OrderFulfillmentService")
def test_create_order_endpoint(mock_svc_cls):
    user = _current["user"]
    mock_svc = AsyncMock()
    mock_svc.create_order.return_value = _make_mock_order(placed_by=user.organization_id)
    mock_svc_cls.return_value = mock_svc

    service_id = uuid.uuid4()
    response = client.post(
        "/orders/",
        json={
            "vessel_id": str(uuid.uuid4()),
            "port_id": str(uuid.uuid4()),
            "service_ids": [str(service_id)],
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending_agency_confirmation"
    assert len(data["line_items"]) == 1
    kwargs = mock_svc.create_order.call_args.kwargs
    assert kwargs["placed_by_organization_id"] == user.organization_id
    assert kwargs["service_ids"] == [service_id]
    assert kwargs["submit"] is True


def test_create_order_requires_services():
    response = client.post(
        "/orders/",
        json={"vessel_id": str(uuid.uuid4()), "port_id": str(uuid.uuid4()), "service_ids": []},
    )
    assert response.status_code == 422


@patch("src.modules.order.router.OrderFulfillmentService")
def test_respond_endpoint_passes_decision(mock_svc_cls):
    agency = _make_user(OrganizationBusinessType.SHIPPING_AGENCY)
    _current["user"] = agency
    order = _make_mock_order(provider=agency.organization_id)
    mock_svc = AsyncMock()
    mock_svc.respond_to_line_item.return_value = order
    mock_svc.get_order.return_value = order
    mock_svc_cls.return_value = mock_svc

    line_id = order.line_items[0].id
    response = client.post(
        f"/orders/{order.id}/services/{line_id}/respond",
        json={"decision": "confirm"},
    )

    assert response.status_code == 200
    kwargs = mock_svc.respond_to_line_item.call_args.kwargs
    assert kwargs["organization_id"] == agency.organization_id
    assert kwargs["line_item_id"] == line_id
    assert kwargs["decision"].value == "confirm"


@patch("src.modules.order.router.OrderFulfillmentService")
def test_provider_respond_endpoint_answers_for_caller_org(mock_svc_cls):
    agency = _make_user(OrganizationBusinessType.SHIPPING_AGENCY)
    _current["user"] = agency
    order = _make_mock_order(provider=agency.organization_id)
    mock_svc = AsyncMock()
    mock_svc.respond_for_provider.return_value = order
    mock_svc.get_order.return_value = order
    mock_svc_cls.return_value = mock_svc

    response = client.post(
        f"/orders/{order.id}/respond",
        json={"decision": "decline", "notes": "No pilots available"},
    )

    assert response.status_code == 200
    kwargs = mock_svc.respond_for_provider.call_args.kwargs
    assert kwargs["order_id"] == order.id
    assert kwargs["organization_id"] == agency.organization_id
    assert kwargs["user_id"] == agency.id
    assert kwargs["decision"].value == "decline"
    assert kwargs["notes"] == "No pilots available"
    mock_svc.get_order.assert_awaited_once_with(order.id)


@patch("src.modules.order.router.OrderFulfillmentService")
def test_provider_respond_endpoint_rejects_vessel_owner(mock_svc_cls):
    _current["user"] = _make_user(OrganizationBusinessType.VESSEL_OWNER)
    mock_svc_cls.return_value = AsyncMock()

    with pytest.raises(ForbiddenException):
        client.post(f"/orders/{uuid.uuid4()}/respond", json={"decision": "confirm"})

    mock_svc_cls.return_value.respond_for_provider.assert_not_awaited()


@patch("src.modules.order.router.OrderFulfillmentService")
def test_get_order_allows_providing_agency(mock_svc_cls):
    agency = _make_user(OrganizationBusinessType.SHIPPING_AGENCY)
    _current["user"] = agency
    mock_svc = AsyncMock()
    mock_svc.get_order.return_value = _make_mock_order(provider=agency.organization_id)
    mock_svc_cls.return_value = mock_svc

    response = client.get(f"/orders/{uuid.uuid4()}")

    assert response.status_code == 200


@patch("src.modules.order.router.OrderFulfillmentService")
def test_get_order_hides_unrelated_orders(mock_svc_cls):
    mock_svc = AsyncMock()
    mock_svc.get_order.return_value = _make_mock_order()
    mock_svc_cls.return_value = mock_svc

    with pytest.raises(ForbiddenException):
        client.get(f"/orders/{uuid.uuid4()}")


@patch("src.modules.order.router.OrderFulfillmentService")
def test_cancel_passes_platform_flag(mock_svc_cls):
    staff = _make_user(OrganizationBusinessType.PORTZAPP_TEAM)
    _current["user"] = staff
    mock_svc = AsyncMock()
    mock_svc.cancel_order.return_value = _make_mock_order(status=OrderStatus.CANCELLED)
    mock_svc_cls.return_value = mock_svc

    response = client.post(f"/orders/{uuid.uuid4()}/cancel", json={"reason": "Duplicate order"})

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert mock_svc.cancel_order.call_args.kwargs["is_platform_team"] is True
