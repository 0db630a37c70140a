"""Order API router: placing, responding to and cancelling service orders."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.exceptions import ForbiddenException
from src.models.enums import OrderStatus, OrganizationBusinessType
from src.modules.order.schemas import (
    LineItemResponseRequest,
    OrderCancelRequest,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
)
from src.modules.order.service import OrderFulfillmentService
from src.modules.organization.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/orders", tags=["orders"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_vessel_owner(user: AuthenticatedUser) -> None:
    """Raise ForbiddenException unless the user acts for a vessel owner or the platform team."""
    if user.business_type not in (
        OrganizationBusinessType.VESSEL_OWNER,
        OrganizationBusinessType.PORTZAPP_TEAM,
    ):
        raise ForbiddenException("This action requires a vessel owner organization")


def _require_shipping_agency(user: AuthenticatedUser) -> None:
    """Raise ForbiddenException unless the user acts for a shipping agency."""
    if user.business_type not in (
        OrganizationBusinessType.SHIPPING_AGENCY,
        OrganizationBusinessType.PORTZAPP_TEAM,
    ):
        raise ForbiddenException("This action requires a shipping agency organization")


# ---------------------------------------------------------------------------
# Placing organization
# ---------------------------------------------------------------------------


@router.post("/", response_model=OrderResponse, status_code=201)
async def create_order(
    body: OrderCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Place an order for one or more port services."""
    _require_vessel_owner(user)
    svc = OrderFulfillmentService(db)
    order = await svc.create_order(
        placed_by_user_id=user.id,
        placed_by_organization_id=user.organization_id,
        vessel_id=body.vessel_id,
        port_id=body.port_id,
        service_ids=body.service_ids,
        notes=body.notes,
        submit=body.submit,
    )
    return OrderResponse.model_validate(order)


@router.get("/", response_model=OrderListResponse)
async def list_orders(
    status: OrderStatus | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List orders placed by the caller's organization."""
    _require_vessel_owner(user)
    svc = OrderFulfillmentService(db)
    items, total = await svc.list_orders(
        placed_by_organization_id=user.organization_id,
        status=status,
        limit=limit,
        offset=offset,
    )
    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/provider", response_model=OrderListResponse)
async def list_provider_orders(
    status: OrderStatus | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List orders that include services offered by the caller's agency."""
    _require_shipping_agency(user)
    svc = OrderFulfillmentService(db)
    items, total = await svc.list_provider_orders(
        provider_organization_id=user.organization_id,
        status=status,
        limit=limit,
        offset=offset,
    )
    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a single order with its service lines."""
    svc = OrderFulfillmentService(db)
    order = await svc.get_order(order_id)
    involved = order.placed_by_organization_id == user.organization_id or (
        user.organization_id in order.providing_organization_ids
    )
    if not involved and not user.is_platform_team:
        raise ForbiddenException("You do not have access to this order")
    return OrderResponse.model_validate(order)


@router.post("/{order_id}/submit", response_model=OrderResponse)
async def submit_order(
    order_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Submit a draft order to its providing agencies."""
    _require_vessel_owner(user)
    svc = OrderFulfillmentService(db)
    order = await svc.submit_order(order_id, user.organization_id)
    return OrderResponse.model_validate(order)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: uuid.UUID,
    body: OrderCancelRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel an order that is not yet confirmed."""
    svc = OrderFulfillmentService(db)
    order = await svc.cancel_order(
        order_id=order_id,
        organization_id=user.organization_id,
        reason=body.reason,
        is_platform_team=user.is_platform_team,
    )
    return OrderResponse.model_validate(order)


# ---------------------------------------------------------------------------
# Providing agency
# ---------------------------------------------------------------------------


@router.post("/{order_id}/services/{line_item_id}/respond", response_model=OrderResponse)
async def respond_to_line_item(
    order_id: uuid.UUID,
    line_item_id: uuid.UUID,
    body: LineItemResponseRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Confirm or decline one requested service (providing agency action)."""
    _require_shipping_agency(user)
    svc = OrderFulfillmentService(db)
    await svc.respond_to_line_item(
        order_id=order_id,
        line_item_id=line_item_id,
        organization_id=user.organization_id,
        user_id=user.id,
        decision=body.decision,
        notes=body.notes,
    )
    order = await svc.get_order(order_id)
    return OrderResponse.model_validate(order)


@router.post("/{order_id}/respond", response_model=OrderResponse)
async def respond_for_provider(
    order_id: uuid.UUID,
    body: LineItemResponseRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Confirm or decline all of the caller's open services on an order at once."""
    _require_shipping_agency(user)
    svc = OrderFulfillmentService(db)
    await svc.respond_for_provider(
        order_id=order_id,
        organization_id=user.organization_id,
        user_id=user.id,
        decision=body.decision,
        notes=body.notes,
    )
    order = await svc.get_order(order_id)
    return OrderResponse.model_validate(order)
