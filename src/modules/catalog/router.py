"""Catalog API router: service taxonomy and agency offerings."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.exceptions import ForbiddenException
from src.models.enums import OrganizationBusinessType, ServiceStatus
from src.modules.catalog.schemas import (
    CategoryResponse,
    ServiceCreate,
    ServiceResponse,
    ServiceStatusUpdate,
)
from src.modules.catalog.service import CatalogService
from src.modules.organization.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/catalog", tags=["catalog"])


def _require_shipping_agency(user: AuthenticatedUser) -> None:
    if user.business_type != OrganizationBusinessType.SHIPPING_AGENCY:
        raise ForbiddenException("This action requires a shipping agency organization")


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = CatalogService(db)
    categories = await svc.list_categories()
    return [CategoryResponse.model_validate(c) for c in categories]


@router.get("/categories/{category_id}/services", response_model=list[ServiceResponse])
async def get_category_services(
    category_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Every service in any sub-category of the category."""
    svc = CatalogService(db)
    services = await svc.get_category_services(category_id)
    return [ServiceResponse.model_validate(s) for s in services]


@router.get("/services", response_model=list[ServiceResponse])
async def list_services(
    port_id: uuid.UUID | None = Query(None),
    sub_category_id: uuid.UUID | None = Query(None),
    organization_id: uuid.UUID | None = Query(None),
    status: ServiceStatus | None = Query(ServiceStatus.ACTIVE),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = CatalogService(db)
    services = await svc.list_services(
        port_id=port_id,
        sub_category_id=sub_category_id,
        organization_id=organization_id,
        status=status,
    )
    return [ServiceResponse.model_validate(s) for s in services]


@router.post("/services", response_model=ServiceResponse, status_code=201)
async def create_service(
    body: ServiceCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Publish a service at a port (shipping agency action)."""
    _require_shipping_agency(user)
    svc = CatalogService(db)
    service = await svc.create_service(
        organization_id=user.organization_id,
        port_id=body.port_id,
        sub_category_id=body.sub_category_id,
        name=body.name,
        price=body.price,
        description=body.description,
    )
    return ServiceResponse.model_validate(service)


@router.put("/services/{service_id}/status", response_model=ServiceResponse)
async def update_service_status(
    service_id: uuid.UUID,
    body: ServiceStatusUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _require_shipping_agency(user)
    svc = CatalogService(db)
    service = await svc.update_service_status(service_id, user.organization_id, body.status)
    return ServiceResponse.model_validate(service)
