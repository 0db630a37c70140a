"""Organization API router: organizations and join requests."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.exceptions import ForbiddenException
from src.modules.organization.auth import AuthenticatedUser, get_current_user
from src.modules.organization.schemas import (
    JoinRequestCreate,
    JoinRequestResponse,
    JoinRequestReview,
    OrganizationCreate,
    OrganizationResponse,
)
from src.modules.organization.service import OrganizationService

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.post("/", response_model=OrganizationResponse, status_code=201)
async def create_organization(
    body: OrganizationCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create an organization; the caller becomes its admin."""
    svc = OrganizationService(db)
    org = await svc.create_organization(
        name=body.name,
        business_type=body.business_type,
        creator_user_id=user.id,
        slug=body.slug,
        registration_code=body.registration_code,
        description=body.description,
    )
    return OrganizationResponse.model_validate(org)


@router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(
    organization_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = OrganizationService(db)
    org = await svc.get_organization(organization_id)
    return OrganizationResponse.model_validate(org)


# ---------------------------------------------------------------------------
# Join requests
# ---------------------------------------------------------------------------


@router.post("/join-requests", response_model=JoinRequestResponse, status_code=201)
async def request_to_join(
    body: JoinRequestCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Ask to join an existing organization."""
    svc = OrganizationService(db)
    join_request = await svc.request_to_join(
        user_id=user.id,
        organization_id=body.organization_id,
        message=body.message,
    )
    return JoinRequestResponse.model_validate(join_request)


@router.get("/{organization_id}/join-requests", response_model=list[JoinRequestResponse])
async def list_join_requests(
    organization_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List pending join requests (organization admins)."""
    if organization_id != user.organization_id or not user.is_org_admin:
        raise ForbiddenException("Only organization admins can view join requests")
    svc = OrganizationService(db)
    items = await svc.list_join_requests(organization_id)
    return [JoinRequestResponse.model_validate(r) for r in items]


@router.post("/join-requests/{request_id}/approve", response_model=JoinRequestResponse)
async def approve_join_request(
    request_id: uuid.UUID,
    body: JoinRequestReview,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = OrganizationService(db)
    join_request = await svc.approve_join_request(
        request_id=request_id,
        reviewer_id=user.id,
        role=body.role,
        admin_notes=body.admin_notes,
    )
    return JoinRequestResponse.model_validate(join_request)


@router.post("/join-requests/{request_id}/reject", response_model=JoinRequestResponse)
async def reject_join_request(
    request_id: uuid.UUID,
    body: JoinRequestReview,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = OrganizationService(db)
    join_request = await svc.reject_join_request(
        request_id=request_id,
        reviewer_id=user.id,
        admin_notes=body.admin_notes,
    )
    return JoinRequestResponse.model_validate(join_request)


@router.post("/join-requests/{request_id}/withdraw", response_model=JoinRequestResponse)
async def withdraw_join_request(
    request_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = OrganizationService(db)
    join_request = await svc.withdraw_join_request(request_id, user.id)
    return JoinRequestResponse.model_validate(join_request)
