"""Invitation API router."""

import uuid

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.exceptions import ForbiddenException
from src.modules.invitation.schemas import (
    BulkInviteRequest,
    BulkInviteResponse,
    InvitationBatchResponse,
    InvitationCreate,
    InvitationResponse,
    MembershipResponse,
)
from src.modules.invitation.service import InvitationService
from src.modules.organization.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/invitations", tags=["invitations"])

limiter = Limiter(key_func=get_remote_address)


def _require_org_admin(user: AuthenticatedUser) -> None:
    if not user.is_org_admin:
        raise ForbiddenException("Only organization admins can manage invitations")


@router.post("/", response_model=InvitationResponse, status_code=201)
@limiter.limit("30/minute")
async def send_invitation(
    request: Request,
    body: InvitationCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Invite someone to the caller's current organization."""
    _require_org_admin(user)
    svc = InvitationService(db)
    invitation = await svc.send_invitation(
        organization_id=user.organization_id,
        invited_by=user.id,
        email=body.email,
        role=body.role,
        message=body.message,
    )
    return InvitationResponse.model_validate(invitation)


@router.post("/bulk", response_model=BulkInviteResponse, status_code=201)
@limiter.limit("5/minute")
async def bulk_invite(
    request: Request,
    body: BulkInviteRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Invite many people at once as a cancellable batch."""
    _require_org_admin(user)
    svc = InvitationService(db)
    batch, invitations, skipped = await svc.bulk_invite(
        organization_id=user.organization_id,
        invited_by=user.id,
        invites=[entry.model_dump() for entry in body.invitations],
        message=body.message,
        batch_name=body.batch_name,
    )
    return BulkInviteResponse(
        batch=InvitationBatchResponse.model_validate(batch),
        invitations=[InvitationResponse.model_validate(i) for i in invitations],
        skipped=skipped,
    )


@router.post("/batches/{batch_id}/cancel", response_model=InvitationBatchResponse)
async def cancel_batch(
    batch_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Stop the remaining deliveries of a batch."""
    _require_org_admin(user)
    svc = InvitationService(db)
    batch = await svc.cancel_batch(batch_id, user.organization_id)
    return InvitationBatchResponse.model_validate(batch)


@router.get("/", response_model=list[InvitationResponse])
async def list_pending(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Unexpired invitations for the caller's organization."""
    _require_org_admin(user)
    svc = InvitationService(db)
    items = await svc.list_pending(user.organization_id)
    return [InvitationResponse.model_validate(i) for i in items]


@router.post("/{token}/accept", response_model=MembershipResponse)
async def accept_invitation(
    token: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = InvitationService(db)
    membership = await svc.accept(token, user.id)
    return MembershipResponse.model_validate(membership)


@router.post("/{token}/decline", status_code=204)
async def decline_invitation(
    token: str,
    db: AsyncSession = Depends(get_db),
):
    svc = InvitationService(db)
    await svc.decline(token)
