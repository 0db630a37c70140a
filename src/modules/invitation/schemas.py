"""Pydantic v2 schemas for invitation endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import InvitationType, UserRole

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class InvitationCreate(BaseModel):
    email: str = Field(..., max_length=255, pattern=_EMAIL_PATTERN)
    role: UserRole = UserRole.VIEWER
    message: str | None = Field(None, max_length=1000)


class BulkInviteEntry(BaseModel):
    # Validated per entry by the service so one bad row does not fail the batch
    email: str = Field(..., max_length=255)
    role: str = UserRole.VIEWER.value


class BulkInviteRequest(BaseModel):
    invitations: list[BulkInviteEntry] = Field(..., min_length=1, max_length=500)
    message: str | None = Field(None, max_length=1000)
    batch_name: str | None = Field(None, max_length=255)


class InvitationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    type: InvitationType
    email: str
    organization_id: uuid.UUID
    invited_by_user_id: uuid.UUID
    role: UserRole
    expires_at: datetime
    batch_id: uuid.UUID | None = None
    created_at: datetime


class InvitationBatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    total_jobs: int
    cancelled_at: datetime | None = None
    created_at: datetime


class SkippedInvite(BaseModel):
    email: str
    reason: str


class BulkInviteResponse(BaseModel):
    batch: InvitationBatchResponse
    invitations: list[InvitationResponse]
    skipped: list[SkippedInvite] = Field(default_factory=list)


class MembershipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    organization_id: uuid.UUID
    role: UserRole
