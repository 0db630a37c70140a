"""Pydantic v2 schemas for organization and join-request endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import JoinRequestStatus, OrganizationBusinessType, UserRole


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    business_type: OrganizationBusinessType
    slug: str | None = Field(None, min_length=2, max_length=100, pattern=r"^[A-Za-z0-9-]+$")
    registration_code: str | None = Field(None, max_length=100)
    description: str | None = Field(None, max_length=1000)


class OrganizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    business_type: OrganizationBusinessType
    registration_code: str | None = None
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class JoinRequestCreate(BaseModel):
    organization_id: uuid.UUID
    message: str | None = Field(None, max_length=1000)


class JoinRequestReview(BaseModel):
    role: UserRole = UserRole.VIEWER
    admin_notes: str | None = Field(None, max_length=1000)


class JoinRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    organization_id: uuid.UUID
    status: JoinRequestStatus
    message: str | None = None
    admin_notes: str | None = None
    reviewed_by_user_id: uuid.UUID | None = None
    reviewed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
