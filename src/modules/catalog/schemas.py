"""Pydantic v2 schemas for catalog endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import ServiceStatus


class ServiceCreate(BaseModel):
    port_id: uuid.UUID
    sub_category_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class ServiceStatusUpdate(BaseModel):
    status: ServiceStatus


class ServiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    port_id: uuid.UUID
    service_sub_category_id: uuid.UUID
    name: str
    description: str | None = None
    price: Decimal
    status: ServiceStatus
    created_at: datetime
    updated_at: datetime


class SubCategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None = None
    sort_order: int


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    sub_categories: list[SubCategoryResponse] = Field(default_factory=list)
