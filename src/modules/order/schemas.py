"""Pydantic v2 schemas for order endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import LineItemDecision, OrderServiceStatus, OrderStatus

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class OrderCreate(BaseModel):
    vessel_id: uuid.UUID
    port_id: uuid.UUID
    service_ids: list[uuid.UUID] = Field(..., min_length=1)
    notes: str | None = Field(None, max_length=5000)
    submit: bool = True


class LineItemResponseRequest(BaseModel):
    decision: LineItemDecision
    notes: str | None = Field(None, max_length=1000)


class OrderCancelRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class OrderLineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    service_id: uuid.UUID
    provider_organization_id: uuid.UUID
    price_snapshot: Decimal
    status: OrderServiceStatus
    responded_at: datetime | None = None
    responded_by_user_id: uuid.UUID | None = None
    notes: str | None = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    vessel_id: uuid.UUID
    port_id: uuid.UUID
    placed_by_user_id: uuid.UUID
    placed_by_organization_id: uuid.UUID
    status: OrderStatus
    notes: str | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    total_price: Decimal
    line_items: list[OrderLineItemResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int
    limit: int
    offset: int
