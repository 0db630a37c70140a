"""OrderService model: one requested service on an order, confirmed or declined by its provider."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, pg_enum
from src.models.enums import OrderServiceStatus

if TYPE_CHECKING:
    from src.models.order import Order
    from src.models.service import Service


class OrderService(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "order_service"

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Copied from Service.organization_id at order time
    provider_organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    price_snapshot: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[OrderServiceStatus] = mapped_column(
        pg_enum(OrderServiceStatus, "orderservicestatus"),
        nullable=False,
        server_default=OrderServiceStatus.UNCONFIRMED.value,
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    responded_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL")
    )
    notes: Mapped[str | None] = mapped_column(String(1000))

    # Relationships
    order: Mapped[Order] = relationship("Order", back_populates="line_items", lazy="noload")
    service: Mapped[Service] = relationship("Service", lazy="noload")

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        UniqueConstraint("order_id", "service_id", name="uq_order_service_order_service"),
        Index("ix_order_service_order_id", "order_id"),
        Index("ix_order_service_provider_organization_id", "provider_organization_id"),
    )
