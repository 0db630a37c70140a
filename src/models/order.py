"""Order model: aggregate root for a vessel owner's service request at a port."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, pg_enum
from src.models.enums import OrderStatus

if TYPE_CHECKING:
    from src.models.order_service import OrderService
    from src.models.organization import Organization
    from src.models.port import Port
    from src.models.user import User
    from src.models.vessel import Vessel


class Order(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "orders"

    order_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    vessel_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("vessels.id", ondelete="CASCADE"),
        nullable=False,
    )
    port_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("ports.id", ondelete="CASCADE"),
        nullable=False,
    )
    placed_by_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    placed_by_organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text)
    status: Mapped[OrderStatus] = mapped_column(
        pg_enum(OrderStatus, "orderstatus"),
        nullable=False,
        server_default=OrderStatus.DRAFT.value,
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancellation_reason: Mapped[str | None] = mapped_column(String(1000))

    # Optimistic concurrency counter, bumped by the mapper on every UPDATE
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")

    # Relationships
    vessel: Mapped[Vessel] = relationship("Vessel", lazy="noload")
    port: Mapped[Port] = relationship("Port", lazy="noload")
    placed_by_user: Mapped[User] = relationship("User", lazy="noload")
    placed_by_organization: Mapped[Organization] = relationship(
        "Organization", foreign_keys=[placed_by_organization_id], lazy="noload"
    )
    line_items: Mapped[list[OrderService]] = relationship(
        "OrderService",
        back_populates="order",
        lazy="noload",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": version, "eager_defaults": True}

    __table_args__ = (
        Index("ix_orders_placed_by_organization_id", "placed_by_organization_id"),
        Index("ix_orders_status", "status"),
        Index("ix_orders_vessel_id", "vessel_id"),
    )

    @property
    def total_price(self) -> Decimal:
        return sum((li.price_snapshot for li in self.line_items), Decimal("0"))

    @property
    def providing_organization_ids(self) -> list[uuid.UUID]:
        seen: dict[uuid.UUID, None] = {}
        for li in self.line_items:
            seen.setdefault(li.provider_organization_id, None)
        return list(seen)
