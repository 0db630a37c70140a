"""Service model: an offering published by a shipping agency at a port."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, pg_enum
from src.models.enums import ServiceStatus

if TYPE_CHECKING:
    from src.models.category import ServiceSubCategory
    from src.models.organization import Organization
    from src.models.port import Port


class Service(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "services"

    organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    port_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("ports.id", ondelete="CASCADE"),
        nullable=False,
    )
    service_sub_category_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("service_sub_categories.id", ondelete="RESTRICT"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[ServiceStatus] = mapped_column(
        pg_enum(ServiceStatus, "servicestatus"),
        nullable=False,
        server_default=ServiceStatus.ACTIVE.value,
    )

    # Relationships
    organization: Mapped[Organization] = relationship(
        "Organization", back_populates="services", lazy="noload"
    )
    port: Mapped[Port] = relationship("Port", lazy="noload")
    sub_category: Mapped[ServiceSubCategory] = relationship(
        "ServiceSubCategory", back_populates="services"
    )

    __table_args__ = (
        Index("ix_services_organization_id", "organization_id"),
        Index("ix_services_port_id", "port_id"),
        Index("ix_services_sub_category_id", "service_sub_category_id"),
        Index("ix_services_status", "status"),
    )
