"""Vessel model: vessels registered by vessel-owner organizations."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, pg_enum
from src.models.enums import VesselStatus, VesselType

if TYPE_CHECKING:
    from src.models.organization import Organization


class Vessel(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "vessels"

    organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    imo_number: Mapped[str] = mapped_column(String(7), unique=True, nullable=False)
    vessel_type: Mapped[VesselType] = mapped_column(
        pg_enum(VesselType, "vesseltype"), nullable=False, server_default=VesselType.OTHER.value
    )
    status: Mapped[VesselStatus] = mapped_column(
        pg_enum(VesselStatus, "vesselstatus"), nullable=False, server_default=VesselStatus.ACTIVE.value
    )
    gross_tonnage: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    organization: Mapped[Organization] = relationship("Organization", back_populates="vessels", lazy="noload")

    __table_args__ = (
        Index("ix_vessels_organization_id", "organization_id"),
    )
