from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, pg_enum
from src.models.enums import OrganizationBusinessType

if TYPE_CHECKING:
    from src.models.invitation import Invitation
    from src.models.organization_membership import OrganizationMembership
    from src.models.service import Service
    from src.models.vessel import Vessel


class Organization(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    registration_code: Mapped[str | None] = mapped_column(String(100))
    business_type: Mapped[OrganizationBusinessType] = mapped_column(
        pg_enum(OrganizationBusinessType, "organizationbusinesstype"), nullable=False
    )
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000))

    # Relationships
    memberships: Mapped[list[OrganizationMembership]] = relationship(
        "OrganizationMembership", back_populates="organization", cascade="all, delete-orphan"
    )
    vessels: Mapped[list[Vessel]] = relationship("Vessel", back_populates="organization", lazy="noload")
    services: Mapped[list[Service]] = relationship("Service", back_populates="organization", lazy="noload")
    invitations: Mapped[list[Invitation]] = relationship(
        "Invitation", back_populates="organization", lazy="noload", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_organizations_slug", text("lower(slug)"), unique=True),
        Index("ix_organizations_business_type", "business_type"),
    )
