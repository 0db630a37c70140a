"""Two-level service taxonomy: ServiceCategory -> ServiceSubCategory -> Service."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from src.models.service import Service


class ServiceCategory(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "service_categories"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    # Relationships
    sub_categories: Mapped[list[ServiceSubCategory]] = relationship(
        "ServiceSubCategory",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="ServiceSubCategory.sort_order",
    )
    # has-many-through: every service of every sub-category of this category
    services: Mapped[list[Service]] = relationship(
        "Service",
        secondary="service_sub_categories",
        primaryjoin="ServiceCategory.id == ServiceSubCategory.service_category_id",
        secondaryjoin="ServiceSubCategory.id == Service.service_sub_category_id",
        viewonly=True,
        lazy="noload",
    )


class ServiceSubCategory(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "service_sub_categories"

    service_category_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("service_categories.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000))
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    # Relationships
    category: Mapped[ServiceCategory] = relationship("ServiceCategory", back_populates="sub_categories")
    services: Mapped[list[Service]] = relationship(
        "Service", back_populates="sub_category", order_by="Service.name"
    )

    __table_args__ = (
        UniqueConstraint("service_category_id", "name", name="uq_service_sub_categories_category_name"),
        Index("ix_service_sub_categories_category_id", "service_category_id"),
    )
