from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, pg_enum
from src.models.enums import JoinRequestStatus

if TYPE_CHECKING:
    from src.models.organization import Organization
    from src.models.user import User


class OrganizationJoinRequest(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "organization_join_requests"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[JoinRequestStatus] = mapped_column(
        pg_enum(JoinRequestStatus, "joinrequeststatus"),
        nullable=False,
        server_default=JoinRequestStatus.PENDING.value,
    )
    message: Mapped[str | None] = mapped_column(String(1000))
    admin_notes: Mapped[str | None] = mapped_column(String(1000))
    reviewed_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL")
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    user: Mapped[User] = relationship("User", foreign_keys=[user_id], lazy="noload")
    organization: Mapped[Organization] = relationship("Organization", lazy="noload")

    __table_args__ = (
        Index("ix_organization_join_requests_user_org", "user_id", "organization_id"),
        Index("ix_organization_join_requests_status", "status"),
    )
