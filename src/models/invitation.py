"""Invitation models: outstanding offers for a user to join an organization."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, pg_enum
from src.models.enums import InvitationType, UserRole

if TYPE_CHECKING:
    from src.models.organization import Organization
    from src.models.user import User


class Invitation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Write-once: rows are only ever inserted and deleted, never updated."""

    __tablename__ = "invitations"

    type: Mapped[InvitationType] = mapped_column(
        pg_enum(InvitationType, "invitationtype"), nullable=False
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    invited_by_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[UserRole] = mapped_column(pg_enum(UserRole, "userrole"), nullable=False)
    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    batch_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("invitation_batches.id", ondelete="SET NULL")
    )
    metadata_extra: Mapped[dict] = mapped_column(JSONB, nullable=False, server_default="{}")

    # Relationships
    organization: Mapped[Organization] = relationship(
        "Organization", back_populates="invitations", lazy="noload"
    )
    invited_by: Mapped[User] = relationship("User", lazy="noload")
    batch: Mapped[InvitationBatch | None] = relationship("InvitationBatch", lazy="noload")

    __table_args__ = (
        Index("ix_invitations_email_organization_id", "email", "organization_id"),
        Index("ix_invitations_batch_id", "batch_id", postgresql_where="batch_id IS NOT NULL"),
    )

    @property
    def custom_message(self) -> str | None:
        return (self.metadata_extra or {}).get("custom_message")

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or datetime.now(UTC))


class InvitationBatch(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A group of invitation deliveries dispatched together and cancellable as a unit."""

    __tablename__ = "invitation_batches"

    organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    created_by_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    total_jobs: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    @property
    def cancelled(self) -> bool:
        return self.cancelled_at is not None
