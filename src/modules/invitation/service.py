"""Invitation service: inviting people to an organization and redeeming invitations.

Invitations are write-once: created, then either accepted, declined, or
deleted after delivery fails. Delivery is queued only after the invitation
row is committed so the worker can always see it.
"""

from __future__ import annotations

import logging
import re
import secrets
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.exceptions import (
    BusinessRuleException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from src.models.enums import InvitationType, UserRole
from src.models.invitation import Invitation, InvitationBatch
from src.models.organization import Organization
from src.models.organization_membership import OrganizationMembership
from src.models.user import User
from src.modules.invitation.constants import (
    DEFAULT_BATCH_NAME,
    INVITATION_TOKEN_LENGTH,
    NOTIFICATIONS_QUEUE,
)

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

DeliveryDispatcher = Callable[[Invitation, str | None, uuid.UUID | None], None]


def enqueue_delivery(
    invitation: Invitation, custom_message: str | None, batch_id: uuid.UUID | None
) -> None:
    """Queue the delivery task for one invitation."""
    from src.modules.invitation.tasks import send_invitation_email

    send_invitation_email.apply_async(
        kwargs={
            "invitation_id": str(invitation.id),
            "custom_message": custom_message,
            "batch_id": str(batch_id) if batch_id else None,
            "email": invitation.email,
        },
        queue=NOTIFICATIONS_QUEUE,
    )


def generate_token() -> str:
    return secrets.token_urlsafe(INVITATION_TOKEN_LENGTH)[:INVITATION_TOKEN_LENGTH]


class InvitationService:
    def __init__(self, db: AsyncSession, dispatcher: DeliveryDispatcher | None = None):
        self.db = db
        self.dispatch = dispatcher or enqueue_delivery

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    async def _require_organization(self, organization_id: uuid.UUID) -> Organization:
        result = await self.db.execute(
            select(Organization).where(Organization.id == organization_id)
        )
        org = result.scalar_one_or_none()
        if org is None:
            raise NotFoundException(f"Organization {organization_id} not found")
        return org

    async def _invitation_blocker(self, organization_id: uuid.UUID, email: str) -> str | None:
        """Reason an email cannot be invited right now, or None."""
        result = await self.db.execute(
            select(OrganizationMembership.id)
            .join(User, User.id == OrganizationMembership.user_id)
            .where(
                OrganizationMembership.organization_id == organization_id,
                func.lower(User.email) == email,
            )
        )
        if result.scalar_one_or_none() is not None:
            return "User is already a member of this organization"

        result = await self.db.execute(
            select(Invitation.id).where(
                Invitation.organization_id == organization_id,
                func.lower(Invitation.email) == email,
                Invitation.expires_at > datetime.now(UTC),
            )
        )
        if result.first() is not None:
            return "A pending invitation already exists for this email"
        return None

    def _build_invitation(
        self,
        organization_id: uuid.UUID,
        invited_by: uuid.UUID,
        email: str,
        role: UserRole,
        message: str | None,
        invitation_type: InvitationType,
        batch_id: uuid.UUID | None = None,
    ) -> Invitation:
        return Invitation(
            type=invitation_type,
            email=email,
            invited_by_user_id=invited_by,
            organization_id=organization_id,
            role=role,
            token=generate_token(),
            expires_at=datetime.now(UTC) + timedelta(days=settings.invitation_expiry_days),
            batch_id=batch_id,
            metadata_extra={"custom_message": message} if message else {},
        )

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send_invitation(
        self,
        organization_id: uuid.UUID,
        invited_by: uuid.UUID,
        email: str,
        role: UserRole,
        message: str | None = None,
        invitation_type: InvitationType = InvitationType.USER_INVITATION,
    ) -> Invitation:
        """Create an invitation and queue its email."""
        email = email.strip().lower()
        await self._require_organization(organization_id)

        reason = await self._invitation_blocker(organization_id, email)
        if reason is not None:
            raise ConflictException(reason)

        invitation = self._build_invitation(
            organization_id, invited_by, email, role, message, invitation_type
        )
        self.db.add(invitation)
        await self.db.flush()
        await self.db.refresh(invitation)
        await self.db.commit()

        try:
            self.dispatch(invitation, message, None)
        except Exception as exc:
            logger.exception("Could not queue invitation %s for %s", invitation.id, email)
            await self.db.delete(invitation)
            await self.db.commit()
            raise BusinessRuleException("Failed to send invitation. Please try again.") from exc

        logger.info(
            "Invited %s to organization %s as %s", email, organization_id, role.value
        )
        return invitation

    async def bulk_invite(
        self,
        organization_id: uuid.UUID,
        invited_by: uuid.UUID,
        invites: list[dict],
        message: str | None = None,
        batch_name: str | None = None,
    ) -> tuple[InvitationBatch, list[Invitation], list[dict]]:
        """Invite many people as one cancellable batch.

        Each entry is ``{"email": ..., "role": ...}``. Invalid entries are
        skipped and returned with a reason instead of failing the request.
        """
        await self._require_organization(organization_id)

        valid: list[tuple[str, UserRole]] = []
        skipped: list[dict] = []
        seen: set[str] = set()

        for entry in invites:
            email = str(entry.get("email") or "").strip().lower()
            if not _EMAIL_RE.match(email):
                skipped.append({"email": email, "reason": "Invalid email address"})
                continue
            if email in seen:
                skipped.append({"email": email, "reason": "Duplicate email in request"})
                continue
            seen.add(email)

            try:
                role = UserRole(entry.get("role") or UserRole.VIEWER.value)
            except ValueError:
                skipped.append({"email": email, "reason": f"Unknown role '{entry.get('role')}'"})
                continue

            reason = await self._invitation_blocker(organization_id, email)
            if reason is not None:
                skipped.append({"email": email, "reason": reason})
                continue
            valid.append((email, role))

        if not valid:
            raise ValidationException("No valid invitations to send", details=skipped)

        batch = InvitationBatch(
            organization_id=organization_id,
            created_by_user_id=invited_by,
            name=batch_name or DEFAULT_BATCH_NAME,
            total_jobs=len(valid),
        )
        self.db.add(batch)
        await self.db.flush()

        invitations = [
            self._build_invitation(
                organization_id, invited_by, email, role, message,
                InvitationType.USER_INVITATION, batch_id=batch.id,
            )
            for email, role in valid
        ]
        self.db.add_all(invitations)
        await self.db.flush()
        await self.db.commit()

        queued: list[Invitation] = []
        for invitation in invitations:
            try:
                self.dispatch(invitation, message, batch.id)
            except Exception:
                logger.exception("Could not queue invitation %s for %s", invitation.id, invitation.email)
                await self.db.delete(invitation)
                skipped.append({"email": invitation.email, "reason": "Could not queue delivery"})
                continue
            queued.append(invitation)

        batch.total_jobs = len(queued)
        await self.db.commit()

        logger.info(
            "Queued batch %s: %d invitations, %d skipped",
            batch.id, len(queued), len(skipped),
        )
        return batch, queued, skipped

    async def cancel_batch(
        self, batch_id: uuid.UUID, organization_id: uuid.UUID
    ) -> InvitationBatch:
        """Stop pending deliveries of a batch; already-sent emails are unaffected."""
        result = await self.db.execute(
            select(InvitationBatch).where(
                InvitationBatch.id == batch_id,
                InvitationBatch.organization_id == organization_id,
            )
        )
        batch = result.scalar_one_or_none()
        if batch is None:
            raise NotFoundException(f"Invitation batch {batch_id} not found")

        if batch.cancelled_at is None:
            batch.cancelled_at = datetime.now(UTC)
            await self.db.flush()
            logger.info("Cancelled invitation batch %s", batch_id)
        return batch

    # ------------------------------------------------------------------
    # Redeeming
    # ------------------------------------------------------------------

    async def _get_by_token(self, token: str) -> Invitation:
        result = await self.db.execute(select(Invitation).where(Invitation.token == token))
        invitation = result.scalar_one_or_none()
        if invitation is None:
            raise NotFoundException("Invitation not found or already used")
        return invitation

    async def accept(self, token: str, user_id: uuid.UUID) -> OrganizationMembership:
        """Join the inviting organization and consume the invitation."""
        invitation = await self._get_by_token(token)
        if invitation.is_expired():
            raise BusinessRuleException("This invitation has expired")

        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundException(f"User {user_id} not found")
        if user.email.lower() != invitation.email.lower():
            raise ForbiddenException("This invitation was sent to a different email address")

        result = await self.db.execute(
            select(OrganizationMembership).where(
                OrganizationMembership.organization_id == invitation.organization_id,
                OrganizationMembership.user_id == user_id,
            )
        )
        membership = result.scalar_one_or_none()
        if membership is None:
            membership = OrganizationMembership(
                user_id=user_id,
                organization_id=invitation.organization_id,
                role=invitation.role,
            )
            self.db.add(membership)
        if user.current_organization_id is None:
            user.current_organization_id = invitation.organization_id

        await self.db.delete(invitation)
        await self.db.flush()
        await self.db.refresh(membership)

        logger.info(
            "User %s accepted invitation %s to organization %s",
            user_id, invitation.id, invitation.organization_id,
        )
        return membership

    async def decline(self, token: str) -> None:
        invitation = await self._get_by_token(token)
        await self.db.delete(invitation)
        await self.db.flush()
        logger.info("Invitation %s declined", invitation.id)

    async def list_pending(self, organization_id: uuid.UUID) -> list[Invitation]:
        """Unexpired invitations for an organization, newest first."""
        result = await self.db.execute(
            select(Invitation)
            .where(
                Invitation.organization_id == organization_id,
                Invitation.expires_at > datetime.now(UTC),
            )
            .order_by(Invitation.created_at.desc())
        )
        return list(result.scalars().all())
