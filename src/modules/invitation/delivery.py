"""Invitation delivery: one attempt at mailing an invitation.

Retries belong to the Celery task; this service handles a single attempt
and the compensating delete when the last attempt fails. The invitation row
is never updated here: it is either left alone or removed.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.config import settings
from src.models.enums import ROLE_LABELS
from src.models.invitation import Invitation, InvitationBatch
from src.modules.invitation.constants import (
    ACCEPT_PATH,
    DECLINE_PATH,
    EVENT_ATTEMPT_FAILED,
    EVENT_DELETED_AFTER_FAILURE,
    EVENT_FAILED_PERMANENTLY,
    EVENT_SENDING,
    EVENT_SENT,
    INVITATION_TEMPLATE,
)
from src.modules.invitation.mail.base import MailSenderBase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryAttempt:
    """Position of the current try within the retry budget."""

    number: int
    max_attempts: int = 3
    timeout_seconds: float = 60

    @property
    def is_final(self) -> bool:
        return self.number >= self.max_attempts


def build_template_data(invitation: Invitation, custom_message: str | None = None) -> dict:
    """Data for the ``invitation`` mail template."""
    base_url = settings.app_url.rstrip("/")
    inviter = invitation.invited_by
    return {
        "organization_name": invitation.organization.name if invitation.organization else None,
        "inviter_email": inviter.email if inviter else None,
        "inviter_name": inviter.name if inviter else None,
        "role": ROLE_LABELS.get(invitation.role, invitation.role.value),
        "custom_message": custom_message or invitation.custom_message,
        "accept_url": base_url + ACCEPT_PATH.format(token=invitation.token),
        "decline_url": base_url + DECLINE_PATH.format(token=invitation.token),
        "expires_at": invitation.expires_at.isoformat(),
    }


class InvitationDeliveryService:
    def __init__(self, db: AsyncSession, mailer: MailSenderBase):
        self.db = db
        self.mailer = mailer

    async def _batch_cancelled(self, batch_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(InvitationBatch.cancelled_at).where(InvitationBatch.id == batch_id)
        )
        return result.scalar_one_or_none() is not None

    async def deliver(
        self,
        invitation_id: uuid.UUID,
        custom_message: str | None,
        attempt: DeliveryAttempt,
        batch_id: uuid.UUID | None = None,
    ) -> bool:
        """Send the invitation email once.

        Returns False when nothing was sent (cancelled batch or the invitation
        no longer exists), True on success. A failed send is re-raised after
        logging; on the final attempt the invitation is deleted first.
        """
        if batch_id is not None and await self._batch_cancelled(batch_id):
            return False

        result = await self.db.execute(
            select(Invitation)
            .options(selectinload(Invitation.organization), selectinload(Invitation.invited_by))
            .where(Invitation.id == invitation_id)
        )
        invitation = result.scalar_one_or_none()
        if invitation is None:
            logger.warning("Invitation %s no longer exists; skipping delivery", invitation_id)
            return False

        logger.info(
            "Sending invitation %s to %s (attempt %d/%d)",
            invitation.id, invitation.email, attempt.number, attempt.max_attempts,
            extra={
                "event": EVENT_SENDING,
                "invitation_id": str(invitation.id),
                "email": invitation.email,
                "attempt": attempt.number,
            },
        )

        try:
            async with asyncio.timeout(attempt.timeout_seconds):
                await self.mailer.send(
                    invitation.email,
                    INVITATION_TEMPLATE,
                    build_template_data(invitation, custom_message),
                )
        except Exception as exc:
            error = str(exc) or type(exc).__name__
            logger.error(
                "Invitation %s to %s failed on attempt %d: %s",
                invitation.id, invitation.email, attempt.number, error,
                extra={
                    "event": EVENT_ATTEMPT_FAILED,
                    "invitation_id": str(invitation.id),
                    "email": invitation.email,
                    "error": error,
                    "attempt": attempt.number,
                },
            )
            if attempt.is_final:
                await self._delete_after_failure(invitation)
            raise

        logger.info(
            "Sent invitation %s to %s",
            invitation.id, invitation.email,
            extra={
                "event": EVENT_SENT,
                "invitation_id": str(invitation.id),
                "email": invitation.email,
            },
        )
        return True

    async def _delete_after_failure(self, invitation: Invitation) -> None:
        await self.db.delete(invitation)
        await self.db.flush()
        logger.warning(
            "Deleted invitation %s after final delivery failure",
            invitation.id,
            extra={
                "event": EVENT_DELETED_AFTER_FAILURE,
                "invitation_id": str(invitation.id),
                "email": invitation.email,
            },
        )

    @staticmethod
    def report_permanent_failure(
        invitation_id: uuid.UUID | str, email: str | None, exc: BaseException
    ) -> None:
        """Emit the single event marking an invitation as undeliverable."""
        logger.error(
            "Invitation %s to %s failed permanently: %s",
            invitation_id, email, exc,
            extra={
                "event": EVENT_FAILED_PERMANENTLY,
                "invitation_id": str(invitation_id),
                "email": email,
                "error": str(exc),
            },
        )
