"""Celery tasks for invitation email delivery."""

from __future__ import annotations

import asyncio
import logging
import uuid

from celery import Task

from celery_app import celery
from src.config import settings
from src.database.engine import worker_session
from src.modules.invitation.constants import INVITATION_TASK_NAME, NOTIFICATIONS_QUEUE
from src.modules.invitation.delivery import DeliveryAttempt, InvitationDeliveryService
from src.modules.invitation.mail.factory import close_mail_senders, get_mail_sender

logger = logging.getLogger(__name__)


class InvitationDeliveryTask(Task):
    """Reports the permanent failure once Celery has given up on the task."""

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        invitation_id = kwargs.get("invitation_id") or (args[0] if args else None)
        InvitationDeliveryService.report_permanent_failure(
            invitation_id, kwargs.get("email"), exc
        )


async def _deliver_async(
    invitation_id: str,
    custom_message: str | None,
    batch_id: str | None,
    attempt: DeliveryAttempt,
) -> bool:
    try:
        async with worker_session() as session:
            svc = InvitationDeliveryService(session, get_mail_sender())
            try:
                sent = await svc.deliver(
                    uuid.UUID(invitation_id),
                    custom_message,
                    attempt,
                    batch_id=uuid.UUID(batch_id) if batch_id else None,
                )
            except Exception:
                # Persist the compensating delete of a final attempt before re-raising
                await session.commit()
                raise
            await session.commit()
            return sent
    finally:
        await close_mail_senders()


@celery.task(
    name=INVITATION_TASK_NAME,
    base=InvitationDeliveryTask,
    bind=True,
    max_retries=settings.invitation_max_attempts - 1,
    soft_time_limit=settings.invitation_timeout_seconds,
    queue=NOTIFICATIONS_QUEUE,
)
def send_invitation_email(
    self,
    invitation_id: str,
    custom_message: str | None = None,
    batch_id: str | None = None,
    email: str | None = None,
) -> dict:
    """Mail one invitation; retried on failure, deleted after the last attempt fails."""
    attempt = DeliveryAttempt(
        number=self.request.retries + 1,
        max_attempts=self.max_retries + 1,
        timeout_seconds=settings.invitation_timeout_seconds,
    )
    try:
        sent = asyncio.run(_deliver_async(invitation_id, custom_message, batch_id, attempt))
    except Exception as exc:
        if attempt.is_final:
            raise
        logger.warning(
            "Invitation %s delivery attempt %d failed, retrying in %ds",
            invitation_id, attempt.number, settings.invitation_retry_delay_seconds,
        )
        raise self.retry(exc=exc, countdown=settings.invitation_retry_delay_seconds)

    return {"invitation_id": invitation_id, "sent": sent, "attempt": attempt.number}
