"""Mail sender factory: select the transport configured in settings."""

from __future__ import annotations

from src.config import settings
from src.modules.invitation.mail.api import HttpMailSender
from src.modules.invitation.mail.base import MailSenderBase
from src.modules.invitation.mail.log import LogMailSender

_instances: dict[str, MailSenderBase] = {}


def get_mail_sender(driver: str | None = None) -> MailSenderBase:
    driver = driver or settings.mail_driver
    if driver not in _instances:
        if driver == "http":
            _instances[driver] = HttpMailSender()
        elif driver == "log":
            _instances[driver] = LogMailSender()
        else:
            raise ValueError(f"No mail sender for driver: {driver}")
    return _instances[driver]


async def close_mail_senders() -> None:
    """Close cached transports.

    Must be called at the end of each asyncio.run() invocation in Celery tasks
    so httpx clients do not outlive their event loop.
    """
    for sender in _instances.values():
        await sender.close()
