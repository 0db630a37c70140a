"""Development mail sender that writes messages to the log."""

from __future__ import annotations

import logging

from src.modules.invitation.mail.base import MailSenderBase

logger = logging.getLogger(__name__)


class LogMailSender(MailSenderBase):
    async def send(self, to_address: str, template_name: str, template_data: dict) -> None:
        logger.info(
            "Mail (log driver) to=%s template=%s data=%s",
            to_address, template_name, template_data,
        )
