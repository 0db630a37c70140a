"""Transactional mail API sender.

Posts the template name and its data to the provider, which renders and
delivers the message. Retries are owned by the Celery task, so a single
request is made per call.
"""

from __future__ import annotations

import logging

import httpx

from src.config import settings
from src.exceptions import MailDeliveryError
from src.modules.invitation.mail.base import MailSenderBase

logger = logging.getLogger(__name__)


class HttpMailSender(MailSenderBase):
    def __init__(self) -> None:
        self.api_key = settings.mail_api_key
        self.base_url = settings.mail_api_base_url
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=30.0)
        return self._client

    async def send(self, to_address: str, template_name: str, template_data: dict) -> None:
        client = await self._get_client()
        payload = {
            "from": {"email": settings.mail_from_address, "name": settings.mail_from_name},
            "to": [{"email": to_address}],
            "template": template_name,
            "data": template_data,
        }
        try:
            response = await client.post(
                "/messages",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise MailDeliveryError(
                f"Mail API rejected message to {to_address}: {exc.response.status_code}",
                details=[{"status": exc.response.status_code, "body": exc.response.text[:500]}],
            ) from exc
        except httpx.RequestError as exc:
            raise MailDeliveryError(f"Mail API unreachable: {exc}") from exc

        logger.debug("Mail API accepted %s message to %s", template_name, to_address)

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
