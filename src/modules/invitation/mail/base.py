"""Abstract base class for transactional mail senders."""

from __future__ import annotations

from abc import ABC, abstractmethod


class MailSenderBase(ABC):
    @abstractmethod
    async def send(self, to_address: str, template_name: str, template_data: dict) -> None:
        """Deliver one templated message. Raises MailDeliveryError on failure."""

    async def close(self) -> None:
        """Release transport resources (no-op by default)."""
