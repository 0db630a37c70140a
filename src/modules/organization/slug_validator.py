"""Reserved organization slug validation.

The reserved list is a static set cached for ``settings.reserved_slug_cache_ttl``
seconds under ``reserved_organization_slugs``. Two failure messages are
produced: one for an exact hit on the list and one for the
``admin|root|system|test`` + digits pattern. Values that do not resolve to an
organization are left for the existence check to report.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.exceptions import ValidationException
from src.models.organization import Organization
from src.modules.organization.cache import AppCache
from src.modules.organization.constants import (
    MSG_SLUG_RESERVED,
    MSG_SLUG_RESERVED_TERMS,
    RESERVED_SLUG_GROUPS,
    RESERVED_SLUG_PATTERN,
    RESERVED_SLUGS_CACHE_KEY,
)

logger = logging.getLogger(__name__)


def _build_reserved_list() -> list[str]:
    seen: dict[str, None] = {}
    for group in RESERVED_SLUG_GROUPS:
        for slug in group:
            seen.setdefault(slug.lower(), None)
    return list(seen)


class ReservedSlugValidator:
    def __init__(self, cache: AppCache | None = None):
        self.cache = cache or AppCache()

    async def reserved_slugs(self) -> frozenset[str]:
        async def _factory() -> list[str]:
            return _build_reserved_list()

        slugs = await self.cache.remember(
            RESERVED_SLUGS_CACHE_KEY, settings.reserved_slug_cache_ttl, _factory
        )
        return frozenset(s.lower() for s in slugs)

    async def check_slug(self, slug: str) -> str | None:
        """Return the failure message for ``slug``, or None when it is allowed."""
        normalized = slug.strip().lower()
        if normalized in await self.reserved_slugs():
            return MSG_SLUG_RESERVED
        if RESERVED_SLUG_PATTERN.match(normalized):
            return MSG_SLUG_RESERVED_TERMS
        return None

    async def is_reserved(self, slug: str) -> bool:
        return await self.check_slug(slug) is not None

    async def validate_organization_reference(
        self, db: AsyncSession, value: Any, field: str = "organization_id"
    ) -> None:
        """Reject a reference to an organization whose slug is reserved.

        Non-identifier values and ids that match no organization pass; the
        caller's existence check reports those.
        """
        organization_id = _coerce_uuid(value)
        if organization_id is None:
            return

        result = await db.execute(
            select(Organization.slug).where(Organization.id == organization_id)
        )
        slug = result.scalar_one_or_none()
        if slug is None:
            return

        message = await self.check_slug(slug)
        if message is not None:
            logger.info(
                "Rejected reference to organization %s with reserved slug %r",
                organization_id, slug,
            )
            raise ValidationException(message, details=[{"field": field, "message": message}])


def _coerce_uuid(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        return None
