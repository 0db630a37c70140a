import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from src.database.engine import async_session

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: one transaction per request.

    Services flush and never commit on the request path (invitations commit
    early on purpose so workers can see the row), so the commit here is what
    makes a request's writes durable.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            logger.debug("Rolling back request transaction after %s", type(exc).__name__)
            await session.rollback()
            raise
