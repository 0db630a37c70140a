from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from src.config import settings

engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    pool_pre_ping=True,
    pool_recycle=3600,
    max_overflow=settings.db_max_overflow,
    echo=settings.environment == "development",
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Celery tasks wrap each run in asyncio.run(); pooled asyncpg connections are
# bound to the loop that opened them, so workers connect per session instead.
worker_engine = create_async_engine(settings.database_url, poolclass=NullPool)

worker_session = async_sessionmaker(worker_engine, class_=AsyncSession, expire_on_commit=False)
