from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, pg_enum
from src.database.engine import async_session, engine, worker_session
from src.database.session import get_db

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "async_session",
    "engine",
    "get_db",
    "pg_enum",
    "worker_session",
]
