from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from team_chat.config import settings


def build_engine(url: str | None = None) -> AsyncEngine:
    return create_async_engine(
        url or settings.database_url,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )


engine = build_engine()

# READ COMMITTED lets a statement issued after a lost insert race see the
# winner's committed row.
AsyncSessionLocal = async_sessionmaker(
    bind=engine.execution_options(isolation_level="READ COMMITTED"),
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)
