"""Database engine and session factories."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from indexsync.config.settings import Settings


def create_engine(settings: Settings, *, null_pool: bool = False) -> AsyncEngine:
    """
    Create async engine.

    Args:
        settings: Application settings
        null_pool: Disable pooling (for dramatiq workers, one loop per thread)

    Returns:
        AsyncEngine instance
    """
    if null_pool:
        return create_async_engine(
            settings.database_url,
            echo=settings.database_echo,
            poolclass=NullPool,
        )
    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
