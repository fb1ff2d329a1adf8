"""
Database decorators for automatic commit and rollback.

Provides decorators to automatically handle database errors and rollbacks
in async functions that use SQLAlchemy sessions.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession | None:
    """Locate the session in kwargs, the first argument, or self.session."""
    session = kwargs.get('session')
    if session is not None:
        return session

    if args:
        first = args[0]
        if isinstance(first, AsyncSession):
            return first
        bound = getattr(first, 'session', None)
        if isinstance(bound, AsyncSession):
            return bound

    return None


def with_auto_commit(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that commits the session on success and rolls back on error.

    Usage:
        class PointerService:
            @with_auto_commit
            async def advance(self, block_number: int) -> int:
                ...

    The session is taken from a ``session`` keyword argument, a first
    positional AsyncSession, or ``self.session`` for bound methods.

    Args:
        func: Async function to wrap

    Returns:
        Wrapped function with automatic commit/rollback
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_auto_commit "
                f"but no session argument found. Commit/rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            result = await func(*args, **kwargs)
            await session.commit()
            logger.debug(f"Auto-commit performed in {func.__name__}")
            return result
        except Exception as e:
            try:
                await session.rollback()
                logger.info(
                    f"Rollback performed in {func.__name__} due to error: {type(e).__name__}"
                )
            except Exception as rollback_error:
                logger.error(
                    f"Failed to rollback in {func.__name__}: {rollback_error}",
                    exc_info=True
                )
            # Re-raise original exception
            raise

    return wrapper
