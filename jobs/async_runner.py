"""
Async runner for dramatiq tasks.

Provides a thread-safe way to run async code in dramatiq actors. Each
worker thread owns one event loop and one container bound to it.
"""

import asyncio
import threading
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, TypeVar

from loguru import logger

from indexsync.bootstrap import Container, create_container

T = TypeVar("T")

# Thread-local storage for event loops and containers
_thread_local = threading.local()


def get_event_loop() -> asyncio.AbstractEventLoop:
    """
    Get or create event loop for current thread.

    Creates a new event loop for each thread and reuses it.
    This prevents "Future attached to a different loop" errors.
    """
    loop = getattr(_thread_local, "loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.loop = loop
        _thread_local.container = None
        logger.debug(f"Created new event loop for thread {threading.current_thread().name}")
    return loop


async def get_container() -> Container:
    """
    Container bound to the current thread's event loop.

    Built on first use with NullPool so connections never cross threads.
    """
    container = getattr(_thread_local, "container", None)
    if container is None:
        container = await create_container(null_pool=True)
        _thread_local.container = container
    return container


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run async coroutine in the thread's event loop.

    Args:
        coro: Async coroutine to run

    Returns:
        Result of the coroutine
    """
    loop = get_event_loop()
    try:
        return loop.run_until_complete(coro)
    except Exception as e:
        logger.exception(f"Error running async coroutine: {e}")
        raise


def async_actor(func: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., T]:
    """
    Decorator to wrap async function for use in dramatiq actor.

    Usage:
        @dramatiq.actor
        @async_actor
        async def my_task():
            await some_async_operation()

    Args:
        func: Async function to wrap

    Returns:
        Synchronous wrapper function
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        coro = func(*args, **kwargs)
        return run_async(coro)
    return wrapper


async def close_container() -> None:
    """Close the current thread's container, if any."""
    container = getattr(_thread_local, "container", None)
    if container is not None:
        _thread_local.container = None
        await container.close()
