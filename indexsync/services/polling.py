"""
Poll policy shared by the receipt and indexing waiters.

A poll loop is described by a deadline, a retry interval, and a classifier
that maps each fetched value to SUCCESS, TRANSIENT or FATAL. Transient fetch
errors are retried until the deadline; fatal outcomes abort immediately.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from loguru import logger

from indexsync.utils.exceptions import is_transient


T = TypeVar("T")


class PollOutcome(Enum):
    """Classification of one poll attempt."""

    SUCCESS = "success"
    TRANSIENT = "transient"
    FATAL = "fatal"


@dataclass
class Deadline:
    """
    Wall-clock budget measured once for a whole operation.

    Shared by concurrent poll loops so that fanning out does not
    multiply the timeout.
    """

    timeout: float
    clock: Callable[[], float] = time.monotonic
    started: float = field(init=False)

    def __post_init__(self) -> None:
        self.started = self.clock()

    def elapsed(self) -> float:
        """Seconds since the deadline was created."""
        return self.clock() - self.started

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self.timeout - self.elapsed())

    def expired(self) -> bool:
        """True once the budget is spent."""
        return self.elapsed() >= self.timeout


@dataclass
class PollStats(Generic[T]):
    """Bookkeeping of one poll loop, exposed for logging and tests."""

    attempts: int = 0
    transient_errors: int = 0
    last_value: T | None = None


@dataclass(frozen=True)
class PollPolicy:
    """
    Deadline + interval retry policy.

    Attributes:
        timeout: Overall budget in seconds
        interval: Delay between attempts in seconds
        name: Operation name for logging
    """

    timeout: float
    interval: float
    name: str = "poll"

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.interval <= 0:
            raise ValueError("interval must be positive")

    def start(self) -> Deadline:
        """Create the deadline for one operation."""
        return Deadline(self.timeout)

    def should_continue(self, outcome: PollOutcome, deadline: Deadline) -> bool:
        """
        Continue-or-abort decision after a non-successful attempt.

        Args:
            outcome: Classification of the last attempt
            deadline: Operation deadline

        Returns:
            True if another attempt should be made
        """
        if outcome is PollOutcome.FATAL:
            return False
        return not deadline.expired()

    async def poll(
        self,
        fetch: Callable[[], Awaitable[T]],
        classify: Callable[[T], PollOutcome],
        *,
        on_fatal: Callable[[T], Exception],
        on_timeout: Callable[[float, T | None], Exception],
        deadline: Deadline | None = None,
        stats: PollStats[T] | None = None,
    ) -> T:
        """
        Run fetch until classify says SUCCESS, FATAL, or the deadline passes.

        Each attempt is bounded by the remaining budget plus one interval, so
        the loop fails no earlier than ``timeout`` and no later than
        ``timeout + interval``.

        Args:
            fetch: Coroutine factory performing one read
            classify: Maps a fetched value to an outcome
            on_fatal: Builds the error raised for a FATAL value
            on_timeout: Builds the error raised on deadline, gets elapsed seconds
                and the last fetched value
            deadline: Shared deadline (a new one is started when omitted)
            stats: Optional counters filled while polling

        Returns:
            The first value classified as SUCCESS

        Raises:
            Exception: Built by on_fatal / on_timeout, or any non-transient
                error raised by fetch
        """
        deadline = deadline or self.start()
        stats = stats if stats is not None else PollStats()

        while True:
            stats.attempts += 1
            try:
                async with asyncio.timeout(deadline.remaining() + self.interval):
                    value = await fetch()
            except Exception as e:
                if not is_transient(e):
                    raise
                stats.transient_errors += 1
                outcome = PollOutcome.TRANSIENT
                logger.debug(
                    f"[{self.name}] transient error on attempt {stats.attempts}: {e}"
                )
            else:
                stats.last_value = value
                outcome = classify(value)
                if outcome is PollOutcome.SUCCESS:
                    return value
                if outcome is PollOutcome.FATAL:
                    raise on_fatal(value)

            if not self.should_continue(outcome, deadline):
                elapsed = deadline.elapsed()
                logger.warning(
                    f"[{self.name}] gave up after {elapsed:.1f}s "
                    f"({stats.attempts} attempts, {stats.transient_errors} transient errors)"
                )
                raise on_timeout(elapsed, stats.last_value)

            await asyncio.sleep(min(self.interval, max(deadline.remaining(), 0.0)))
