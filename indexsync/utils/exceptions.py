"""
Exception handling utilities.

Defines the classified errors of the read-after-write path. A caller either
gets the indexed block number or exactly one of these.
"""

import aiohttp
from web3.exceptions import Web3Exception


class ConsistencyError(Exception):
    """Base class for all read-after-write errors."""

    pass


class SubmissionError(ConsistencyError):
    """
    The chain refused the transaction (bad input, nonce, funding).

    Fatal, never retried here.
    """

    pass


class RevertedTransaction(ConsistencyError):
    """A transaction was mined with status Reverted."""

    def __init__(
        self, tx_hash: str, reason: str, *, decoded: bool = False
    ) -> None:
        self.tx_hash = tx_hash
        self.reason = reason
        self.decoded = decoded
        super().__init__(f"Transaction {tx_hash} reverted: {reason}")


class ReceiptTimeout(ConsistencyError):
    """Receipts were not available before the deadline."""

    def __init__(
        self, elapsed_seconds: float, pending_hashes: list[str] | None = None
    ) -> None:
        self.elapsed_seconds = elapsed_seconds
        self.pending_hashes = list(pending_hashes or [])
        super().__init__(
            f"Transaction receipts not available after {elapsed_seconds:.1f}s"
        )


class IndexingTimeout(ConsistencyError):
    """The indexer did not reach the target block before the deadline."""

    def __init__(
        self,
        elapsed_seconds: float,
        target_block: int,
        last_indexed_block: int | None = None,
    ) -> None:
        self.elapsed_seconds = elapsed_seconds
        self.target_block = target_block
        self.last_indexed_block = last_indexed_block
        super().__init__(
            f"Indexer did not reach block {target_block} after "
            f"{elapsed_seconds:.1f}s (last seen: {last_indexed_block})"
        )


class TransientFetchError(ConsistencyError):
    """
    A read failed in a way that may succeed on retry.

    Retried silently by the waiters; only surfaces through a timeout.
    """

    pass


class DuplicateEventError(Exception):
    """An event with the same identity was already applied."""

    def __init__(self, event_id: str) -> None:
        self.event_id = event_id
        super().__init__(f"Event {event_id} already applied")


# Exception categories based on handling strategy

# Retry until the deadline
TRANSIENT_FETCH_ERRORS = (
    TimeoutError,
    ConnectionError,
    OSError,
    aiohttp.ClientError,
    Web3Exception,
)


def is_transient(exc: BaseException) -> bool:
    """
    Check if exception should be retried by a poll loop.

    Args:
        exc: Exception to check

    Returns:
        True if the read may succeed later
    """
    if isinstance(exc, TransientFetchError):
        return True
    if isinstance(exc, ConsistencyError):
        return False
    return isinstance(exc, TRANSIENT_FETCH_ERRORS)
