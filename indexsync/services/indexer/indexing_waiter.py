"""
Indexing Waiter.

Polls the indexer's progress pointer until it reaches a target block.
"""

from loguru import logger

from indexsync.config.constants import (
    DEFAULT_INDEXING_POLL_INTERVAL_MS,
    DEFAULT_INDEXING_TIMEOUT_MS,
)
from indexsync.services.chain.types import TransactionReceipt
from indexsync.services.indexer.status_client import IndexerStatusClient
from indexsync.services.polling import Deadline, PollOutcome, PollPolicy, PollStats
from indexsync.utils.exceptions import IndexingTimeout


def target_block_for(receipts: list[TransactionReceipt]) -> int:
    """
    Block the indexer must reach for all receipts to be visible.

    Args:
        receipts: Receipts of one write

    Returns:
        Highest block number among receipts
    """
    if not receipts:
        raise ValueError("At least one receipt is required")
    return max(receipt.block_number for receipt in receipts)


class IndexingWaiter:
    """
    Waits for the indexer to catch up to a block.

    Reading the pointer has no side effects, so any number of callers can
    wait on the same indexer concurrently.
    """

    def __init__(
        self,
        status_client: IndexerStatusClient,
        timeout: float = DEFAULT_INDEXING_TIMEOUT_MS / 1000,
        interval: float = DEFAULT_INDEXING_POLL_INTERVAL_MS / 1000,
    ) -> None:
        """
        Initialize indexing waiter.

        Args:
            status_client: Indexer status collaborator
            timeout: Default timeout in seconds
            interval: Default poll interval in seconds
        """
        self.status_client = status_client
        self.timeout = timeout
        self.interval = interval

    async def await_indexed(
        self,
        target_block: int,
        timeout: float | None = None,
        interval: float | None = None,
        stats: PollStats[int] | None = None,
    ) -> int:
        """
        Wait until the indexed block is at least target_block.

        Args:
            target_block: Block that must be projected
            timeout: Timeout in seconds (default from constructor)
            interval: Poll interval in seconds (default from constructor)
            stats: Optional poll counters

        Returns:
            Observed indexed block (may exceed target_block)

        Raises:
            IndexingTimeout: If the indexer lags past the deadline
        """
        if target_block < 0:
            raise ValueError("target_block must not be negative")

        policy = PollPolicy(
            timeout=timeout if timeout is not None else self.timeout,
            interval=interval if interval is not None else self.interval,
            name="IndexingWaiter",
        )
        deadline: Deadline = policy.start()

        def classify(indexed_block: int) -> PollOutcome:
            if indexed_block >= target_block:
                return PollOutcome.SUCCESS
            return PollOutcome.TRANSIENT

        indexed = await policy.poll(
            self.status_client.get_indexed_block,
            classify,
            on_fatal=lambda value: IndexingTimeout(deadline.elapsed(), target_block, value),
            on_timeout=lambda elapsed, last: IndexingTimeout(elapsed, target_block, last),
            deadline=deadline,
            stats=stats,
        )

        logger.info(
            f"[IndexingWaiter] Indexer at block {indexed} (target {target_block}) "
            f"after {deadline.elapsed():.1f}s"
        )
        return indexed

    async def await_receipts_indexed(
        self,
        receipts: list[TransactionReceipt],
        timeout: float | None = None,
        interval: float | None = None,
    ) -> int:
        """
        Wait until the block of every receipt is indexed.

        Args:
            receipts: Output of the receipt waiter
            timeout: Timeout in seconds
            interval: Poll interval in seconds

        Returns:
            Observed indexed block
        """
        return await self.await_indexed(
            target_block_for(receipts), timeout=timeout, interval=interval
        )
