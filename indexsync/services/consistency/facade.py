"""
Consistency Facade.

The one operation business code calls after submitting a write: it returns
only when the write is visible to reads from the indexer.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import StrEnum

from loguru import logger

from indexsync.services.chain.receipt_waiter import ReceiptWaiter
from indexsync.services.consistency.messages import (
    DEFAULT_MESSAGES,
    TransactionTrackingMessages,
)
from indexsync.services.indexer.indexing_waiter import (
    IndexingWaiter,
    target_block_for,
)
from indexsync.utils.exceptions import (
    ConsistencyError,
    IndexingTimeout,
    ReceiptTimeout,
    RevertedTransaction,
)


class TrackingStatus(StrEnum):
    """Status of a tracked write."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class TrackingEvent:
    """One progress update of a tracked write."""

    status: TrackingStatus
    message: str
    tx_hashes: tuple[str, ...]
    indexed_block: int | None = None
    error: ConsistencyError | None = field(default=None, compare=False)


class ConsistencyFacade:
    """
    Read-after-write guarantee: receipts first, then indexing.

    Never submits transactions itself.
    """

    def __init__(
        self,
        receipt_waiter: ReceiptWaiter,
        indexing_waiter: IndexingWaiter,
    ) -> None:
        """
        Initialize facade.

        Args:
            receipt_waiter: Chain-side waiter
            indexing_waiter: Indexer-side waiter
        """
        self.receipt_waiter = receipt_waiter
        self.indexing_waiter = indexing_waiter

    async def await_write_visible(self, hashes: list[str]) -> int:
        """
        Wait until a write is mined and indexed.

        Args:
            hashes: Transaction hashes produced by the write

        Returns:
            Indexed block number; reads issued afterwards reflect the write

        Raises:
            RevertedTransaction: If any transaction reverted
            ReceiptTimeout: If receipts did not arrive in time
            IndexingTimeout: If the indexer did not catch up in time
        """
        receipts = await self.receipt_waiter.await_receipts(hashes)
        return await self.indexing_waiter.await_indexed(target_block_for(receipts))

    async def track_write(
        self,
        hashes: list[str],
        messages: TransactionTrackingMessages | None = None,
    ) -> AsyncIterator[TrackingEvent]:
        """
        Same protocol as await_write_visible, reported as progress events.

        Yields exactly one terminal event (CONFIRMED or FAILED) last.
        Classified errors are reported as FAILED events, not raised.

        Args:
            hashes: Transaction hashes produced by the write
            messages: Optional message overrides

        Yields:
            TrackingEvent updates
        """
        messages = messages or DEFAULT_MESSAGES
        tx_hashes = tuple(hashes)

        yield TrackingEvent(TrackingStatus.PENDING, messages.waiting_for_mining, tx_hashes)

        try:
            receipts = await self.receipt_waiter.await_receipts(hashes)
        except RevertedTransaction as e:
            message = e.reason if e.decoded else messages.transaction_failed
            yield TrackingEvent(TrackingStatus.FAILED, message, tx_hashes, error=e)
            return
        except ReceiptTimeout as e:
            yield TrackingEvent(
                TrackingStatus.FAILED, messages.transaction_dropped, tx_hashes, error=e
            )
            return

        yield TrackingEvent(TrackingStatus.PENDING, messages.waiting_for_indexing, tx_hashes)

        try:
            indexed = await self.indexing_waiter.await_indexed(target_block_for(receipts))
        except IndexingTimeout as e:
            logger.warning(f"[Consistency] {e}")
            yield TrackingEvent(
                TrackingStatus.FAILED, messages.indexing_timeout, tx_hashes, error=e
            )
            return

        yield TrackingEvent(
            TrackingStatus.CONFIRMED,
            messages.transaction_indexed,
            tx_hashes,
            indexed_block=indexed,
        )
