"""
Receipt Waiter.

Polls the chain until every transaction of one write has a terminal receipt.
"""

import asyncio

from loguru import logger

from indexsync.config.constants import (
    DEFAULT_RECEIPT_POLL_INTERVAL_MS,
    DEFAULT_RECEIPT_TIMEOUT_MS,
    GENERIC_REVERT_MESSAGE,
)
from indexsync.services.chain.revert_reason import is_decoded_reason
from indexsync.services.chain.types import ChainClient, TransactionReceipt
from indexsync.services.polling import Deadline, PollOutcome, PollPolicy
from indexsync.utils.exceptions import ReceiptTimeout, RevertedTransaction
from indexsync.utils.validation import normalize_transaction_hash


def classify_receipt(receipt: TransactionReceipt | None) -> PollOutcome:
    """Not mined yet is transient, a revert is fatal."""
    if receipt is None:
        return PollOutcome.TRANSIENT
    if receipt.is_reverted:
        return PollOutcome.FATAL
    return PollOutcome.SUCCESS


def reverted_error(receipt: TransactionReceipt) -> RevertedTransaction:
    """Build the error for a reverted receipt."""
    if receipt.revert_reason:
        return RevertedTransaction(
            receipt.tx_hash,
            receipt.revert_reason,
            decoded=is_decoded_reason(receipt.revert_reason),
        )
    return RevertedTransaction(receipt.tx_hash, GENERIC_REVERT_MESSAGE)


class ReceiptWaiter:
    """
    Waits for transaction receipts.

    Features:
    - Concurrent polling per hash under one shared deadline
    - Short-circuit on the first reverted receipt
    - "Not found" and node hiccups are retried, never failed
    """

    def __init__(
        self,
        chain_client: ChainClient,
        timeout: float = DEFAULT_RECEIPT_TIMEOUT_MS / 1000,
        interval: float = DEFAULT_RECEIPT_POLL_INTERVAL_MS / 1000,
    ) -> None:
        """
        Initialize receipt waiter.

        Args:
            chain_client: Chain RPC collaborator
            timeout: Default overall timeout in seconds
            interval: Default poll interval in seconds
        """
        self.chain_client = chain_client
        self.timeout = timeout
        self.interval = interval

    async def await_receipts(
        self,
        hashes: list[str],
        timeout: float | None = None,
        interval: float | None = None,
    ) -> list[TransactionReceipt]:
        """
        Wait until every hash has a successful receipt.

        Args:
            hashes: Transaction hashes of one logical write
            timeout: Overall timeout in seconds (default from constructor)
            interval: Poll interval in seconds (default from constructor)

        Returns:
            Receipts in the order of ``hashes``

        Raises:
            ValueError: If hashes is empty or contains a malformed hash
            RevertedTransaction: On the first reverted receipt
            ReceiptTimeout: If any hash is unresolved at the deadline
        """
        if not hashes:
            raise ValueError("At least one transaction hash is required")

        normalized = [normalize_transaction_hash(h) for h in hashes]
        policy = PollPolicy(
            timeout=timeout if timeout is not None else self.timeout,
            interval=interval if interval is not None else self.interval,
            name="ReceiptWaiter",
        )
        deadline = policy.start()
        # Duplicate hashes share one poll loop
        unique = list(dict.fromkeys(normalized))

        logger.debug(
            f"[ReceiptWaiter] Waiting for {len(unique)} receipt(s), "
            f"timeout={policy.timeout}s"
        )

        tasks = {
            tx_hash: asyncio.create_task(
                self._await_one(tx_hash, policy, deadline),
                name=f"receipt-{tx_hash[:10]}",
            )
            for tx_hash in unique
        }

        try:
            done, pending = await asyncio.wait(
                tasks.values(), return_when=asyncio.FIRST_EXCEPTION
            )
            failed = [t for t in done if not t.cancelled() and t.exception() is not None]
            if failed:
                error = self._first_error(failed)
                if isinstance(error, ReceiptTimeout):
                    unresolved = [
                        h for h, t in tasks.items()
                        if not t.done() or t.cancelled() or t.exception() is not None
                    ]
                    error = ReceiptTimeout(deadline.elapsed(), unresolved)
                raise error
        finally:
            for task in tasks.values():
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks.values(), return_exceptions=True)

        receipts = {h: t.result() for h, t in tasks.items()}
        logger.info(
            f"[ReceiptWaiter] {len(unique)} receipt(s) confirmed in "
            f"{deadline.elapsed():.1f}s, max block "
            f"{max(r.block_number for r in receipts.values())}"
        )
        return [receipts[h] for h in normalized]

    @staticmethod
    def _first_error(failed: list[asyncio.Task]) -> BaseException:
        """A revert wins over a timeout that completed in the same round."""
        errors = [t.exception() for t in failed]
        for error in errors:
            if isinstance(error, RevertedTransaction):
                return error
        return errors[0]

    async def _await_one(
        self, tx_hash: str, policy: PollPolicy, deadline: Deadline
    ) -> TransactionReceipt:
        """Poll a single hash under the shared deadline."""
        return await policy.poll(
            lambda: self.chain_client.get_receipt(tx_hash),
            classify_receipt,
            on_fatal=reverted_error,
            on_timeout=lambda elapsed, _last: ReceiptTimeout(elapsed, [tx_hash]),
            deadline=deadline,
        )
