"""
Chain-side value types.
"""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from indexsync.models.enums import ReceiptStatus


@dataclass(frozen=True)
class TransactionReceipt:
    """
    Finalized outcome of a mined transaction.

    Immutable: a finalized receipt never changes on re-query.
    """

    tx_hash: str
    status: ReceiptStatus
    block_number: int
    revert_reason: str | None = None

    @property
    def is_success(self) -> bool:
        """Check if the transaction succeeded."""
        return self.status is ReceiptStatus.SUCCESS

    @property
    def is_reverted(self) -> bool:
        """Check if the transaction reverted."""
        return self.status is ReceiptStatus.REVERTED


@runtime_checkable
class ChainClient(Protocol):
    """Chain RPC collaborator used by the receipt waiter."""

    async def submit_transaction(self, call: Any) -> list[str]:
        """Submit a write, returning the produced transaction hashes."""
        ...

    async def get_receipt(self, tx_hash: str) -> TransactionReceipt | None:
        """Return the receipt, or None while the transaction is not mined."""
        ...
