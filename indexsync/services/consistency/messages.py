"""
Progress messages for write tracking.

Each operation may override any message; the rest fall back to defaults.
"""

from pydantic import BaseModel, ConfigDict


class TransactionTrackingMessages(BaseModel):
    """Human-readable texts for each tracking phase."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    waiting_for_mining: str = "Waiting for transaction to be mined..."
    waiting_for_indexing: str = "Transaction confirmed. Waiting for indexing..."
    transaction_indexed: str = "Transaction successfully indexed."
    transaction_failed: str = "Transaction failed"
    transaction_dropped: str = (
        "Transaction was not mined in time. It may have been dropped, please try again."
    )
    indexing_timeout: str = (
        "Indexing is taking longer than expected. Data will be available soon."
    )


DEFAULT_MESSAGES = TransactionTrackingMessages()
