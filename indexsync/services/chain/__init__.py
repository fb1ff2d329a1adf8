"""
Chain services.

Receipt polling and the web3-backed chain client.
"""

from .client import Web3ChainClient
from .receipt_waiter import ReceiptWaiter
from .revert_reason import decode_revert_data
from .types import ChainClient, TransactionReceipt


__all__ = [
    "ChainClient",
    "ReceiptWaiter",
    "TransactionReceipt",
    "Web3ChainClient",
    "decode_revert_data",
]
