"""
Application constants.

Centralized constants for the application.
"""

# ========================================================================
# READ-AFTER-WRITE CONSTANTS
# ========================================================================

# Receipt waiter (milliseconds)
DEFAULT_RECEIPT_TIMEOUT_MS = 240_000  # 4 minutes for all receipts of one write
DEFAULT_RECEIPT_POLL_INTERVAL_MS = 500

# Indexing waiter (milliseconds)
DEFAULT_INDEXING_TIMEOUT_MS = 180_000  # 3 minutes for the indexer to catch up
DEFAULT_INDEXING_POLL_INTERVAL_MS = 500

# ========================================================================
# BLOCKCHAIN CONSTANTS
# ========================================================================

# Single RPC / HTTP request timeout (in seconds)
BLOCKCHAIN_TIMEOUT = 30.0  # get_transaction_receipt, eth_call, etc.
INDEXER_REQUEST_TIMEOUT = 10.0  # GraphQL _meta query

# Revert selectors
ERROR_STRING_SELECTOR = "0x08c379a0"  # Error(string)
PANIC_SELECTOR = "0x4e487b71"  # Panic(uint256)

GENERIC_REVERT_MESSAGE = "Transaction reverted without a reason"

# ========================================================================
# PROJECTION CONSTANTS
# ========================================================================

PROJECTION_CHUNK_SIZE = 2000  # Blocks per get_logs window
PROJECTION_MAX_REGISTRY_WORKERS = 8  # Registries projected in parallel per block
PROJECTION_INTERVAL_SECONDS = 30  # Scheduler period of the projection task
