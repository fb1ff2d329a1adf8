"""
Standard type definitions for database models.

Provides consistent column types for chain identifiers and counters.
"""

from sqlalchemy import BigInteger, String

# 0x-prefixed 32-byte hash (66 chars)
TxHashType = String(66)

# Registry identifier: 0x-prefixed address (42 chars) or an opaque id
# up to a 32-byte hex string
RegistryIdType = String(66)

# Stable per-event identity: "{tx_hash}:{log_index}"
EventIdType = String(80)

# Running counters and block numbers
CounterType = BigInteger
BlockNumberType = BigInteger
