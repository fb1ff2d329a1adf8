"""
Indexer services.

Progress pointer, status clients and the indexing waiter.
"""

from .indexing_waiter import IndexingWaiter, target_block_for
from .pointer import (
    IndexedBlockPointer,
    InMemoryIndexedBlockPointer,
    SqlIndexedBlockPointer,
)
from .status_client import GraphIndexerStatusClient, IndexerStatusClient


__all__ = [
    "GraphIndexerStatusClient",
    "IndexedBlockPointer",
    "IndexerStatusClient",
    "IndexingWaiter",
    "InMemoryIndexedBlockPointer",
    "SqlIndexedBlockPointer",
    "target_block_for",
]
