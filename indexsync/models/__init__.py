"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from indexsync.models.base import Base
from indexsync.models.enums import ReceiptStatus, RegistryEventKind, RegistryType

# Projection pointer
from indexsync.models.indexer_sync_state import IndexerSyncState
from indexsync.models.processed_event import ProcessedRegistryEvent

# Registry stats
from indexsync.models.registry_stats import RegistryStatsData, RegistryStatsState


__all__ = [
    "Base",
    "IndexerSyncState",
    "ProcessedRegistryEvent",
    "ReceiptStatus",
    "RegistryEventKind",
    "RegistryStatsData",
    "RegistryStatsState",
    "RegistryType",
]
