"""
Repositories.

Data access layer. Repositories flush but never commit.
"""

from indexsync.repositories.base import BaseRepository
from indexsync.repositories.indexer_sync_state_repository import (
    IndexerSyncStateRepository,
)
from indexsync.repositories.processed_event_repository import (
    ProcessedEventRepository,
)
from indexsync.repositories.registry_stats_repository import (
    RegistryStatsDataRepository,
    RegistryStatsStateRepository,
)


__all__ = [
    "BaseRepository",
    "IndexerSyncStateRepository",
    "ProcessedEventRepository",
    "RegistryStatsDataRepository",
    "RegistryStatsStateRepository",
]
