"""
Services.

Read-after-write consistency and registry statistics.
"""

from indexsync.services.aggregation import (
    AggregationEngine,
    InMemoryAggregateStore,
    ProjectionRunner,
    RegistryLogSource,
    SqlAlchemyAggregateStore,
)
from indexsync.services.chain import ReceiptWaiter, Web3ChainClient
from indexsync.services.consistency import ConsistencyFacade
from indexsync.services.indexer import (
    GraphIndexerStatusClient,
    IndexingWaiter,
    SqlIndexedBlockPointer,
)
from indexsync.services.polling import PollPolicy
from indexsync.services.registry_stats_query_service import (
    RegistryStatsQueryService,
)


__all__ = [
    "AggregationEngine",
    "ConsistencyFacade",
    "GraphIndexerStatusClient",
    "InMemoryAggregateStore",
    "IndexingWaiter",
    "PollPolicy",
    "ProjectionRunner",
    "ReceiptWaiter",
    "RegistryLogSource",
    "RegistryStatsQueryService",
    "SqlAlchemyAggregateStore",
    "SqlIndexedBlockPointer",
    "Web3ChainClient",
]
