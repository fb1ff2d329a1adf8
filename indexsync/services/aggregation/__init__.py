"""
Registry statistics aggregation.
"""

from indexsync.services.aggregation.engine import (
    AggregationEngine,
    ApplyResult,
    OutOfOrderEventError,
)
from indexsync.services.aggregation.events import RegistryCounters, RegistryEvent
from indexsync.services.aggregation.log_decoder import (
    REGISTRY_EVENT_SIGNATURES,
    RegistryLogDecoder,
    event_topic,
)
from indexsync.services.aggregation.log_source import RegistryLogSource
from indexsync.services.aggregation.projection_runner import ProjectionRunner
from indexsync.services.aggregation.store import (
    Absent,
    AggregateStore,
    Found,
    InMemoryAggregateStore,
    SqlAlchemyAggregateStore,
    StatsSnapshot,
)
from indexsync.services.aggregation.transitions import (
    InvalidTransitionError,
    apply_transition,
)


__all__ = [
    "Absent",
    "AggregateStore",
    "AggregationEngine",
    "ApplyResult",
    "Found",
    "InMemoryAggregateStore",
    "InvalidTransitionError",
    "OutOfOrderEventError",
    "ProjectionRunner",
    "REGISTRY_EVENT_SIGNATURES",
    "RegistryCounters",
    "RegistryEvent",
    "RegistryLogDecoder",
    "RegistryLogSource",
    "SqlAlchemyAggregateStore",
    "StatsSnapshot",
    "apply_transition",
    "event_topic",
]
