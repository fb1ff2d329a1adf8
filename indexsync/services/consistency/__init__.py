"""
Consistency facade: await confirmation and indexing of a write.
"""

from .facade import ConsistencyFacade, TrackingEvent, TrackingStatus
from .messages import TransactionTrackingMessages


__all__ = [
    "ConsistencyFacade",
    "TrackingEvent",
    "TrackingStatus",
    "TransactionTrackingMessages",
]
