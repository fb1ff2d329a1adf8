"""
Registry event and counter value types.
"""

from dataclasses import dataclass, replace
from datetime import datetime

from indexsync.models.enums import RegistryEventKind, RegistryType
from indexsync.utils.validation import normalize_registry_id, normalize_transaction_hash


@dataclass(frozen=True)
class RegistryEvent:
    """
    A decoded, state-changing registry event.

    Identity is (tx_hash, log_index); ordering within a registry is
    (block_number, log_index).
    """

    registry_id: str
    registry_type: RegistryType
    kind: RegistryEventKind
    block_number: int
    log_index: int
    tx_hash: str
    timestamp: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "registry_id", normalize_registry_id(self.registry_id))
        object.__setattr__(self, "tx_hash", normalize_transaction_hash(self.tx_hash))
        object.__setattr__(self, "registry_type", RegistryType(self.registry_type))
        object.__setattr__(self, "kind", RegistryEventKind(self.kind))
        if self.block_number < 0 or self.log_index < 0:
            raise ValueError("block_number and log_index must not be negative")

    @property
    def event_id(self) -> str:
        """Stable identity used for deduplication."""
        return f"{self.tx_hash}:{self.log_index}"

    @property
    def position(self) -> tuple[int, int]:
        """Ordering key within a registry."""
        return (self.block_number, self.log_index)


@dataclass(frozen=True)
class RegistryCounters:
    """Counters of one registry at one point in time."""

    total_added: int = 0
    total_active: int = 0
    total_removed: int = 0
    total_revoked: int = 0

    @property
    def is_consistent(self) -> bool:
        """total_active = total_added - total_removed - total_revoked."""
        return self.total_active == (
            self.total_added - self.total_removed - self.total_revoked
        )

    def added(self) -> "RegistryCounters":
        return replace(
            self,
            total_added=self.total_added + 1,
            total_active=self.total_active + 1,
        )

    def removed(self) -> "RegistryCounters":
        return replace(
            self,
            total_active=self.total_active - 1,
            total_removed=self.total_removed + 1,
        )

    def revoked(self) -> "RegistryCounters":
        return replace(
            self,
            total_active=self.total_active - 1,
            total_revoked=self.total_revoked + 1,
        )

    def as_dict(self) -> dict[str, int]:
        return {
            "total_added": self.total_added,
            "total_active": self.total_active,
            "total_removed": self.total_removed,
            "total_revoked": self.total_revoked,
        }
