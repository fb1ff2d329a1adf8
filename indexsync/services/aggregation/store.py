"""
Aggregate storage.

The engine works against a unit of work that either commits the whole
claim-load-mutate-persist-append cycle or nothing. Loading a registry
returns an explicit Found / Absent result so that initialization is a
visible branch in the engine.
"""

from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from indexsync.models.enums import RegistryEventKind, RegistryType
from indexsync.models.registry_stats import RegistryStatsState
from indexsync.repositories.processed_event_repository import (
    ProcessedEventRepository,
)
from indexsync.repositories.registry_stats_repository import (
    RegistryStatsDataRepository,
    RegistryStatsStateRepository,
)
from indexsync.services.aggregation.events import RegistryCounters, RegistryEvent
from indexsync.utils.exceptions import DuplicateEventError


@dataclass(frozen=True)
class Found:
    """Registry already has a state."""

    registry_id: str
    registry_type: RegistryType
    counters: RegistryCounters
    last_position: tuple[int, int] | None = None


@dataclass(frozen=True)
class Absent:
    """Registry has never seen an event."""

    registry_id: str


StateLookup = Found | Absent


@dataclass(frozen=True)
class StatsSnapshot:
    """Immutable copy of a registry's counters at one event."""

    registry_id: str
    registry_type: RegistryType
    counters: RegistryCounters
    event_id: str
    event_kind: RegistryEventKind
    block_number: int
    log_index: int
    timestamp: datetime


class AggregateUnitOfWork(Protocol):
    """Operations available inside one atomic apply cycle."""

    async def claim_event(self, event: RegistryEvent) -> None:
        """Record the event identity; raise DuplicateEventError if taken."""
        ...

    async def load_state(self, registry_id: str) -> StateLookup:
        ...

    async def create_state(self, registry_id: str, registry_type: RegistryType) -> Found:
        ...

    async def save_state(self, event: RegistryEvent, counters: RegistryCounters) -> None:
        ...

    async def append_snapshot(self, event: RegistryEvent, counters: RegistryCounters) -> None:
        ...


class AggregateStore(Protocol):
    """Factory of atomic units of work."""

    def unit_of_work(self) -> AbstractAsyncContextManager[AggregateUnitOfWork]:
        ...


# ============================================================================
# SQLAlchemy store
# ============================================================================


def _found_from_row(row: RegistryStatsState) -> Found:
    return Found(
        registry_id=row.registry_id,
        registry_type=RegistryType(row.registry_type),
        counters=RegistryCounters(
            total_added=row.total_added,
            total_active=row.total_active,
            total_removed=row.total_removed,
            total_revoked=row.total_revoked,
        ),
        last_position=(row.last_block_number, row.last_log_index),
    )


class SqlAlchemyUnitOfWork:
    """Unit of work over one session and one transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.state_repo = RegistryStatsStateRepository(session)
        self.data_repo = RegistryStatsDataRepository(session)
        self.processed_repo = ProcessedEventRepository(session)
        self._rows: dict[str, RegistryStatsState] = {}

    async def claim_event(self, event: RegistryEvent) -> None:
        await self.processed_repo.claim(
            event.event_id, event.registry_id, event.block_number
        )

    async def load_state(self, registry_id: str) -> StateLookup:
        row = await self.state_repo.get_by_registry(registry_id, for_update=True)
        if row is None:
            return Absent(registry_id)
        self._rows[registry_id] = row
        return _found_from_row(row)

    async def create_state(self, registry_id: str, registry_type: RegistryType) -> Found:
        row = await self.state_repo.create(
            registry_id=registry_id,
            registry_type=registry_type.value,
            total_added=0,
            total_active=0,
            total_removed=0,
            total_revoked=0,
            last_block_number=0,
            last_log_index=0,
        )
        self._rows[registry_id] = row
        return Found(registry_id, registry_type, RegistryCounters())

    async def save_state(self, event: RegistryEvent, counters: RegistryCounters) -> None:
        row = self._rows[event.registry_id]
        row.total_added = counters.total_added
        row.total_active = counters.total_active
        row.total_removed = counters.total_removed
        row.total_revoked = counters.total_revoked
        row.last_block_number = event.block_number
        row.last_log_index = event.log_index
        await self.session.flush()

    async def append_snapshot(self, event: RegistryEvent, counters: RegistryCounters) -> None:
        await self.data_repo.create(
            registry_id=event.registry_id,
            registry_type=event.registry_type.value,
            event_id=event.event_id,
            event_kind=event.kind.value,
            block_number=event.block_number,
            log_index=event.log_index,
            timestamp=event.timestamp,
            **counters.as_dict(),
        )


class SqlAlchemyAggregateStore:
    """Aggregate store backed by PostgreSQL through SQLAlchemy."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize store.

        Args:
            session_maker: Session factory owned by process bootstrap
        """
        self.session_maker = session_maker

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[SqlAlchemyUnitOfWork]:
        """Open a session and a transaction; commit on clean exit."""
        async with self.session_maker() as session:
            async with session.begin():
                yield SqlAlchemyUnitOfWork(session)


# ============================================================================
# In-memory store
# ============================================================================


@dataclass
class _MemoryState:
    registry_type: RegistryType
    counters: RegistryCounters
    last_position: tuple[int, int] | None = None


@dataclass
class InMemoryUnitOfWork:
    """Stages changes and publishes them in one step on commit."""

    store: "InMemoryAggregateStore"
    claimed: list[str] = field(default_factory=list)
    states: dict[str, _MemoryState] = field(default_factory=dict)
    snapshots: list[StatsSnapshot] = field(default_factory=list)

    async def claim_event(self, event: RegistryEvent) -> None:
        if event.event_id in self.store.processed or event.event_id in self.claimed:
            raise DuplicateEventError(event.event_id)
        self.claimed.append(event.event_id)

    async def load_state(self, registry_id: str) -> StateLookup:
        stored = self.states.get(registry_id) or self.store.states.get(registry_id)
        if stored is None:
            return Absent(registry_id)
        return Found(
            registry_id, stored.registry_type, stored.counters, stored.last_position
        )

    async def create_state(self, registry_id: str, registry_type: RegistryType) -> Found:
        self.states[registry_id] = _MemoryState(registry_type, RegistryCounters())
        return Found(registry_id, registry_type, RegistryCounters())

    async def save_state(self, event: RegistryEvent, counters: RegistryCounters) -> None:
        self.states[event.registry_id] = _MemoryState(
            event.registry_type, counters, event.position
        )

    async def append_snapshot(self, event: RegistryEvent, counters: RegistryCounters) -> None:
        self.snapshots.append(
            StatsSnapshot(
                registry_id=event.registry_id,
                registry_type=event.registry_type,
                counters=counters,
                event_id=event.event_id,
                event_kind=event.kind,
                block_number=event.block_number,
                log_index=event.log_index,
                timestamp=event.timestamp,
            )
        )

    def commit(self) -> None:
        # No awaits here: readers see all of it or none of it
        self.store.processed.update(self.claimed)
        self.store.states.update(self.states)
        for snapshot in self.snapshots:
            self.store.snapshots.setdefault(snapshot.registry_id, []).append(snapshot)


class InMemoryAggregateStore:
    """Process-local aggregate store for embedded projections and tests."""

    def __init__(self) -> None:
        self.states: dict[str, _MemoryState] = {}
        self.snapshots: dict[str, list[StatsSnapshot]] = {}
        self.processed: set[str] = set()

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[InMemoryUnitOfWork]:
        uow = InMemoryUnitOfWork(self)
        yield uow
        uow.commit()

    def get_state(self, registry_id: str) -> StateLookup:
        """Committed state of a registry."""
        stored = self.states.get(registry_id)
        if stored is None:
            return Absent(registry_id)
        return Found(
            registry_id, stored.registry_type, stored.counters, stored.last_position
        )

    def list_snapshots(self, registry_id: str) -> list[StatsSnapshot]:
        """Committed snapshots of a registry in creation order."""
        return list(self.snapshots.get(registry_id, []))
