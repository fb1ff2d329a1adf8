"""
Registry statistics query service.

Read side of the projection: current counters and the snapshot series of
a registry for charting, plus per-event projection checks.
"""

from collections.abc import AsyncIterator
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from indexsync.models.enums import RegistryEventKind, RegistryType
from indexsync.repositories.processed_event_repository import ProcessedEventRepository
from indexsync.repositories.registry_stats_repository import (
    RegistryStatsDataRepository,
    RegistryStatsStateRepository,
)
from indexsync.services.aggregation.events import RegistryCounters
from indexsync.services.aggregation.store import Absent, Found, StatsSnapshot
from indexsync.utils.validation import (
    normalize_registry_id,
    normalize_transaction_hash,
)


class RegistryStatsQueryService:
    """Service for reading registry counters and snapshots."""

    def __init__(self, session: AsyncSession):
        """
        Initialize query service.

        Args:
            session: Database session
        """
        self.session = session
        self.state_repo = RegistryStatsStateRepository(session)
        self.data_repo = RegistryStatsDataRepository(session)
        self.processed_repo = ProcessedEventRepository(session)

    async def get_state(self, registry_id: str) -> Found | Absent:
        """
        Get current counters of a registry.

        Args:
            registry_id: Registry identifier

        Returns:
            Found with counters, or Absent if the registry has no events
        """
        registry_id = normalize_registry_id(registry_id)
        row = await self.state_repo.get_by_registry(registry_id)
        if row is None:
            return Absent(registry_id)
        return _to_found(row)

    async def list_registries(
        self, registry_type: RegistryType | None = None, limit: int = 100
    ) -> list[Found]:
        """
        List known registries, most active first.

        Args:
            registry_type: Optional registry type filter
            limit: Max results

        Returns:
            Current state of each registry
        """
        rows = await self.state_repo.list_states(
            registry_type.value if registry_type else None, limit=limit
        )
        return [_to_found(row) for row in rows]

    async def is_event_applied(self, tx_hash: str, log_index: int) -> bool:
        """Check whether the log at (tx_hash, log_index) has been projected."""
        event_id = f"{normalize_transaction_hash(tx_hash)}:{log_index}"
        return await self.processed_repo.is_processed(event_id)

    async def list_snapshots(
        self,
        registry_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
        after_position: tuple[int, int] | None = None,
        limit: int = 1000,
    ) -> list[StatsSnapshot]:
        """
        Get one page of the snapshot series of a registry.

        Returns the oldest ``limit`` snapshots after ``after_position``. To read
        the next page, pass the ``(block_number, log_index)`` of the last
        snapshot returned; ``iter_snapshots`` does this for the whole series.

        Args:
            registry_id: Registry identifier
            since: Inclusive lower bound on event timestamp
            until: Exclusive upper bound on event timestamp
            after_position: Exclusive lower bound on (block_number, log_index)
            limit: Max results

        Returns:
            Snapshots in chain order
        """
        if since is not None and until is not None and since >= until:
            raise ValueError("since must be earlier than until")

        rows = await self.data_repo.list_snapshots(
            normalize_registry_id(registry_id),
            since=since,
            until=until,
            after_position=after_position,
            limit=limit,
        )
        return [
            StatsSnapshot(
                registry_id=row.registry_id,
                registry_type=RegistryType(row.registry_type),
                counters=RegistryCounters(
                    total_added=row.total_added,
                    total_active=row.total_active,
                    total_removed=row.total_removed,
                    total_revoked=row.total_revoked,
                ),
                event_id=row.event_id,
                event_kind=RegistryEventKind(row.event_kind),
                block_number=row.block_number,
                log_index=row.log_index,
                timestamp=row.timestamp,
            )
            for row in rows
        ]

    async def iter_snapshots(
        self,
        registry_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
        page_size: int = 1000,
    ) -> AsyncIterator[StatsSnapshot]:
        """Yield the full snapshot series of a registry, page by page."""
        after_position = None
        while True:
            page = await self.list_snapshots(
                registry_id,
                since=since,
                until=until,
                after_position=after_position,
                limit=page_size,
            )
            for snapshot in page:
                yield snapshot
            if len(page) < page_size:
                return
            after_position = (page[-1].block_number, page[-1].log_index)


def _to_found(row) -> Found:
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
