"""
Registry stats repositories.

Data access layer for registry counters and their snapshot history.
"""

from datetime import datetime

from sqlalchemy import select, tuple_
from sqlalchemy.ext.asyncio import AsyncSession

from indexsync.models.registry_stats import RegistryStatsData, RegistryStatsState
from indexsync.repositories.base import BaseRepository


class RegistryStatsStateRepository(BaseRepository[RegistryStatsState]):
    """Repository for current registry counters."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(RegistryStatsState, session)

    async def get_by_registry(
        self, registry_id: str, for_update: bool = False
    ) -> RegistryStatsState | None:
        """
        Get counters of a registry.

        Args:
            registry_id: Registry identifier
            for_update: Lock the row for the rest of the transaction

        Returns:
            State row or None if the registry has no events yet
        """
        return await self.get_by(for_update=for_update, registry_id=registry_id)

    async def list_states(
        self, registry_type: str | None = None, limit: int = 100
    ) -> list[RegistryStatsState]:
        """
        List registries ordered by activity.

        Args:
            registry_type: Optional registry type filter
            limit: Max results

        Returns:
            List of state rows
        """
        stmt = select(RegistryStatsState)
        if registry_type:
            stmt = stmt.where(RegistryStatsState.registry_type == registry_type)
        stmt = stmt.order_by(RegistryStatsState.total_active.desc()).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class RegistryStatsDataRepository(BaseRepository[RegistryStatsData]):
    """Repository for the append-only snapshot series."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(RegistryStatsData, session)

    async def list_snapshots(
        self,
        registry_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
        after_position: tuple[int, int] | None = None,
        limit: int = 1000,
    ) -> list[RegistryStatsData]:
        """
        Get one page of snapshots of a registry in creation order.

        Pages are keyed by chain position: pass the (block_number, log_index)
        of the last snapshot of a page to get the next one.

        Args:
            registry_id: Registry identifier
            since: Inclusive lower bound on event timestamp
            until: Exclusive upper bound on event timestamp
            after_position: Exclusive lower bound on (block_number, log_index)
            limit: Max results

        Returns:
            Snapshots ordered by (block_number, log_index)
        """
        conditions = [RegistryStatsData.registry_id == registry_id]
        if since is not None:
            conditions.append(RegistryStatsData.timestamp >= since)
        if until is not None:
            conditions.append(RegistryStatsData.timestamp < until)
        if after_position is not None:
            conditions.append(
                tuple_(RegistryStatsData.block_number, RegistryStatsData.log_index)
                > tuple_(*after_position)
            )

        stmt = (
            select(RegistryStatsData)
            .where(*conditions)
            .order_by(
                RegistryStatsData.block_number.asc(),
                RegistryStatsData.log_index.asc(),
            )
            .limit(limit)
        )

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
