"""
Indexer Sync State repository.

Data access layer for the indexed block pointer.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from indexsync.models.indexer_sync_state import IndexerSyncState
from indexsync.repositories.base import BaseRepository


class IndexerSyncStateRepository(BaseRepository[IndexerSyncState]):
    """Repository for indexer sync state."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(IndexerSyncState, session)

    async def get_indexed_block(self, indexer_name: str) -> int:
        """
        Get the highest fully projected block.

        Args:
            indexer_name: Indexer identifier

        Returns:
            Block number, 0 if the indexer never ran
        """
        stmt = select(IndexerSyncState.last_indexed_block).where(
            IndexerSyncState.indexer_name == indexer_name
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() or 0

    async def get_or_create(
        self, indexer_name: str, for_update: bool = True
    ) -> IndexerSyncState:
        """
        Load the state row, creating it on first use.

        Args:
            indexer_name: Indexer identifier
            for_update: Lock the row for the rest of the transaction

        Returns:
            IndexerSyncState row
        """
        state = await self.get_by(for_update=for_update, indexer_name=indexer_name)
        if state is None:
            state = await self.create(
                indexer_name=indexer_name,
                last_indexed_block=0,
                events_projected=0,
                error_count=0,
            )
        return state

    async def advance(
        self, indexer_name: str, block_number: int, events_projected: int = 0
    ) -> int:
        """
        Move the pointer forward; a lower block leaves it unchanged.

        Args:
            indexer_name: Indexer identifier
            block_number: Block that is now fully projected
            events_projected: Events applied since the last advance

        Returns:
            Pointer value after the call
        """
        state = await self.get_or_create(indexer_name)
        if block_number > state.last_indexed_block:
            state.last_indexed_block = block_number
        state.events_projected += events_projected
        state.last_error = None
        await self.session.flush()
        return state.last_indexed_block

    async def record_error(self, indexer_name: str, error: str) -> None:
        """
        Record a projection failure.

        Args:
            indexer_name: Indexer identifier
            error: Error text
        """
        state = await self.get_or_create(indexer_name)
        state.last_error = error[:2000]
        state.error_count += 1
        await self.session.flush()
