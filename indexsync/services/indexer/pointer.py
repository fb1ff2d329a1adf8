"""
Indexed block pointer.

The highest block whose events are fully projected. Written by the
projection runner after a block is complete, read by the indexing waiter.
The pointer never decreases.
"""

from typing import Protocol, runtime_checkable

from loguru import logger
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from indexsync.repositories.indexer_sync_state_repository import (
    IndexerSyncStateRepository,
)
from indexsync.utils.db_decorators import with_auto_commit
from indexsync.utils.exceptions import TransientFetchError


@runtime_checkable
class IndexedBlockPointer(Protocol):
    """Readable and advanceable progress pointer."""

    async def get_indexed_block(self) -> int:
        """Return the highest fully projected block."""
        ...

    async def advance(self, block_number: int, events_projected: int = 0) -> int:
        """Move forward to block_number (no-op if lower); return the pointer."""
        ...


class IndexerPointerService:
    """Pointer writes inside one session."""

    def __init__(self, session: AsyncSession, indexer_name: str) -> None:
        """
        Initialize pointer service.

        Args:
            session: Database session
            indexer_name: Pointer identifier
        """
        self.session = session
        self.indexer_name = indexer_name
        self.repo = IndexerSyncStateRepository(session)

    @with_auto_commit
    async def advance(self, block_number: int, events_projected: int = 0) -> int:
        """Advance and commit."""
        return await self.repo.advance(
            self.indexer_name, block_number, events_projected
        )

    @with_auto_commit
    async def record_error(self, error: str) -> None:
        """Record a failure and commit."""
        await self.repo.record_error(self.indexer_name, error)


class SqlIndexedBlockPointer:
    """
    Pointer stored in ``indexer_sync_state``.

    Doubles as an IndexerStatusClient when write visibility is checked
    against the local projection instead of a remote indexer.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        indexer_name: str,
    ) -> None:
        """
        Initialize pointer.

        Args:
            session_maker: Session factory owned by process bootstrap
            indexer_name: Pointer identifier
        """
        self.session_maker = session_maker
        self.indexer_name = indexer_name

    async def get_indexed_block(self) -> int:
        """
        Read the pointer.

        Raises:
            TransientFetchError: If the database is unavailable
        """
        try:
            async with self.session_maker() as session:
                repo = IndexerSyncStateRepository(session)
                return await repo.get_indexed_block(self.indexer_name)
        except (OperationalError, DBAPIError, OSError) as e:
            raise TransientFetchError(f"Pointer read failed: {e}") from e

    async def advance(self, block_number: int, events_projected: int = 0) -> int:
        """Advance the pointer in its own transaction."""
        async with self.session_maker() as session:
            pointer = await IndexerPointerService(session, self.indexer_name).advance(
                block_number, events_projected
            )
        logger.debug(f"[Pointer] {self.indexer_name} at block {pointer}")
        return pointer

    async def record_error(self, error: str) -> None:
        """Record a projection failure."""
        async with self.session_maker() as session:
            await IndexerPointerService(session, self.indexer_name).record_error(error)


class InMemoryIndexedBlockPointer:
    """Process-local pointer for embedded projections and tests."""

    def __init__(self, start_block: int = 0) -> None:
        self._block = start_block
        self.events_projected = 0

    async def get_indexed_block(self) -> int:
        return self._block

    async def advance(self, block_number: int, events_projected: int = 0) -> int:
        if block_number > self._block:
            self._block = block_number
        self.events_projected += events_projected
        return self._block
