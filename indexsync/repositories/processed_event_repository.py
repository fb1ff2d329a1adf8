"""
Processed registry event repository.

Dedup ledger queries.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from indexsync.models.processed_event import ProcessedRegistryEvent
from indexsync.repositories.base import BaseRepository
from indexsync.utils.exceptions import DuplicateEventError


class ProcessedEventRepository(BaseRepository[ProcessedRegistryEvent]):
    """Repository for applied event identities."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(ProcessedRegistryEvent, session)

    async def is_processed(self, event_id: str) -> bool:
        """
        Check if an event was already applied.

        Args:
            event_id: "{tx_hash}:{log_index}"

        Returns:
            True if applied before
        """
        return await self.exists(event_id=event_id)

    async def claim(
        self, event_id: str, registry_id: str, block_number: int
    ) -> ProcessedRegistryEvent:
        """
        Insert the event identity, failing if another writer got there first.

        Runs in a savepoint so a conflict leaves the outer transaction usable.

        Args:
            event_id: "{tx_hash}:{log_index}"
            registry_id: Registry the event belongs to
            block_number: Block of the event

        Returns:
            Created row

        Raises:
            DuplicateEventError: If the identity already exists
        """
        try:
            async with self.session.begin_nested():
                return await self.create(
                    event_id=event_id,
                    registry_id=registry_id,
                    block_number=block_number,
                )
        except IntegrityError as e:
            raise DuplicateEventError(event_id) from e
