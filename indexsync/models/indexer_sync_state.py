"""
Indexer Sync State model.

Holds the indexed block pointer of a projection.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from indexsync.models.base import Base
from indexsync.models.types import BlockNumberType, CounterType


class IndexerSyncState(Base):
    """
    Tracks how far an indexer has projected the chain.

    Used to:
    - Answer "which block is fully projected" for write visibility
    - Resume projection after restart
    - Track projection progress and errors
    """

    __tablename__ = "indexer_sync_state"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Indexer identification
    indexer_name: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )

    # Highest block fully projected, never decreases
    last_indexed_block: Mapped[int] = mapped_column(
        BlockNumberType, nullable=False, default=0
    )

    # Statistics
    events_projected: Mapped[int] = mapped_column(
        CounterType, nullable=False, default=0
    )

    # Error tracking
    last_error: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    error_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<IndexerSyncState(indexer={self.indexer_name}, "
            f"block={self.last_indexed_block})>"
        )
