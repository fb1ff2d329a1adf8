"""
Registry stats models.

RegistryStatsState is the mutable running total per registry.
RegistryStatsData is the append-only time series of those totals,
one row per state-changing event.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from indexsync.models.base import Base
from indexsync.models.types import (
    BlockNumberType,
    CounterType,
    EventIdType,
    RegistryIdType,
)


class RegistryStatsState(Base):
    """
    Current counters of one registry.

    Invariant: total_active = total_added - total_removed - total_revoked.
    Only the aggregation engine writes these rows.
    """

    __tablename__ = "registry_stats_state"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    registry_id: Mapped[str] = mapped_column(
        RegistryIdType, nullable=False, unique=True, index=True
    )
    registry_type: Mapped[str] = mapped_column(
        String(32), nullable=False, index=True
    )

    # Counters
    total_added: Mapped[int] = mapped_column(
        CounterType, nullable=False, default=0
    )
    total_active: Mapped[int] = mapped_column(
        CounterType, nullable=False, default=0
    )
    total_removed: Mapped[int] = mapped_column(
        CounterType, nullable=False, default=0
    )
    total_revoked: Mapped[int] = mapped_column(
        CounterType, nullable=False, default=0
    )

    # Position of the last applied event
    last_block_number: Mapped[int] = mapped_column(
        BlockNumberType, nullable=False, default=0
    )
    last_log_index: Mapped[int] = mapped_column(
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
            f"<RegistryStatsState(registry={self.registry_id}, "
            f"added={self.total_added}, active={self.total_active}, "
            f"removed={self.total_removed}, revoked={self.total_revoked})>"
        )


class RegistryStatsData(Base):
    """
    Immutable snapshot of a registry's counters.

    Written once per applied event, never updated or deleted.
    """

    __tablename__ = "registry_stats_data"
    __table_args__ = (
        Index("ix_registry_stats_data_registry_timestamp", "registry_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    registry_id: Mapped[str] = mapped_column(
        RegistryIdType, nullable=False, index=True
    )
    registry_type: Mapped[str] = mapped_column(
        String(32), nullable=False
    )

    # Counters copied from the state right after the event
    total_added: Mapped[int] = mapped_column(CounterType, nullable=False)
    total_active: Mapped[int] = mapped_column(CounterType, nullable=False)
    total_removed: Mapped[int] = mapped_column(CounterType, nullable=False)
    total_revoked: Mapped[int] = mapped_column(CounterType, nullable=False)

    # Triggering event
    event_id: Mapped[str] = mapped_column(
        EventIdType, nullable=False, unique=True
    )
    event_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    block_number: Mapped[int] = mapped_column(BlockNumberType, nullable=False)
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)

    # Block timestamp of the triggering event
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<RegistryStatsData(registry={self.registry_id}, "
            f"event={self.event_id}, active={self.total_active})>"
        )
