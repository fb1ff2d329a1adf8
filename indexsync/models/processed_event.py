"""
Processed registry event model.

Dedup ledger for at-least-once event delivery.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column

from indexsync.models.base import Base
from indexsync.models.types import BlockNumberType, EventIdType, RegistryIdType


class ProcessedRegistryEvent(Base):
    """One row per event already applied to a registry's stats."""

    __tablename__ = "processed_registry_events"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # "{tx_hash}:{log_index}"
    event_id: Mapped[str] = mapped_column(
        EventIdType, nullable=False, unique=True, index=True
    )
    registry_id: Mapped[str] = mapped_column(
        RegistryIdType, nullable=False, index=True
    )
    block_number: Mapped[int] = mapped_column(
        BlockNumberType, nullable=False, index=True
    )

    processed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
