"""Create registry stats, dedup ledger and indexer sync state tables

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Indexed block pointer
    op.create_table(
        'indexer_sync_state',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('indexer_name', sa.String(64), nullable=False),
        sa.Column('last_indexed_block', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('events_projected', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('error_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_indexer_sync_state_indexer_name', 'indexer_sync_state', ['indexer_name'], unique=True)

    # Current counters per registry
    op.create_table(
        'registry_stats_state',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('registry_id', sa.String(66), nullable=False),
        sa.Column('registry_type', sa.String(32), nullable=False),
        sa.Column('total_added', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('total_active', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('total_removed', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('total_revoked', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_block_number', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_log_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_registry_stats_state_registry_id', 'registry_stats_state', ['registry_id'], unique=True)
    op.create_index('ix_registry_stats_state_registry_type', 'registry_stats_state', ['registry_type'])

    # Append-only snapshot series
    op.create_table(
        'registry_stats_data',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('registry_id', sa.String(66), nullable=False),
        sa.Column('registry_type', sa.String(32), nullable=False),
        sa.Column('total_added', sa.BigInteger(), nullable=False),
        sa.Column('total_active', sa.BigInteger(), nullable=False),
        sa.Column('total_removed', sa.BigInteger(), nullable=False),
        sa.Column('total_revoked', sa.BigInteger(), nullable=False),
        sa.Column('event_id', sa.String(80), nullable=False),
        sa.Column('event_kind', sa.String(20), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('log_index', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id')
    )
    op.create_index('ix_registry_stats_data_registry_id', 'registry_stats_data', ['registry_id'])
    op.create_index(
        'ix_registry_stats_data_registry_timestamp',
        'registry_stats_data',
        ['registry_id', 'timestamp'],
    )

    # Dedup ledger
    op.create_table(
        'processed_registry_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.String(80), nullable=False),
        sa.Column('registry_id', sa.String(66), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_processed_registry_events_event_id', 'processed_registry_events', ['event_id'], unique=True)
    op.create_index('ix_processed_registry_events_registry_id', 'processed_registry_events', ['registry_id'])
    op.create_index('ix_processed_registry_events_block_number', 'processed_registry_events', ['block_number'])


def downgrade() -> None:
    op.drop_table('processed_registry_events')
    op.drop_table('registry_stats_data')
    op.drop_table('registry_stats_state')
    op.drop_table('indexer_sync_state')
