"""Create indexer tables.

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18

Creates chain cursors, the raw event store and the derived
order / escrow / user tables.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_000001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create indexer tables."""
    op.create_table(
        'chain_cursors',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('chain_id', sa.BigInteger(), nullable=False),
        sa.Column('first_synced_block', sa.BigInteger(), nullable=False),
        sa.Column('last_block_number', sa.BigInteger(), nullable=False),
        sa.Column('last_block_hash', sa.String(66), nullable=False),
        sa.Column('reorg_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_reorg_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('error_count', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_chain_cursors_chain_id', 'chain_cursors', ['chain_id'], unique=True
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('address', sa.String(42), nullable=False),
        sa.Column('orders_created', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('orders_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_volume', sa.String(80), nullable=False, server_default='0'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_address', 'users', ['address'], unique=True)

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.BigInteger(), nullable=False),
        sa.Column('chain_id', sa.BigInteger(), nullable=False),
        sa.Column('maker', sa.String(42), nullable=False),
        sa.Column('taker', sa.String(42), nullable=True),
        sa.Column('sell_token', sa.String(42), nullable=False),
        sa.Column(
            'sell_amount',
            sa.String(80),
            nullable=False,
            comment='Raw uint256 amount as decimal string'
        ),
        sa.Column('buy_token', sa.String(42), nullable=False),
        sa.Column('buy_amount', sa.String(80), nullable=False),
        sa.Column('src_chain_id', sa.BigInteger(), nullable=False),
        sa.Column('dst_chain_id', sa.BigInteger(), nullable=False),
        sa.Column('hash_lock', sa.String(66), nullable=False),
        sa.Column('maker_timelock', sa.BigInteger(), nullable=False),
        sa.Column('taker_timelock', sa.BigInteger(), nullable=False),
        sa.Column('secret', sa.String(66), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='OPEN'),
        sa.Column('cancelled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('filled_amount', sa.String(80), nullable=False, server_default='0'),
        sa.Column(
            'counter_order_id',
            sa.BigInteger(),
            nullable=True,
            comment='Linked order of the other vault'
        ),
        sa.Column('tx_hash', sa.String(66), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('log_index', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_order_id', 'orders', ['order_id'], unique=True)
    op.create_index('ix_orders_maker', 'orders', ['maker'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table(
        'escrows',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('lock_id', sa.String(66), nullable=False),
        sa.Column('order_pk', sa.Integer(), nullable=False),
        sa.Column('chain_id', sa.BigInteger(), nullable=False),
        sa.Column('side', sa.String(10), nullable=False),
        sa.Column('depositor', sa.String(42), nullable=False),
        sa.Column('recipient', sa.String(42), nullable=False),
        sa.Column('token', sa.String(42), nullable=False),
        sa.Column('amount', sa.String(80), nullable=False),
        sa.Column('hash_lock', sa.String(66), nullable=False),
        sa.Column('timelock', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='LOCKED'),
        sa.Column('secret', sa.String(66), nullable=True),
        sa.Column('claimed_tx_hash', sa.String(66), nullable=True),
        sa.Column('refunded_tx_hash', sa.String(66), nullable=True),
        sa.Column('tx_hash', sa.String(66), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('log_index', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['order_pk'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_escrows_lock_id', 'escrows', ['lock_id'], unique=True)
    op.create_index('ix_escrows_order_pk', 'escrows', ['order_pk'])
    op.create_index('ix_escrows_depositor', 'escrows', ['depositor'])
    op.create_index('ix_escrows_status', 'escrows', ['status'])

    op.create_table(
        'indexed_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('chain_id', sa.BigInteger(), nullable=False),
        sa.Column('tx_hash', sa.String(66), nullable=False),
        sa.Column('log_index', sa.Integer(), nullable=False),
        sa.Column('contract_address', sa.String(42), nullable=False),
        sa.Column('event_name', sa.String(64), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('block_hash', sa.String(66), nullable=False),
        sa.Column('args', sa.JSON(), nullable=False),
        sa.Column('processed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'removed',
            sa.Boolean(),
            nullable=False,
            server_default='false',
            comment='Set by reorg rollback; rows are never deleted'
        ),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('processing_notes', sa.Text(), nullable=True),
        sa.Column('order_pk', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['order_pk'], ['orders.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'chain_id', 'tx_hash', 'log_index',
            name='uq_indexed_events_chain_tx_log'
        ),
    )
    op.create_index('ix_indexed_events_chain_id', 'indexed_events', ['chain_id'])
    op.create_index('ix_indexed_events_tx_hash', 'indexed_events', ['tx_hash'])
    op.create_index(
        'ix_indexed_events_contract_address', 'indexed_events', ['contract_address']
    )
    op.create_index('ix_indexed_events_event_name', 'indexed_events', ['event_name'])
    op.create_index('ix_indexed_events_block_number', 'indexed_events', ['block_number'])
    op.create_index('ix_indexed_events_processed', 'indexed_events', ['processed'])
    op.create_index('ix_indexed_events_removed', 'indexed_events', ['removed'])
    op.create_index('ix_indexed_events_order_pk', 'indexed_events', ['order_pk'])


def downgrade() -> None:
    """Drop indexer tables."""
    op.drop_table('indexed_events')
    op.drop_table('escrows')
    op.drop_table('orders')
    op.drop_table('users')
    op.drop_table('chain_cursors')
