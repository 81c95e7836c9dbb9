"""create_trixy_tables

Revision ID: 2026_10_18_120000
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '2026_10_18_120000'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EVENT_TABLES = (
    'trixy_market_created',
    'trixy_bet_placed',
    'trixy_market_resolved',
    'trixy_winnings_claimed',
    'trixy_yield_deposited',
    'trixy_yield_withdrawn',
)


def _event_columns() -> list[sa.Column]:
    return [
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('block_height', sa.BigInteger(), nullable=False),
        sa.Column('block_timestamp', sa.BigInteger(), nullable=False),
        sa.Column('transaction_id', sa.Text(), nullable=False),
        sa.Column('event_index', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _create_event_table(name: str, *columns: sa.Column, indexed: Sequence[str] = ()) -> None:
    op.create_table(
        name,
        *_event_columns(),
        *columns,
        sa.PrimaryKeyConstraint('id', name=op.f(f'pk_{name}')),
        sa.UniqueConstraint('transaction_id', 'event_index', name=op.f(f'uq_{name}_transaction_id_event_index')),
    )
    for column in ('block_height', 'block_timestamp', 'transaction_id', *indexed):
        op.create_index(op.f(f'ix_{name}_{column}'), name, [column], unique=False)


def upgrade() -> None:
    op.create_table(
        'sync_states',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('contract_address', sa.Text(), nullable=False),
        sa.Column('contract_name', sa.Text(), nullable=False),
        sa.Column('network', sa.Text(), nullable=False),
        sa.Column('last_block_height', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_sync_states')),
        sa.UniqueConstraint('contract_address', name=op.f('uq_sync_states_contract_address')),
    )

    _create_event_table(
        'trixy_market_created',
        sa.Column('market_id', sa.BigInteger(), nullable=False),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('end_time', sa.Text(), nullable=False),
        sa.Column('options', postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column('yield_protocol', sa.Text(), nullable=False),
        sa.Column('creator', sa.Text(), nullable=False),
        indexed=('market_id', 'creator'),
    )
    _create_event_table(
        'trixy_bet_placed',
        sa.Column('market_id', sa.BigInteger(), nullable=False),
        sa.Column('user', sa.Text(), nullable=False),
        sa.Column('selected_option', sa.Text(), nullable=False),
        sa.Column('protocol_index', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Text(), nullable=False),
        indexed=('market_id', 'user'),
    )
    _create_event_table(
        'trixy_market_resolved',
        sa.Column('market_id', sa.BigInteger(), nullable=False),
        sa.Column('winning_option', sa.Text(), nullable=False),
        sa.Column('final_apys', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('resolved_at', sa.Text(), nullable=False),
        indexed=('market_id',),
    )
    _create_event_table(
        'trixy_winnings_claimed',
        sa.Column('market_id', sa.BigInteger(), nullable=False),
        sa.Column('user', sa.Text(), nullable=False),
        sa.Column('payout', sa.Text(), nullable=False),
        indexed=('market_id', 'user'),
    )
    _create_event_table(
        'trixy_yield_deposited',
        sa.Column('user_address', sa.Text(), nullable=False),
        sa.Column('protocol_name', sa.Text(), nullable=False),
        sa.Column('amount', sa.Text(), nullable=False),
        sa.Column('position_id', sa.Text(), nullable=False),
        indexed=('user_address', 'protocol_name'),
    )
    _create_event_table(
        'trixy_yield_withdrawn',
        sa.Column('market_id', sa.BigInteger(), nullable=False),
        sa.Column('protocol', sa.Text(), nullable=False),
        sa.Column('amount', sa.Text(), nullable=False),
        sa.Column('yield_earned', sa.Text(), nullable=False),
        indexed=('market_id',),
    )

    op.create_table(
        'trixy_skipped_events',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('contract_address', sa.Text(), nullable=False),
        sa.Column('kind', sa.Text(), nullable=False),
        sa.Column('block_height', sa.BigInteger(), nullable=False),
        sa.Column('block_timestamp', sa.BigInteger(), nullable=False),
        sa.Column('transaction_id', sa.Text(), nullable=False),
        sa.Column('event_index', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('payload', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_trixy_skipped_events')),
        sa.UniqueConstraint(
            'kind', 'transaction_id', 'event_index',
            name=op.f('uq_trixy_skipped_events_kind_transaction_id_event_index'),
        ),
    )
    op.create_index(op.f('ix_trixy_skipped_events_contract_address'), 'trixy_skipped_events', ['contract_address'], unique=False)
    op.create_index(op.f('ix_trixy_skipped_events_block_height'), 'trixy_skipped_events', ['block_height'], unique=False)


def downgrade() -> None:
    op.drop_table('trixy_skipped_events')
    for name in reversed(EVENT_TABLES):
        op.drop_table(name)
    op.drop_table('sync_states')
