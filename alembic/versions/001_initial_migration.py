"""Initial migration: time_entries

Revision ID: 001
Revises: 
Create Date: 2026-01-21 03:35:13.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('time_entries',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('source', sa.String(length=20), nullable=False),
    sa.Column('external_id', sa.String(length=255), nullable=True),
    sa.Column('date', sa.DateTime(timezone=True), nullable=False),
    sa.Column('duration', sa.Float(), nullable=False),
    sa.Column('project', sa.Text(), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('start_time', sa.String(length=5), nullable=True),
    sa.Column('end_time', sa.String(length=5), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_time_entries_source'), 'time_entries', ['source'], unique=False)
    op.create_index('idx_time_entries_source_external_id', 'time_entries', ['source', 'external_id'], unique=True)
    op.create_index('idx_time_entries_date', 'time_entries', ['date'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_time_entries_date', table_name='time_entries')
    op.drop_index('idx_time_entries_source_external_id', table_name='time_entries')
    op.drop_index(op.f('ix_time_entries_source'), table_name='time_entries')
    op.drop_table('time_entries')
