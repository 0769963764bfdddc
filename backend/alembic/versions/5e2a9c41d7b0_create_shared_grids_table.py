"""create shared_grids table

Revision ID: 5e2a9c41d7b0
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5e2a9c41d7b0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if 'shared_grids' in inspector.get_table_names():
        return
    op.create_table(
        'shared_grids',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('share_id', sa.String(length=32), nullable=False),
        sa.Column('rows', sa.Integer(), nullable=False),
        sa.Column('cols', sa.Integer(), nullable=False),
        sa.Column('cell_data', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'), nullable=False),
        sa.Column('state_hash', sa.String(length=64), nullable=False),
        sa.Column('type', sa.String(length=20), server_default='grid', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_shared_grids_id', 'shared_grids', ['id'])
    op.create_index('ix_shared_grids_share_id', 'shared_grids', ['share_id'], unique=True)
    op.create_index('ix_shared_grids_state_hash', 'shared_grids', ['state_hash'])


def downgrade() -> None:
    op.drop_index('ix_shared_grids_state_hash', table_name='shared_grids')
    op.drop_index('ix_shared_grids_share_id', table_name='shared_grids')
    op.drop_index('ix_shared_grids_id', table_name='shared_grids')
    op.drop_table('shared_grids')
