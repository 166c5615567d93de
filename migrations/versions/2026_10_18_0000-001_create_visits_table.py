"""Create visits table

Revision ID: 001_visits
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_visits'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the visit ledger:
    - visits table: one append-only row per recorded visit
    """
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    # The app may already have created it with CREATE_TABLES_ON_STARTUP
    if 'visits' in existing_tables:
        return

    op.create_table(
        'visits',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column(
            'timestamp',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('CURRENT_TIMESTAMP')
        ),
        sa.Column('visitor_count', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_index(
        'ix_visits_timestamp',
        'visits',
        ['timestamp']
    )


def downgrade() -> None:
    op.drop_index('ix_visits_timestamp', table_name='visits')
    op.drop_table('visits')
