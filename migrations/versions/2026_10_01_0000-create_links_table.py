"""Create links table

Revision ID: 001_links
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_links'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the links table:
    - key: unique index (the link store's atomic insert depends on it)
    - destination: plain index for the dedup lookup
    """
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    if 'links' in existing_tables:
        return

    op.create_table(
        'links',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('key', sa.String(length=32), nullable=False),
        sa.Column('destination', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_index(
        'ix_links_key',
        'links',
        ['key'],
        unique=True
    )

    op.create_index(
        'ix_links_destination',
        'links',
        ['destination']
    )


def downgrade() -> None:
    """Drop the links table and its indexes."""
    op.drop_index('ix_links_destination', table_name='links')
    op.drop_index('ix_links_key', table_name='links')
    op.drop_table('links')
