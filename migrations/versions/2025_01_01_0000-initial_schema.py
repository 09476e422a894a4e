"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create initial database schema:
    - urls table: original URLs, id is the short code source
    - visitors table: one row per redirect
    """
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    if 'urls' not in existing_tables:
        op.create_table(
            'urls',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('original_url', sa.Text(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('total_visitors', sa.Integer(), nullable=False, server_default='0'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('original_url', name='url_original_url_key'),
        )
        op.create_index('ix_urls_created_at', 'urls', ['created_at'])

    if 'visitors' not in existing_tables:
        op.create_table(
            'visitors',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('url_id', sa.Integer(), nullable=False),
            sa.Column('ip', sa.String(length=45), nullable=False),
            sa.Column('time_visited', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(
                ['url_id'],
                ['urls.id'],
                name='fk_visitors_url_id',
                ondelete='CASCADE'
            ),
        )
        op.create_index('ix_visitors_url_id', 'visitors', ['url_id'])
        op.create_index('ix_visitors_time_visited', 'visitors', ['time_visited'])


def downgrade() -> None:
    op.drop_index('ix_visitors_time_visited', table_name='visitors')
    op.drop_index('ix_visitors_url_id', table_name='visitors')
    op.drop_table('visitors')
    op.drop_index('ix_urls_created_at', table_name='urls')
    op.drop_table('urls')
