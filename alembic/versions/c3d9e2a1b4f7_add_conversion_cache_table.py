"""add conversion_cache table

Revision ID: c3d9e2a1b4f7
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'c3d9e2a1b4f7'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'conversion_cache',
        sa.Column('entry_id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('content_hash', sa.String(length=64), nullable=False),
        sa.Column('ai_model', sa.String(length=255), nullable=False),
        sa.Column('original_code', sa.Text(), nullable=False),
        sa.Column('converted_code', sa.Text(), nullable=False),
        sa.Column('metrics', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('issues', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('data_type_mapping', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('result_json', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.TIMESTAMP(), nullable=False, server_default=sa.text('now()')),
        sa.UniqueConstraint('content_hash', 'ai_model', name='uq_conversion_cache_hash_model'),
    )
    op.create_index('idx_conversion_cache_created', 'conversion_cache', ['created_at'])


def downgrade() -> None:
    op.drop_index('idx_conversion_cache_created', table_name='conversion_cache')
    op.drop_table('conversion_cache')
