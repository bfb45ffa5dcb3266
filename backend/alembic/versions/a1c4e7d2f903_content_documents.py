"""Content documents table (wiki pages, revisions, news articles)

Revision ID: a1c4e7d2f903
Revises:
Create Date: 2026-03-14T10:12:44.512309
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = 'a1c4e7d2f903'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- content_documents ---
    op.create_table(
        'content_documents',
        sa.Column('collection', sa.String(), nullable=False),
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('collection', 'id'),
    )
    op.create_index(
        'idx_content_documents_collection_updated',
        'content_documents',
        ['collection', 'updated_at'],
    )


def downgrade() -> None:
    op.drop_index('idx_content_documents_collection_updated', table_name='content_documents')
    op.drop_table('content_documents')
