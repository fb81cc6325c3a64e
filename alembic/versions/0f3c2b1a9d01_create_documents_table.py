"""Create documents table for animals and breeding seasons

Revision ID: 0f3c2b1a9d01
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0f3c2b1a9d01'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the documents table keyed by tenant, collection and id."""
    op.create_table(
        'documents',
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('collection', sa.String(length=64), nullable=False),
        sa.Column('id', sa.String(length=128), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('tenant_id', 'collection', 'id'),
    )
    op.create_index(
        'ix_documents_tenant_collection', 'documents', ['tenant_id', 'collection'], unique=False
    )


def downgrade() -> None:
    op.drop_index('ix_documents_tenant_collection', table_name='documents')
    op.drop_table('documents')
