"""create_business_plans

Revision ID: 3f9c2a1d7b40
Revises:
Create Date: 2026-10-17 09:12:44.180233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f9c2a1d7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'business_plans',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('title', sa.String(), nullable=False, server_default='Untitled plan'),
        sa.Column('status', sa.String(), nullable=False, server_default='draft'),
        sa.Column('content', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        # Optimistic concurrency token, bumped on every content write
        sa.Column('revision', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=True),
    )
    op.create_index('idx_business_plans_user_id', 'business_plans', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_business_plans_user_id', table_name='business_plans')
    op.drop_table('business_plans')
