"""initial schema

Revision ID: 3f2a9c1d7b40
Revises: 
Create Date: 2026-10-19 10:12:44.318207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


json_type = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'tbl_users',
        sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
        sa.Column('username', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('password', sa.Text(), nullable=True),
        sa.Column('display_name', sa.Text(), nullable=True),
        sa.Column('photo_url', sa.Text(), nullable=True),
        sa.Column('provider', sa.String(length=16), nullable=False, server_default='email'),
        sa.Column('language', sa.String(length=8), nullable=False, server_default='en'),
        sa.Column('theme', sa.String(length=16), nullable=False, server_default='light'),
        sa.Column('credits', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('subscription', sa.String(length=16), nullable=False, server_default='free'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'tbl_projects',
        sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('tbl_users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('theme', sa.Text(), nullable=False, server_default='modern'),
        sa.Column('language', sa.String(length=8), nullable=False, server_default='en'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='draft'),
        sa.Column('generated_code', json_type, nullable=True),
        sa.Column('assets', json_type, nullable=True),
        sa.Column('settings', json_type, nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index('ix_projects_user', 'tbl_projects', ['user_id'])

    op.create_table(
        'tbl_generations',
        sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
        sa.Column('project_id', sa.String(length=36), sa.ForeignKey('tbl_projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('tbl_users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('generated_code', json_type, nullable=True),
        sa.Column('credits_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index('ix_generations_project', 'tbl_generations', ['project_id'])

    op.create_table(
        'tbl_subscriptions',
        sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('tbl_users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plan', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('credits_remaining', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('paypal_subscription_id', sa.Text(), nullable=True),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint('paypal_subscription_id', name='uq_subscriptions_paypal_subscription_id'),
    )
    op.create_index('ix_subscriptions_user', 'tbl_subscriptions', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_subscriptions_user', table_name='tbl_subscriptions')
    op.drop_table('tbl_subscriptions')
    op.drop_index('ix_generations_project', table_name='tbl_generations')
    op.drop_table('tbl_generations')
    op.drop_index('ix_projects_user', table_name='tbl_projects')
    op.drop_table('tbl_projects')
    op.drop_table('tbl_users')
