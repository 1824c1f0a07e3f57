"""create issues and users

Creates the issues table backing the public reports feed and the users table
used for operator sign-in.

Revision ID: 0001_create_issues_and_users
Revises:
Create Date: 2026-10-17 12:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_create_issues_and_users'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'issues',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=4000), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='new'),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('location_name', sa.String(length=300), nullable=True),
        sa.Column('street_address', sa.String(length=300), nullable=True),
        sa.Column('landmark', sa.String(length=300), nullable=True),
        sa.Column('image_url', sa.String(length=2000), nullable=True),
        sa.Column('priority_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('upvotes_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_spam', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('assigned_to', sa.String(length=200), nullable=True),
        sa.Column('public_notes', sa.String(length=4000), nullable=True),
        sa.Column('response_time', sa.String(length=120), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_issues_title', 'issues', ['title'])
    op.create_index('ix_issues_category', 'issues', ['category'])
    op.create_index('ix_issues_status', 'issues', ['status'])
    op.create_index('ix_issues_is_spam', 'issues', ['is_spam'])
    op.create_index('ix_issues_created_at', 'issues', ['created_at'])
    op.create_index('ix_issues_lat_lng', 'issues', ['latitude', 'longitude'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('role', sa.Enum('admin', 'citizen', name='userrole'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
    op.drop_index('ix_issues_lat_lng', table_name='issues')
    op.drop_index('ix_issues_created_at', table_name='issues')
    op.drop_index('ix_issues_is_spam', table_name='issues')
    op.drop_index('ix_issues_status', table_name='issues')
    op.drop_index('ix_issues_category', table_name='issues')
    op.drop_index('ix_issues_title', table_name='issues')
    op.drop_table('issues')
