"""initial_schema

Revision ID: 3f9c2a71d0b4
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2a71d0b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id',            sa.String(length=36),  nullable=False),
        sa.Column('username',      sa.String(length=64),  nullable=False),
        sa.Column('email',         sa.String(length=255), nullable=False),
        sa.Column('display_name',  sa.String(length=128), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active',     sa.Boolean(),          nullable=False),
        sa.Column('is_admin',      sa.Boolean(),          nullable=False),
        sa.Column('created_at',    sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email',    'users', ['email'],    unique=True)

    op.create_table(
        'pages',
        sa.Column('id',           sa.String(length=36),  nullable=False),
        sa.Column('name',         sa.String(length=512), nullable=False),
        sa.Column('hits',         sa.Integer(),          nullable=False),
        sa.Column('locked_by',    sa.String(length=36),  nullable=True),
        sa.Column('lock_expires', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at',   sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['locked_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_pages_name', 'pages', ['name'], unique=True)

    op.create_table(
        'page_versions',
        sa.Column('id',         sa.String(length=36),  nullable=False),
        sa.Column('page_id',    sa.String(length=36),  nullable=False),
        sa.Column('version',    sa.Integer(),          nullable=False),
        sa.Column('text',       sa.Text(),             nullable=False),
        sa.Column('author_id',  sa.String(length=36),  nullable=True),
        sa.Column('changelog',  sa.String(length=512), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['page_id'],   ['pages.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['author_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('page_id', 'version', name='uq_page_versions_page_ver'),
    )
    op.create_index('ix_page_versions_page_id',     'page_versions', ['page_id'],            unique=False)
    op.create_index('ix_page_versions_page_latest', 'page_versions', ['page_id', 'version'], unique=False)

    op.create_table(
        'permissions',
        sa.Column('id',            sa.String(length=36),  nullable=False),
        sa.Column('name',          sa.String(length=255), nullable=False),
        sa.Column('default_perms', sa.Integer(),          nullable=False),
        sa.Column('guest_perms',   sa.Integer(),          nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_permissions_name', 'permissions', ['name'], unique=True)

    op.create_table(
        'permission_grants',
        sa.Column('id',            sa.String(length=36), nullable=False),
        sa.Column('permission_id', sa.String(length=36), nullable=False),
        sa.Column('user_id',       sa.String(length=36), nullable=False),
        sa.Column('perms',         sa.Integer(),         nullable=False),
        sa.ForeignKeyConstraint(['permission_id'], ['permissions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'],       ['users.id'],       ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('permission_id', 'user_id', name='uq_permission_grants_perm_user'),
    )
    op.create_index('ix_permission_grants_permission_id', 'permission_grants', ['permission_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_permission_grants_permission_id', table_name='permission_grants')
    op.drop_table('permission_grants')
    op.drop_index('ix_permissions_name', table_name='permissions')
    op.drop_table('permissions')
    op.drop_index('ix_page_versions_page_latest', table_name='page_versions')
    op.drop_index('ix_page_versions_page_id',     table_name='page_versions')
    op.drop_table('page_versions')
    op.drop_index('ix_pages_name', table_name='pages')
    op.drop_table('pages')
    op.drop_index('ix_users_email',    table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
