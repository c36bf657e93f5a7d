"""initial shop, group and membership tables

Revision ID: 0001_initial_groups
Revises: 
Create Date: 2026-10-16
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_groups'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    # shops.default_group_id gets its FK after groups exists (circular reference)
    op.create_table('shops',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('slug', sa.String(length=128), nullable=False, unique=True),
        sa.Column('default_group_id', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )
    op.create_index('ix_shops_slug', 'shops', ['slug'])

    op.create_table('groups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('shop_id', sa.Integer(), sa.ForeignKey('shops.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('slug', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('shop_id', 'name', name='uq_group_shop_name'),
        sa.UniqueConstraint('shop_id', 'slug', name='uq_group_shop_slug'),
    )
    op.create_index('ix_groups_shop_id', 'groups', ['shop_id'])

    with op.batch_alter_table('shops') as batch_op:
        batch_op.create_foreign_key('fk_shops_default_group', 'groups', ['default_group_id'], ['id'], ondelete='SET NULL')

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table('user_groups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('user_id', 'group_id', name='uq_user_group')
    )

    op.create_table('user_shop_roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('shop_id', sa.Integer(), sa.ForeignKey('shops.id', ondelete='CASCADE'), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('source_group_id', sa.Integer(), sa.ForeignKey('groups.id', ondelete='SET NULL'), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('user_id', 'shop_id', name='uq_user_shop_role')
    )
    op.create_index('ix_user_shop_roles_shop_id', 'user_shop_roles', ['shop_id'])
    op.create_index('ix_user_shop_roles_source_group_id', 'user_shop_roles', ['source_group_id'])


def downgrade():
    bind = op.get_bind()
    if bind.dialect.name != 'sqlite':
        # break the shops <-> groups cycle before dropping
        op.drop_constraint('fk_shops_default_group', 'shops', type_='foreignkey')
    for tbl in ['user_shop_roles', 'user_groups', 'users', 'groups', 'shops']:
        op.drop_table(tbl)
