"""Initial schema for the maintenance tracker

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Reference tables
    op.create_table(
        'branches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.PrimaryKeyConstraint('id', name='pk_branches')
    )
    op.create_index('ix_branches_id', 'branches', ['id'], unique=False)

    op.create_table(
        'asset_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.PrimaryKeyConstraint('id', name='pk_asset_types'),
        sa.UniqueConstraint('name', name='uq_asset_types_name')
    )
    op.create_index('ix_asset_types_id', 'asset_types', ['id'], unique=False)

    op.create_table(
        'maintenance_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_maintenance_types'),
        sa.UniqueConstraint('name', name='uq_maintenance_types_name')
    )
    op.create_index('ix_maintenance_types_id', 'maintenance_types', ['id'], unique=False)

    # Users, optionally pinned to a branch
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='OPERATOR'),
        sa.Column('branch_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id'], name='fk_users_branch_id_branches'),
        sa.PrimaryKeyConstraint('id', name='pk_users')
    )
    op.create_index('ix_users_id', 'users', ['id'], unique=False)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'assets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('asset_code', sa.String(100), nullable=False),
        sa.Column('asset_type_id', sa.Integer(), nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('state', sa.String(20), nullable=False, server_default='AVAILABLE'),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['asset_type_id'], ['asset_types.id'], name='fk_assets_asset_type_id_asset_types'),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id'], name='fk_assets_branch_id_branches'),
        sa.PrimaryKeyConstraint('id', name='pk_assets')
    )
    op.create_index('ix_assets_id', 'assets', ['id'], unique=False)
    op.create_index('ix_assets_asset_code', 'assets', ['asset_code'], unique=True)
    op.create_index('ix_assets_asset_type_id', 'assets', ['asset_type_id'], unique=False)
    op.create_index('ix_assets_branch_id', 'assets', ['branch_id'], unique=False)
    op.create_index('ix_assets_state', 'assets', ['state'], unique=False)

    op.create_table(
        'maintenance_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('asset_id', sa.Integer(), nullable=False),
        sa.Column('maintenance_type_id', sa.Integer(), nullable=False),
        sa.Column('performed_by_id', sa.Integer(), nullable=False),
        sa.Column('date_opened', sa.Date(), nullable=False),
        sa.Column('date_closed', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_final', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], name='fk_maintenance_events_asset_id_assets'),
        sa.ForeignKeyConstraint(['maintenance_type_id'], ['maintenance_types.id'], name='fk_maintenance_events_maintenance_type_id_maintenance_types'),
        sa.ForeignKeyConstraint(['performed_by_id'], ['users.id'], name='fk_maintenance_events_performed_by_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_maintenance_events')
    )
    op.create_index('ix_maintenance_events_id', 'maintenance_events', ['id'], unique=False)
    op.create_index('ix_maintenance_events_asset_id', 'maintenance_events', ['asset_id'], unique=False)
    op.create_index('ix_maintenance_events_maintenance_type_id', 'maintenance_events', ['maintenance_type_id'], unique=False)
    op.create_index('ix_maintenance_events_date_opened', 'maintenance_events', ['date_opened'], unique=False)
    op.create_index('ix_maintenance_events_asset_closed', 'maintenance_events', ['asset_id', 'date_closed'], unique=False)
    # At most one open event per asset
    op.create_index(
        'uq_maintenance_events_open_asset',
        'maintenance_events',
        ['asset_id'],
        unique=True,
        postgresql_where=sa.text('date_closed IS NULL'),
    )


def downgrade() -> None:
    op.drop_index('uq_maintenance_events_open_asset', table_name='maintenance_events')
    op.drop_index('ix_maintenance_events_asset_closed', table_name='maintenance_events')
    op.drop_index('ix_maintenance_events_date_opened', table_name='maintenance_events')
    op.drop_index('ix_maintenance_events_maintenance_type_id', table_name='maintenance_events')
    op.drop_index('ix_maintenance_events_asset_id', table_name='maintenance_events')
    op.drop_index('ix_maintenance_events_id', table_name='maintenance_events')
    op.drop_table('maintenance_events')

    op.drop_index('ix_assets_state', table_name='assets')
    op.drop_index('ix_assets_branch_id', table_name='assets')
    op.drop_index('ix_assets_asset_type_id', table_name='assets')
    op.drop_index('ix_assets_asset_code', table_name='assets')
    op.drop_index('ix_assets_id', table_name='assets')
    op.drop_table('assets')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')

    op.drop_index('ix_maintenance_types_id', table_name='maintenance_types')
    op.drop_table('maintenance_types')
    op.drop_index('ix_asset_types_id', table_name='asset_types')
    op.drop_table('asset_types')
    op.drop_index('ix_branches_id', table_name='branches')
    op.drop_table('branches')
