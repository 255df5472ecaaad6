"""Create gym management schema

Revision ID: gym_schema_001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'gym_schema_001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'branches',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('contact_number', sa.String(length=20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('uq_branches_name_lower', 'branches', [sa.text('lower(name)')], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('username', sa.String(length=50), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('mobile', sa.String(length=20), nullable=True),
        sa.Column('role', sa.Enum('OWNER', 'ADMIN', 'COACH', name='user_role', native_enum=False), nullable=False),
        sa.Column('branch_id', sa.String(length=36), sa.ForeignKey('branches.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_branch_id', 'users', ['branch_id'])

    op.create_table(
        'members',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('random_id', sa.Integer(), nullable=False, unique=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('mobile', sa.String(length=20), nullable=False, unique=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('height', sa.Numeric(5, 2), nullable=True),
        sa.Column('weight', sa.Numeric(5, 2), nullable=True),
        sa.Column('gender', sa.Enum('MALE', 'FEMALE', 'OTHER', name='gender', native_enum=False), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('payment', sa.Numeric(10, 2), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('period', sa.String(length=50), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('coach_id', sa.String(length=36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('branch_id', sa.String(length=36), sa.ForeignKey('branches.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_members_end_date', 'members', ['end_date'])
    op.create_index('ix_members_coach_id', 'members', ['coach_id'])
    op.create_index('ix_members_branch_id', 'members', ['branch_id'])

    op.create_table(
        'training_progress',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('member_id', sa.String(length=36), sa.ForeignKey('members.id', ondelete='CASCADE'), nullable=False),
        sa.Column('coach_id', sa.String(length=36), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('session_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_training_progress_member_id', 'training_progress', ['member_id'])
    op.create_index('ix_training_progress_coach_id', 'training_progress', ['coach_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity_type', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.String(length=36), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])

    op.create_table(
        'system_settings',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('key', sa.String(length=100), nullable=False, unique=True),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('updated_by', sa.String(length=36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )


def downgrade():
    op.drop_table('system_settings')
    op.drop_index('ix_audit_logs_timestamp', table_name='audit_logs')
    op.drop_index('ix_audit_logs_action', table_name='audit_logs')
    op.drop_index('ix_audit_logs_user_id', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('ix_training_progress_coach_id', table_name='training_progress')
    op.drop_index('ix_training_progress_member_id', table_name='training_progress')
    op.drop_table('training_progress')
    op.drop_index('ix_members_branch_id', table_name='members')
    op.drop_index('ix_members_coach_id', table_name='members')
    op.drop_index('ix_members_end_date', table_name='members')
    op.drop_table('members')
    op.drop_index('ix_users_branch_id', table_name='users')
    op.drop_table('users')
    op.drop_index('uq_branches_name_lower', table_name='branches')
    op.drop_table('branches')
