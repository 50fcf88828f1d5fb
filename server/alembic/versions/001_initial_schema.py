"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Create departments table
    op.create_table(
        'departments',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.String(1000), nullable=False, server_default=''),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('username', sa.String(255), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('stu_id', sa.String(64), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('college', sa.Integer, nullable=False, server_default='0'),
        sa.Column('position', sa.String(255), nullable=True),
        sa.Column('status', sa.Integer, nullable=False, server_default='0'),
        sa.Column('department_id', sa.Integer, sa.ForeignKey('departments.id'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_stu_id', 'users', ['stu_id'], unique=True)
    op.create_index('ix_users_department_id', 'users', ['department_id'])
    op.create_index('idx_users_department_status', 'users', ['department_id', 'status'])

    # Create permission catalog and roles
    op.create_table(
        'permissions',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('permission', sa.String(255), nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_permissions_permission', 'permissions', ['permission'])

    op.create_table(
        'roles',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'role_permissions',
        sa.Column('role_id', sa.Integer, sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('permission_id', sa.Integer, sa.ForeignKey('permissions.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'user_roles',
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.Integer, sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_user_roles_role_id', 'user_roles', ['role_id'])

    # Create work hour campaigns and records
    op.create_table(
        'work_hours',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('end_time', sa.DateTime, nullable=False),
        sa.Column('status', sa.Integer, nullable=False, server_default='0'),
        sa.Column('comment', sa.String(1000), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'work_hour_records',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('work_hour_id', sa.Integer, sa.ForeignKey('work_hours.id'), nullable=False),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('work_descs', sa.JSON, nullable=False),
        sa.Column('includes', sa.JSON, nullable=True),
        sa.Column('comment', sa.String(1000), nullable=True),
        sa.Column('status', sa.Integer, nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('work_hour_id', 'user_id', name='uq_work_hour_record_user'),
    )
    op.create_index('ix_work_hour_records_work_hour_id', 'work_hour_records', ['work_hour_id'])
    op.create_index('ix_work_hour_records_user_id', 'work_hour_records', ['user_id'])
    op.create_index('idx_work_hour_records_work_hour_status', 'work_hour_records', ['work_hour_id', 'status'])

    # Create audit logs table
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('actor_user_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Integer, nullable=True),
        sa.Column('metadata_json', sa.JSON, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])
    op.create_index('idx_audit_logs_actor', 'audit_logs', ['actor_user_id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('work_hour_records')
    op.drop_table('work_hours')
    op.drop_table('user_roles')
    op.drop_table('role_permissions')
    op.drop_table('roles')
    op.drop_table('permissions')
    op.drop_table('users')
    op.drop_table('departments')
