"""seed_default_permissions

Revision ID: 002_seed_permissions
Revises: 001
Create Date: 2026-10-01 00:10:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002_seed_permissions'
down_revision = '001'
branch_labels = None
depends_on = None

ADMIN_ROLE_NAME = 'Administrator'

DEFAULT_PERMISSIONS = [
    ('All permissions', '*'),
    ('Query permissions', 'system:permission:query'),
    ('Add permissions', 'system:permission:add'),
    ('Edit permissions', 'system:permission:edit'),
    ('Delete permissions', 'system:permission:delete'),
    ('Query roles', 'system:role:query'),
    ('Add roles', 'system:role:add'),
    ('Edit roles', 'system:role:edit'),
    ('Delete roles', 'system:role:delete'),
    ('Query users', 'yq:user:query'),
    ('Add users', 'yq:user:add'),
    ('Edit users', 'yq:user:edit'),
    ('Delete users', 'yq:user:delete'),
    ('Add departments', 'yq:department:add'),
    ('Edit departments', 'yq:department:edit'),
    ('Delete departments', 'yq:department:delete'),
    ('Query work hours', 'yq:workHours:query'),
    ('Add work hours', 'yq:workHours:add'),
    ('Edit work hours', 'yq:workHours:edit'),
    ('Delete work hours', 'yq:workHours:delete'),
    ('Review department work hours', 'yq:workHours:checkDepartment'),
    ('Generate work hour table', 'yq:workHours:generateTable'),
    ('Work hour statistics', 'yq:workHours:statistics'),
]

permissions_table = sa.table(
    'permissions',
    sa.column('name', sa.String),
    sa.column('permission', sa.String),
)

roles_table = sa.table(
    'roles',
    sa.column('name', sa.String),
)


def upgrade() -> None:
    op.bulk_insert(
        permissions_table,
        [{'name': name, 'permission': permission} for name, permission in DEFAULT_PERMISSIONS],
    )
    op.bulk_insert(roles_table, [{'name': ADMIN_ROLE_NAME}])

    # The administrator role holds the wildcard only
    op.execute(f"""
        INSERT INTO role_permissions (role_id, permission_id)
        SELECT r.id, p.id
        FROM roles r, permissions p
        WHERE r.name = '{ADMIN_ROLE_NAME}' AND p.permission = '*'
    """)


def downgrade() -> None:
    op.execute(f"""
        DELETE FROM role_permissions
        WHERE role_id IN (SELECT id FROM roles WHERE name = '{ADMIN_ROLE_NAME}')
    """)
    op.execute(f"DELETE FROM roles WHERE name = '{ADMIN_ROLE_NAME}'")
    permission_list = ", ".join(f"'{permission}'" for _, permission in DEFAULT_PERMISSIONS)
    op.execute(f"DELETE FROM permissions WHERE permission IN ({permission_list})")
