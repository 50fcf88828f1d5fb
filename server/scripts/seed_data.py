"""
Seed script to create sample departments, roles, users and a campaign.
Run after migrations with: python -m scripts.seed_data
"""
import asyncio
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sqlalchemy import select
from yqwork.core.config import settings
from yqwork.core.database import Database
from yqwork.core.security import get_password_hash
from yqwork.models.department import Department
from yqwork.models.permission import Permission, Role, RolePermission, UserRole
from yqwork.models.user import User, UserStatus
from yqwork.models.work_hour import WorkHour, WorkHourStatus

ADMIN_ROLE_NAME = "Administrator"

# Role name -> permission strings, on top of the catalog seeded by migration 002
ROLES = {
    "Member": ["yq:workHours:query"],
    "Department head": ["yq:workHours:query", "yq:workHours:checkDepartment", "yq:user:query"],
    "Finance": ["yq:workHours", "yq:user:query"],
}

USERS = [
    # (name, stu_id, password, department, role)
    ("Admin User", "admin", "Admin12345", "Office", ADMIN_ROLE_NAME),
    ("Finance User", "20260001", "Finance123", "Office", "Finance"),
    ("Tech Head", "20260002", "TechHead123", "Technology", "Department head"),
    ("Tech Member", "20260003", "Member1234", "Technology", "Member"),
    ("Design Member", "20260004", "Member1234", "Design", "Member"),
]


async def _permission_ids(db, strings):
    ids = []
    for string in strings:
        result = await db.execute(
            select(Permission).where(Permission.permission == string, Permission.deleted_at.is_(None))
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            entry = Permission(name=string, permission=string)
            db.add(entry)
            await db.flush()
        ids.append(entry.id)
    return ids


async def seed_data():
    """Seed the database with sample data."""
    database = Database(settings.async_database_url)

    async with database.session() as db:
        result = await db.execute(select(User).where(User.stu_id == "admin"))
        if result.scalar_one_or_none():
            print("Seed data already exists. Skipping seed.")
            await database.dispose()
            return

        departments = {}
        for name in ("Office", "Technology", "Design"):
            department = Department(name=name, description=f"{name} department")
            db.add(department)
            await db.flush()
            departments[name] = department

        roles = {}
        result = await db.execute(select(Role).where(Role.name == ADMIN_ROLE_NAME, Role.deleted_at.is_(None)))
        admin_role = result.scalar_one_or_none()
        if admin_role is None:
            admin_role = Role(name=ADMIN_ROLE_NAME)
            db.add(admin_role)
            await db.flush()
            for permission_id in await _permission_ids(db, ["*"]):
                db.add(RolePermission(role_id=admin_role.id, permission_id=permission_id))
        roles[ADMIN_ROLE_NAME] = admin_role

        for role_name, strings in ROLES.items():
            role = Role(name=role_name)
            db.add(role)
            await db.flush()
            for permission_id in await _permission_ids(db, strings):
                db.add(RolePermission(role_id=role.id, permission_id=permission_id))
            roles[role_name] = role

        for name, stu_id, password, department_name, role_name in USERS:
            user = User(
                name=name,
                stu_id=stu_id,
                password_hash=get_password_hash(password),
                status=UserStatus.FORMAL,
                department_id=departments[department_name].id,
            )
            db.add(user)
            await db.flush()
            db.add(UserRole(user_id=user.id, role_id=roles[role_name].id))

        db.add(WorkHour(
            name="Demo campaign",
            end_time=datetime.now() + timedelta(days=14),
            status=WorkHourStatus.ONGOING,
        ))

        await db.commit()
        print("Seed data created successfully!")
        print("\nLogin credentials (student id / password):")
        for name, stu_id, password, department_name, role_name in USERS:
            print(f"  {stu_id} / {password} ({role_name}, {department_name})")

    await database.dispose()


if __name__ == "__main__":
    asyncio.run(seed_data())
