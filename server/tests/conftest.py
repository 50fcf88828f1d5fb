import os
import tempfile

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="yqwork-logs-"))

from datetime import datetime, timedelta
from typing import List

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from yqwork.core.database import Database
from yqwork.core.permissions import Actor
from yqwork.core.security import create_access_token, get_password_hash
from yqwork.main import create_app
from yqwork.models.department import Department
from yqwork.models.permission import Permission, Role, RolePermission, UserRole
from yqwork.models.user import User, UserStatus
from yqwork.models.work_hour import WorkHour, WorkHourStatus
from yqwork.services.permission_service import get_user_permission

TEST_PASSWORD = "Test12345"


@pytest_asyncio.fixture
async def database():
    database = Database("sqlite+aiosqlite:///:memory:")
    await database.create_all()
    yield database
    await database.dispose()


@pytest_asyncio.fixture
async def db(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def app(database):
    return create_app(database=database, configure_logging=False)


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_department(db):
    async def _make(name: str = "Technology") -> Department:
        department = Department(name=name, description=f"{name} department")
        db.add(department)
        await db.commit()
        await db.refresh(department)
        return department
    return _make


@pytest.fixture
def make_role(db):
    async def _make(permissions: List[str], name: str = None) -> Role:
        role = Role(name=name or f"role:{','.join(permissions)}")
        db.add(role)
        await db.flush()
        for string in permissions:
            entry = Permission(name=string, permission=string)
            db.add(entry)
            await db.flush()
            db.add(RolePermission(role_id=role.id, permission_id=entry.id))
        await db.commit()
        await db.refresh(role)
        return role
    return _make


@pytest.fixture
def make_user(db, make_role):
    counter = {"n": 0}

    async def _make(department: Department, permissions: List[str] = (), name: str = None) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"User {counter['n']}",
            stu_id=f"2026{counter['n']:04d}",
            password_hash=get_password_hash(TEST_PASSWORD),
            status=UserStatus.FORMAL,
            department_id=department.id,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        if permissions:
            role = await make_role(list(permissions))
            db.add(UserRole(user_id=user.id, role_id=role.id))
            await db.commit()
        return user
    return _make


@pytest.fixture
def make_work_hour(db):
    async def _make(name: str = "Spring campaign", status: WorkHourStatus = WorkHourStatus.ONGOING) -> WorkHour:
        work_hour = WorkHour(name=name, end_time=datetime.now() + timedelta(days=7), status=status)
        db.add(work_hour)
        await db.commit()
        await db.refresh(work_hour)
        return work_hour
    return _make


@pytest.fixture
def actor_for(db):
    async def _actor(user: User) -> Actor:
        permissions = await get_user_permission(db, user.id)
        return Actor(user_id=user.id, department_id=user.department_id, permissions=permissions)
    return _actor


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def headers():
    return auth_headers
