import pytest
from datetime import timedelta
from httpx import AsyncClient

from yqwork.core.security import create_access_token, decode_token

from conftest import TEST_PASSWORD


@pytest.mark.asyncio
async def test_login(client: AsyncClient, make_department, make_user):
    """Login with student id and password returns a usable token."""
    user = await make_user(await make_department())
    response = await client.post(
        "/api/v1/auth/login",
        json={"username": user.stu_id, "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert decode_token(data["access_token"])["sub"] == str(user.id)

    whoami = await client.get(
        "/api/v1/users/whoami",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert whoami.status_code == 200
    assert whoami.json()["user"]["stu_id"] == user.stu_id


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, make_department, make_user):
    user = await make_user(await make_department())
    response = await client.post(
        "/api/v1/auth/login",
        json={"username": user.stu_id, "password": "wrong-password1"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_unknown_user(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/login",
        json={"username": "nobody", "password": TEST_PASSWORD},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_missing_token_rejected(client: AsyncClient):
    response = await client.get("/api/v1/users/whoami")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_invalid_token_rejected(client: AsyncClient):
    response = await client.get(
        "/api/v1/users/whoami",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expired_token_rejected(client: AsyncClient, make_department, make_user):
    user = await make_user(await make_department())
    token = create_access_token(user.id, expires_delta=timedelta(seconds=-1))
    response = await client.get(
        "/api/v1/users/whoami",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_whoami_reports_permissions(client: AsyncClient, make_department, make_user, headers):
    user = await make_user(await make_department(), ["system", "yq", "hdwsh"])
    response = await client.get("/api/v1/users/whoami", headers=headers(user))
    assert response.status_code == 200
    data = response.json()
    assert sorted(data["permissions"]) == ["hdwsh", "system", "yq"]
    assert data["is_admin"] is True
    assert len(data["roles"]) == 1
