import pytest
from httpx import AsyncClient

from conftest import TEST_PASSWORD


def new_user_payload(department_id, stu_id="20269999", **extra):
    payload = {
        "name": "New Member",
        "stu_id": stu_id,
        "password": "Welcome123",
        "department_id": department_id,
        "status": 1,
    }
    payload.update(extra)
    return payload


@pytest.mark.asyncio
async def test_user_list_is_scoped_to_own_department(client: AsyncClient, make_department, make_user, headers):
    tech = await make_department("Technology")
    design = await make_department("Design")
    head = await make_user(tech, ["yq:user:query"])
    await make_user(tech)
    await make_user(design)
    admin = await make_user(design, ["*"])

    response = await client.get("/api/v1/users", headers=headers(head))
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert {row["department_id"] for row in data["rows"]} == {tech.id}

    # Asking for another department does not widen the scope
    response = await client.get(f"/api/v1/users?department_id={design.id}", headers=headers(head))
    assert {row["department_id"] for row in response.json()["rows"]} == {tech.id}

    response = await client.get("/api/v1/users", headers=headers(admin))
    assert response.json()["count"] == 4


@pytest.mark.asyncio
async def test_get_user_of_other_department_is_denied(client: AsyncClient, make_department, make_user, headers):
    head = await make_user(await make_department("Technology"), ["yq:user:query"])
    outsider = await make_user(await make_department("Design"))
    response = await client.get(f"/api/v1/users/{outsider.id}", headers=headers(head))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_update_and_delete_user(client: AsyncClient, make_department, make_user, headers):
    tech = await make_department("Technology")
    admin = headers(await make_user(tech, ["*"]))

    response = await client.post("/api/v1/users", json=new_user_payload(tech.id), headers=admin)
    assert response.status_code == 201
    created = response.json()
    assert created["status"] == 1

    response = await client.post("/api/v1/users", json=new_user_payload(tech.id), headers=admin)
    assert response.status_code == 409

    update = new_user_payload(tech.id, name="Renamed", status=2)
    update.pop("password")
    response = await client.put(f"/api/v1/users/{created['id']}", json=update, headers=admin)
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"

    response = await client.post(
        "/api/v1/auth/login", json={"username": "20269999", "password": "Welcome123"}
    )
    assert response.status_code == 200

    response = await client.delete(f"/api/v1/users/{created['id']}", headers=admin)
    assert response.status_code == 204
    response = await client.post(
        "/api/v1/auth/login", json={"username": "20269999", "password": "Welcome123"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_weak_password_rejected(client: AsyncClient, make_department, make_user, headers):
    tech = await make_department()
    admin = headers(await make_user(tech, ["*"]))
    response = await client.post(
        "/api/v1/users", json=new_user_payload(tech.id, password="onlyletters"), headers=admin
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_non_admin_creates_only_in_own_department(client: AsyncClient, make_department, make_user, headers):
    tech = await make_department("Technology")
    design = await make_department("Design")
    head = headers(await make_user(tech, ["yq:user:add"]))
    response = await client.post("/api/v1/users", json=new_user_payload(design.id), headers=head)
    assert response.status_code == 403
    response = await client.post("/api/v1/users", json=new_user_payload(tech.id), headers=head)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_change_own_password(client: AsyncClient, make_department, make_user, headers):
    user = await make_user(await make_department())
    response = await client.put(
        "/api/v1/users/pwd",
        json={"old_password": "not-it-123", "new_password": "Brandnew123"},
        headers=headers(user),
    )
    assert response.status_code == 400

    response = await client.put(
        "/api/v1/users/pwd",
        json={"old_password": TEST_PASSWORD, "new_password": "Brandnew123"},
        headers=headers(user),
    )
    assert response.status_code == 204
    response = await client.post(
        "/api/v1/auth/login", json={"username": user.stu_id, "password": "Brandnew123"}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_assign_roles(client: AsyncClient, make_department, make_user, make_role, headers):
    tech = await make_department()
    admin = headers(await make_user(tech, ["*"]))
    target = await make_user(tech)
    role = await make_role(["yq:workHours:statistics"])

    response = await client.put(f"/api/v1/users/{target.id}/roles", json={"role_ids": [role.id]}, headers=admin)
    assert response.status_code == 204

    response = await client.get("/api/v1/users/whoami", headers=headers(target))
    assert response.json()["permissions"] == ["yq:workHours:statistics"]

    response = await client.put(f"/api/v1/users/{target.id}/roles", json={"role_ids": [4242]}, headers=admin)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_departments(client: AsyncClient, make_department, make_user, headers):
    tech = await make_department("Technology")
    admin = headers(await make_user(tech, ["*"]))
    member = headers(await make_user(tech))

    response = await client.post("/api/v1/departments", json={"name": "Media"}, headers=admin)
    assert response.status_code == 201
    media_id = response.json()["id"]

    response = await client.post("/api/v1/departments", json={"name": "Nope"}, headers=member)
    assert response.status_code == 403

    response = await client.get("/api/v1/departments", headers=member)
    assert {row["name"] for row in response.json()["rows"]} == {"Technology", "Media"}

    # A department with members cannot be removed
    response = await client.delete(f"/api/v1/departments/{tech.id}", headers=admin)
    assert response.status_code == 409
    response = await client.delete(f"/api/v1/departments/{media_id}", headers=admin)
    assert response.status_code == 204
