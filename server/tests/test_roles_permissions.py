import pytest
from httpx import AsyncClient

from yqwork.core.exceptions import Conflict, NotFound, PermissionDenied
from yqwork.services import permission_service


@pytest.mark.asyncio
async def test_user_permissions_are_union_of_roles(db, make_department, make_user, make_role):
    from yqwork.models.permission import UserRole

    user = await make_user(await make_department(), ["yq:user:query"])
    extra = await make_role(["yq:workHours:statistics"])
    db.add(UserRole(user_id=user.id, role_id=extra.id))
    await db.commit()

    permissions = await permission_service.get_user_permission(db, user.id)
    assert permissions.strings == {"yq:user:query", "yq:workHours:statistics"}


@pytest.mark.asyncio
async def test_user_without_roles_has_empty_set(db, make_department, make_user):
    user = await make_user(await make_department())
    permissions = await permission_service.get_user_permission(db, user.id)
    assert len(permissions) == 0
    assert not permissions.is_admin()


@pytest.mark.asyncio
async def test_deleted_role_stops_granting(db, make_department, make_user):
    user = await make_user(await make_department(), ["yq:user:query"])
    roles = await permission_service.get_user_roles(db, user.id)
    await permission_service.delete_role(db, roles[0].id)

    permissions = await permission_service.get_user_permission(db, user.id)
    assert not permissions.has("yq:user:query")


@pytest.mark.asyncio
async def test_deleted_permission_stops_granting(db, make_department, make_user):
    user = await make_user(await make_department(), ["yq:user:query"])
    roles = await permission_service.get_user_roles(db, user.id)
    items = await permission_service.get_role_permissions(db, [roles[0].id])
    await permission_service.delete_permission(db, items[0].id)

    permissions = await permission_service.get_user_permission(db, user.id)
    assert len(permissions) == 0


@pytest.mark.asyncio
async def test_duplicate_permission_string_conflicts(db):
    await permission_service.add_permission(db, "Query users", "yq:user:query")
    with pytest.raises(Conflict):
        await permission_service.add_permission(db, "Again", "yq:user:query")


@pytest.mark.asyncio
async def test_role_with_unknown_permission(db):
    with pytest.raises(NotFound):
        await permission_service.add_role(db, "Broken", [4242])


@pytest.mark.asyncio
async def test_update_role_replaces_permissions(db):
    first = await permission_service.add_permission(db, "A", "yq:user:query")
    second = await permission_service.add_permission(db, "B", "yq:user:edit")
    role = await permission_service.add_role(db, "Editors", [first.id])

    await permission_service.update_role(db, role.id, "Editors", [second.id])

    items = await permission_service.get_role_permissions(db, [role.id])
    assert [item.permission for item in items] == ["yq:user:edit"]


@pytest.mark.asyncio
async def test_non_admin_cannot_grant_foreign_roles(db, make_department, make_user, make_role):
    actor = await make_user(await make_department(), ["yq:user:edit"])
    foreign = await make_role(["yq:workHours:generateTable"])
    permissions = await permission_service.get_user_permission(db, actor.id)

    with pytest.raises(PermissionDenied):
        await permission_service.ensure_can_grant_roles(db, actor.id, permissions, [foreign.id])

    held = await permission_service.get_user_roles(db, actor.id)
    await permission_service.ensure_can_grant_roles(db, actor.id, permissions, [held[0].id])


# HTTP

@pytest.mark.asyncio
async def test_permission_and_role_endpoints(client: AsyncClient, make_department, make_user, headers):
    admin = headers(await make_user(await make_department(), ["*"]))

    response = await client.post(
        "/api/v1/permissions",
        json={"name": "Query users", "permission": "yq:user:query"},
        headers=admin,
    )
    assert response.status_code == 201
    permission_id = response.json()["id"]

    response = await client.post(
        "/api/v1/permissions",
        json={"name": "Duplicate", "permission": "yq:user:query"},
        headers=admin,
    )
    assert response.status_code == 409

    response = await client.post(
        "/api/v1/permissions",
        json={"name": "Blank segment", "permission": "yq::query"},
        headers=admin,
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/v1/roles",
        json={"name": "Viewer", "permission_ids": [permission_id]},
        headers=admin,
    )
    assert response.status_code == 201
    role = response.json()
    assert [p["permission"] for p in role["permissions"]] == ["yq:user:query"]

    response = await client.get("/api/v1/roles", headers=admin)
    assert response.status_code == 200
    assert "Viewer" in [r["name"] for r in response.json()]

    response = await client.delete(f"/api/v1/roles/{role['id']}", headers=admin)
    assert response.status_code == 204
    response = await client.delete(f"/api/v1/roles/{role['id']}", headers=admin)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_permission_check_endpoint(client: AsyncClient, make_department, make_user, headers):
    user = await make_user(await make_department(), ["yq:user"])

    response = await client.post(
        "/api/v1/permissions/check",
        json={"permission": "yq:user:delete"},
        headers=headers(user),
    )
    assert response.status_code == 200
    assert response.json() == {"permission": "yq:user:delete", "has_permission": True, "is_admin": False}

    response = await client.post(
        "/api/v1/permissions/check",
        json={"permission": "yq:userx"},
        headers=headers(user),
    )
    assert response.json()["has_permission"] is False


@pytest.mark.asyncio
async def test_catalog_requires_permission(client: AsyncClient, make_department, make_user, headers):
    user = await make_user(await make_department(), ["yq:user:query"])
    response = await client.get("/api/v1/permissions", headers=headers(user))
    assert response.status_code == 403
