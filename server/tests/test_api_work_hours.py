import pytest
from httpx import AsyncClient
from sqlalchemy import select

from yqwork.core.permissions import Perms
from yqwork.models.work_hour import WorkHourRecord

BASE = "/api/v1/work-hours"


@pytest.fixture
async def people(make_department, make_user):
    tech = await make_department("Technology")
    office = await make_department("Office")
    return {
        "tech": tech,
        "office": office,
        "member": await make_user(tech, [Perms.WORK_HOURS_QUERY], name="Member"),
        "head": await make_user(tech, [Perms.WORK_HOURS_QUERY, Perms.WORK_HOURS_CHECK_DEPARTMENT], name="Head"),
        "finance": await make_user(office, ["yq:workHours"], name="Finance"),
        "admin": await make_user(office, ["*"], name="Admin"),
    }


@pytest.mark.asyncio
async def test_campaign_crud(client: AsyncClient, people, headers):
    admin = headers(people["admin"])
    response = await client.post(
        BASE,
        json={"name": "Autumn", "end_time": "2026-11-30T23:59:59", "status": 1},
        headers=admin,
    )
    assert response.status_code == 201
    work_hour = response.json()
    assert work_hour["status"] == 1

    response = await client.put(
        f"{BASE}/{work_hour['id']}",
        json={"name": "Autumn term", "end_time": "2026-12-15T23:59:59", "status": 2, "comment": "extended"},
        headers=admin,
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Autumn term"

    response = await client.get(BASE, headers=headers(people["member"]))
    assert response.status_code == 200
    assert response.json()["count"] == 1

    response = await client.delete(f"{BASE}/{work_hour['id']}", headers=admin)
    assert response.status_code == 204
    response = await client.get(f"{BASE}/{work_hour['id']}", headers=admin)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_campaign_status_three_is_rejected(client: AsyncClient, people, headers):
    response = await client.post(
        BASE,
        json={"name": "Broken", "end_time": "2026-11-30T23:59:59", "status": 3},
        headers=headers(people["admin"]),
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_member_cannot_create_campaign(client: AsyncClient, people, headers):
    response = await client.post(
        BASE,
        json={"name": "Nope", "end_time": "2026-11-30T23:59:59"},
        headers=headers(people["member"]),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_full_workflow_over_http(client: AsyncClient, people, make_work_hour, headers):
    work_hour = await make_work_hour()
    records = f"{BASE}/{work_hour.id}/records"
    member, head, finance = headers(people["member"]), headers(people["head"]), headers(people["finance"])

    # Member submits
    response = await client.put(
        f"{records}/my",
        json={"work_descs": [{"desc": "tutoring", "hour": 4}]},
        headers=member,
    )
    assert response.status_code == 200
    assert response.json()["status"] == 1
    record_id = response.json()["id"]

    # Second submission while pending is refused
    response = await client.put(
        f"{records}/my",
        json={"work_descs": [{"desc": "more", "hour": 8}]},
        headers=member,
    )
    assert response.status_code == 400

    # Department head sees it and returns it without a comment: refused
    response = await client.get(f"{records}/department", headers=head)
    assert response.status_code == 200
    assert [row["id"] for row in response.json()["rows"]] == [record_id]

    member_id = people["member"].id
    response = await client.put(f"{records}/{member_id}/status", json={"status": 0}, headers=head)
    assert response.status_code == 400

    response = await client.put(f"{records}/{member_id}/status", json={"status": 2}, headers=head)
    assert response.status_code == 200
    assert response.json()["status"] == 2
    assert response.json()["user_name"] == "Member"

    # Finance view, table, accept and close
    response = await client.get(records, headers=finance)
    assert response.status_code == 200
    assert response.json()["count"] == 1

    response = await client.put(
        f"{records}/table",
        json={"data": [{"id": record_id, "includes": []}]},
        headers=finance,
    )
    assert response.status_code == 200
    assert response.json()["updated"] == 1

    response = await client.post(f"{records}/accept-all", headers=finance)
    assert response.json()["updated"] == 1
    response = await client.post(f"{records}/close-all", headers=finance)
    assert response.json()["updated"] == 1
    response = await client.post(f"{records}/close-all", headers=finance)
    assert response.json()["updated"] == 0

    response = await client.get(f"{records}/my", headers=member)
    assert response.status_code == 200
    assert response.json()["status"] == 4
    assert response.json()["work_descs"] == [{"desc": "tutoring", "hour": 4}]

    response = await client.get(f"{BASE}/{work_hour.id}/statistics", headers=finance)
    assert response.status_code == 200
    assert response.json()["rows"] == [{
        "department_id": people["tech"].id,
        "department_name": "Technology",
        "count": 1,
        "total_hours": 4,
        "included_hours": 0,
    }]


@pytest.mark.asyncio
async def test_head_cannot_use_finance_endpoints(client: AsyncClient, people, make_work_hour, headers):
    work_hour = await make_work_hour()
    response = await client.post(f"{BASE}/{work_hour.id}/records/accept-all", headers=headers(people["head"]))
    assert response.status_code == 403
    response = await client.get(f"{BASE}/{work_hour.id}/records", headers=headers(people["head"]))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unknown_record_status_code_is_rejected(client: AsyncClient, people, make_work_hour, headers):
    work_hour = await make_work_hour()
    response = await client.put(
        f"{BASE}/{work_hour.id}/records/{people['member'].id}/status",
        json={"status": 7},
        headers=headers(people["head"]),
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_missing_record_and_campaign(client: AsyncClient, people, make_work_hour, headers):
    work_hour = await make_work_hour()
    response = await client.get(f"{BASE}/{work_hour.id}/records/my", headers=headers(people["member"]))
    assert response.status_code == 404
    response = await client.put(
        f"{BASE}/9999/records/my",
        json={"work_descs": [{"desc": "x", "hour": 1}]},
        headers=headers(people["member"]),
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_own_record_requires_query_permission(client: AsyncClient, db, people, make_user, make_work_hour, headers):
    work_hour = await make_work_hour()
    outsider = headers(await make_user(people["tech"], name="No roles"))

    response = await client.put(
        f"{BASE}/{work_hour.id}/records/my",
        json={"work_descs": [{"desc": "tutoring", "hour": 4}]},
        headers=outsider,
    )
    assert response.status_code == 403
    response = await client.get(f"{BASE}/{work_hour.id}/records/my", headers=outsider)
    assert response.status_code == 403

    # Nothing was stored by the refused submission
    result = await db.execute(select(WorkHourRecord).where(WorkHourRecord.work_hour_id == work_hour.id))
    assert result.scalars().all() == []
