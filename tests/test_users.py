"""Tests for the user directory, presence filters and role administration."""

from datetime import datetime, timedelta, timezone

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import auth_headers
from community.models.enums import RoleName
from community.repositories.users import UserRepository


async def test_profile_and_missing_user(async_client: AsyncClient, make_user):
    await make_user("kate", RoleName.LIBRARIAN)

    resp = await async_client.get("/api/v1/users/kate")
    assert resp.status_code == 200
    data = resp.json()
    assert data["username"] == "kate"
    assert data["roles"] == ["librarian"]
    assert data["is_online"] is False
    assert "email" not in data

    assert (await async_client.get("/api/v1/users/nobody")).status_code == 404


async def test_search_by_username(async_client: AsyncClient, make_user):
    for name in ("anna", "hanna", "bob"):
        await make_user(name)
    resp = await async_client.get("/api/v1/users?search=ann")
    assert [u["username"] for u in resp.json()] == ["anna", "hanna"]


async def test_online_filter_uses_server_time(
    async_client: AsyncClient, db_session: AsyncSession, make_user
):
    active = await make_user("active")
    idle = await make_user("idle")
    await make_user("never")
    now = datetime.now(timezone.utc)
    repo = UserRepository(db_session)
    await repo.update_presence(active, last_activity_at=now - timedelta(seconds=30))
    await repo.update_presence(idle, last_activity_at=now - timedelta(minutes=10))

    online = (await async_client.get("/api/v1/users?status=online")).json()
    assert [u["username"] for u in online] == ["active"]
    assert online[0]["is_online"] is True

    offline = (await async_client.get("/api/v1/users?status=offline")).json()
    assert {u["username"] for u in offline} == {"idle", "never"}


async def test_authenticated_request_marks_user_online(async_client: AsyncClient, make_user):
    user = await make_user("lena")
    await async_client.get("/api/v1/tips", headers=auth_headers(user))

    online = (await async_client.get("/api/v1/users?status=online")).json()
    assert [u["username"] for u in online] == ["lena"]


async def test_only_admins_edit_roles(async_client: AsyncClient, make_user):
    admin = await make_user("root", RoleName.ADMINISTRATOR)
    moderator = await make_user("mod", RoleName.MODERATOR)
    await make_user("target")
    url = "/api/v1/users/target/roles"
    body = {"roles": ["moderator", "librarian"]}

    assert (await async_client.put(url, json=body)).status_code == 401
    assert (await async_client.put(url, json=body, headers=auth_headers(moderator))).status_code == 403

    resp = await async_client.put(url, json=body, headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json() == {"username": "target", "roles": ["librarian", "moderator"]}

    profile = (await async_client.get("/api/v1/users/target")).json()
    assert profile["roles"] == ["librarian", "moderator"]

    cleared = await async_client.put(url, json={"roles": []}, headers=auth_headers(admin))
    assert cleared.json()["roles"] == []


async def test_unknown_role_is_rejected(async_client: AsyncClient, make_user):
    admin = await make_user("root", RoleName.ADMINISTRATOR)
    await make_user("target")
    resp = await async_client.put(
        "/api/v1/users/target/roles", json={"roles": ["superuser"]}, headers=auth_headers(admin)
    )
    assert resp.status_code == 422


async def test_presence_filter_combines_with_search_and_paging(
    async_client: AsyncClient, db_session: AsyncSession, make_user
):
    now = datetime.now(timezone.utc)
    repo = UserRepository(db_session)
    for name in ("anna", "hanna", "bob"):
        user = await make_user(name)
        await repo.update_presence(user, last_activity_at=now - timedelta(seconds=10))
    await make_user("annabel")

    online = (await async_client.get("/api/v1/users?status=online&search=ann")).json()
    assert {u["username"] for u in online} == {"anna", "hanna"}

    offline = (await async_client.get("/api/v1/users?status=offline&search=ann")).json()
    assert [u["username"] for u in offline] == ["annabel"]

    first = (await async_client.get("/api/v1/users?status=online&limit=2")).json()
    rest = (await async_client.get("/api/v1/users?status=online&skip=2&limit=2")).json()
    assert len(first) == 2 and len(rest) == 1
    assert {u["username"] for u in first + rest} == {"anna", "hanna", "bob"}
