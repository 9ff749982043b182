from __future__ import annotations
from datetime import datetime, timedelta, timezone
import uuid
import pytest
import pytest_asyncio

from pixelpost.security import make_admin_token

HOUR = timedelta(hours=1)

ADMIN = {"username": "curator", "password": "s3cret-pass", "name": "Head Curator", "email": "admin@pixelpost.dev"}


@pytest_asyncio.fixture
async def admin_headers(client):
    r = await client.post("/admin/setup", json=ADMIN)
    assert r.status_code == 201
    r = await client.post("/admin/login", json={"username": ADMIN["username"], "password": ADMIN["password"]})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['token']}"}


def _window(start: timedelta, end: timedelta) -> dict:
    now = datetime.now(timezone.utc)
    return {"startDate": (now + start).isoformat(), "endDate": (now + end).isoformat()}


def _payload(title="Neon Nights", start=-HOUR, end=HOUR) -> dict:
    return {"title": title, "description": "Glowing city scenes", "theme": "neon", **_window(start, end)}


@pytest.mark.asyncio
async def test_setup_only_once(client, admin_headers):
    r = await client.post("/admin/setup", json={**ADMIN, "username": "second", "email": "two@pixelpost.dev"})
    assert r.status_code == 409
    assert r.json() == {"success": False, "message": "Admin already exists. Use login instead."}


@pytest.mark.asyncio
async def test_setup_validates_payload(client):
    r = await client.post("/admin/setup", json={**ADMIN, "email": "not-an-email"})
    assert r.status_code == 400
    assert r.json()["message"].startswith("email")


@pytest.mark.asyncio
async def test_login(client, admin_headers):
    r = await client.post("/admin/login", json={"username": "curator", "password": "wrong-password"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid credentials"

    r = await client.post("/admin/login", json={"username": "curator", "password": ADMIN["password"]})
    body = r.json()
    assert body["success"] is True
    assert body["admin"]["role"] == "super-admin"
    assert body["admin"]["email"] == ADMIN["email"]
    assert "password" not in str(body["admin"])


@pytest.mark.asyncio
async def test_create_contest(client, admin_headers):
    r = await client.post("/admin/contests", json=_payload(), headers=admin_headers)
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["status"] == "active"
    assert data["entries"] == [] and data["winners"] == []

    r = await client.post("/admin/contests", json=_payload("Later", HOUR, 2 * HOUR), headers=admin_headers)
    assert r.json()["data"]["status"] == "upcoming"


@pytest.mark.asyncio
async def test_create_contest_validation(client, admin_headers):
    r = await client.post("/admin/contests", json=_payload(start=HOUR, end=HOUR), headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "End date must be after start date"

    r = await client.post("/admin/contests", json={**_payload(), "title": "   "}, headers=admin_headers)
    assert r.status_code == 400

    body = _payload()
    del body["theme"]
    r = await client.post("/admin/contests", json=body, headers=admin_headers)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_update_recomputes_status(client, admin_headers):
    cid = (await client.post("/admin/contests", json=_payload(), headers=admin_headers)).json()["data"]["id"]

    r = await client.put(f"/admin/contests/{cid}", json={"title": "Neon Nights II", **_window(-3 * HOUR, -2 * HOUR)}, headers=admin_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["title"] == "Neon Nights II"
    assert data["theme"] == "neon"
    assert data["status"] == "completed"

    r = await client.put(f"/admin/contests/{cid}", json=_window(HOUR, -HOUR), headers=admin_headers)
    assert r.status_code == 400

    r = await client.put(f"/admin/contests/{uuid.uuid4()}", json={"title": "x"}, headers=admin_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_admin_list_newest_first(client, admin_headers):
    for title in ("First", "Second", "Third"):
        await client.post("/admin/contests", json=_payload(title), headers=admin_headers)
    r = await client.get("/admin/contests", headers=admin_headers)
    assert [c["title"] for c in r.json()["data"]] == ["Third", "Second", "First"]


@pytest.mark.asyncio
async def test_delete_contest(client, admin_headers):
    cid = (await client.post("/admin/contests", json=_payload(), headers=admin_headers)).json()["data"]["id"]
    r = await client.delete(f"/admin/contests/{cid}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["message"] == "Contest deleted successfully"

    r = await client.delete(f"/admin/contests/{cid}", headers=admin_headers)
    assert r.status_code == 404
    r = await client.get(f"/admin/contests/{cid}", headers=admin_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_calculate_winners_flow(client, admin_headers, make_post, auth):
    cid = (await client.post("/admin/contests", json=_payload(), headers=admin_headers)).json()["data"]["id"]

    r = await client.post(f"/admin/contests/{cid}/calculate-winners", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot calculate winners for a contest that is not completed"

    entry_ids = {}
    for name in ("ann", "ben"):
        post = await make_post(f"auth0|{name}", f"{name} photo")
        r = await client.post(f"/contests/{cid}/submit", json={"postId": str(post.id)}, headers=auth(f"auth0|{name}", name))
        entry_ids[name] = r.json()["data"]["id"]
    await client.post(f"/contests/{cid}/vote", json={"entryId": entry_ids["ann"], "score": 6}, headers=auth("auth0|ben"))
    await client.post(f"/contests/{cid}/vote", json={"entryId": entry_ids["ben"], "score": 9}, headers=auth("auth0|ann"))

    # close the window
    r = await client.put(f"/admin/contests/{cid}", json=_window(-3 * HOUR, -timedelta(minutes=1)), headers=admin_headers)
    assert r.json()["data"]["status"] == "completed"

    r = await client.post(f"/admin/contests/{cid}/calculate-winners", headers=admin_headers)
    assert r.status_code == 200
    winners = r.json()["data"]["winners"]
    assert [(w["rank"], w["username"], w["relevancyScore"]) for w in winners] == [(1, "ben", 9), (2, "ann", 6)]
    assert winners[0]["postId"]["kind"] == "expanded"
    assert winners[0]["postId"]["name"] == "ben photo"

    r = await client.get(f"/contests/{cid}")
    assert len(r.json()["data"]["winners"]) == 2


@pytest.mark.asyncio
async def test_token_domains_are_separate(client, admin_headers, auth):
    r = await client.get("/admin/contests", headers=auth("auth0|alice", "alice"))
    assert r.status_code == 401

    r = await client.get("/contests/user/entries", headers=admin_headers)
    assert r.status_code == 401

    r = await client.get("/admin/contests")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_admin_token_for_missing_admin(client, admin_headers):
    token = make_admin_token(str(uuid.uuid4()), "ghost", "super-admin")
    r = await client.get("/admin/contests", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["message"] == "Admin not found"
