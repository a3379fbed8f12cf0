# tests/test_preferences_api.py
from __future__ import annotations

import uuid

import pytest

from factories import auth_headers, create_org, create_profile, set_features


async def member(db, approval_status: str = "pending", modules=("work_orders", "properties", "forms", "calendar")):
    org = await create_org(db)
    p = await create_profile(db, approval_status=approval_status, organization_id=org.id)
    await set_features(db, org.id, {m: True for m in modules})
    await db.commit()
    return p


async def free_user(db):
    """No org, no approval: quick-add capped at 2."""
    p = await create_profile(db)
    await db.commit()
    return p


# ---------------------------------------------------------
# Reads
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_defaults_before_customization(client, db):
    p = await member(db, approval_status="approved")

    r = await client.get("/api/v1/preferences/quick-add", headers=auth_headers(p.id))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["customized"] is False
    assert body["quick_add_enabled"] is True
    assert body["limit"] is None
    assert len(body["actions"]) == 4


@pytest.mark.asyncio
async def test_free_user_default_is_truncated(client, db):
    p = await free_user(db)
    headers = auth_headers(p.id)
    await client.put(
        "/api/v1/preferences/modules",
        json={"enabled_modules": ["work_orders", "properties", "forms"]},
        headers=headers,
    )

    r = await client.get("/api/v1/preferences/quick-add", headers=headers)
    body = r.json()
    assert body["limit"] == 2
    assert body["quick_add_items"] == ["work_orders", "properties"]


# ---------------------------------------------------------
# Toggle
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_free_user_third_toggle_is_rejected(client, db):
    p = await free_user(db)
    headers = auth_headers(p.id)

    for item in ("work_orders", "forms"):
        r = await client.post("/api/v1/preferences/quick-add/toggle", json={"item": item}, headers=headers)
        assert r.status_code == 200, r.text

    r = await client.post("/api/v1/preferences/quick-add/toggle", json={"item": "calendar"}, headers=headers)
    assert r.status_code == 403, r.text
    detail = r.json()["detail"]
    assert detail["code"] == "QUICK_ADD_LIMIT_EXCEEDED"
    assert detail["quick_add_items"] == ["work_orders", "forms"]
    assert detail["notification"]["title"] == "Free Tier Limit"

    # nothing persisted
    r = await client.get("/api/v1/preferences/quick-add", headers=headers)
    assert r.json()["quick_add_items"] == ["work_orders", "forms"]


@pytest.mark.asyncio
async def test_toggle_removes_selected_item(client, db):
    p = await free_user(db)
    headers = auth_headers(p.id)
    await client.put("/api/v1/preferences/quick-add", json={"quick_add_items": ["forms", "calendar"]}, headers=headers)

    r = await client.post("/api/v1/preferences/quick-add/toggle", json={"item": "forms"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json() == {"quick_add_items": ["calendar"], "notification": None}


@pytest.mark.asyncio
async def test_premium_user_has_no_cap(client, db):
    p = await member(db, approval_status="approved")
    headers = auth_headers(p.id)

    r = await client.put(
        "/api/v1/preferences/quick-add",
        json={"quick_add_items": ["work_orders", "properties", "forms", "calendar"]},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    assert len(r.json()["quick_add_items"]) == 4


# ---------------------------------------------------------
# Full replacement
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_free_user_oversized_selection_is_rejected(client, db):
    p = await free_user(db)
    headers = auth_headers(p.id)

    r = await client.put(
        "/api/v1/preferences/quick-add",
        json={"quick_add_items": ["work_orders", "forms", "calendar"]},
        headers=headers,
    )
    assert r.status_code == 403, r.text
    assert r.json()["detail"]["requested"] == 3

    r = await client.get("/api/v1/preferences/quick-add", headers=headers)
    assert r.json()["customized"] is False


@pytest.mark.asyncio
async def test_empty_selection_hides_actions_and_warns(client, db):
    p = await member(db)

    r = await client.put(
        "/api/v1/preferences/quick-add",
        json={"quick_add_enabled": True, "quick_add_items": []},
        headers=auth_headers(p.id),
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["actions"] == []
    assert body["warning"]


@pytest.mark.asyncio
async def test_disabling_quick_add_hides_actions(client, db):
    p = await member(db)

    r = await client.put(
        "/api/v1/preferences/quick-add",
        json={"quick_add_enabled": False, "quick_add_items": ["forms"]},
        headers=auth_headers(p.id),
    )
    body = r.json()
    assert body["quick_add_enabled"] is False
    assert body["actions"] == []
    assert body["warning"] is None


@pytest.mark.asyncio
async def test_unknown_item_is_422(client, db):
    p = await free_user(db)
    r = await client.post(
        "/api/v1/preferences/quick-add/toggle",
        json={"item": "spaceships"},
        headers=auth_headers(p.id),
    )
    assert r.status_code == 422, r.text


@pytest.mark.asyncio
async def test_workspaces_are_independent(client, db):
    p = await member(db, approval_status="approved")
    headers = auth_headers(p.id)
    ws = str(uuid.uuid4())

    await client.put(
        "/api/v1/preferences/quick-add",
        json={"workspace_id": ws, "quick_add_items": ["forms"]},
        headers=headers,
    )

    r = await client.get("/api/v1/preferences/quick-add", params={"workspace_id": ws}, headers=headers)
    assert r.json()["quick_add_items"] == ["forms"]

    r = await client.get("/api/v1/preferences/quick-add", headers=headers)
    assert r.json()["customized"] is False


# ---------------------------------------------------------
# Module picks
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_module_picks_round_trip(client, db):
    p = await free_user(db)
    headers = auth_headers(p.id)

    r = await client.get("/api/v1/preferences/modules", headers=headers)
    assert r.json() == {"enabled_modules": []}

    r = await client.put("/api/v1/preferences/modules", json={"enabled_modules": ["Forms", "forms", "files"]}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json() == {"enabled_modules": ["forms", "files"]}


@pytest.mark.asyncio
async def test_preferences_require_profile(client):
    r = await client.get("/api/v1/preferences/quick-add", headers=auth_headers(uuid.uuid4()))
    assert r.status_code == 404, r.text


# ---------------------------------------------------------
# Locked modules
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_free_user_cannot_save_locked_module(client, db):
    p = await free_user(db)
    headers = auth_headers(p.id)
    await client.put(
        "/api/v1/preferences/modules",
        json={"enabled_modules": ["work_orders", "invoicing"]},
        headers=headers,
    )

    r = await client.put("/api/v1/preferences/quick-add", json={"quick_add_items": ["invoicing"]}, headers=headers)
    assert r.status_code == 403, r.text
    detail = r.json()["detail"]
    assert detail["code"] == "feature_locked"
    assert detail["module"] == "invoicing"

    r = await client.post("/api/v1/preferences/quick-add/toggle", json={"item": "invoicing"}, headers=headers)
    assert r.status_code == 403, r.text
    assert r.json()["detail"]["code"] == "feature_locked"


@pytest.mark.asyncio
async def test_locked_module_gets_no_action_and_matches_navigation(client, db):
    p = await free_user(db)
    headers = auth_headers(p.id)
    await client.put(
        "/api/v1/preferences/modules",
        json={"enabled_modules": ["work_orders", "invoicing"]},
        headers=headers,
    )

    r = await client.get("/api/v1/access/navigation", headers=headers)
    locked = {i["module"] for i in r.json() if i["is_locked"]}
    assert locked == {"invoicing"}

    r = await client.get("/api/v1/preferences/quick-add", headers=headers)
    body = r.json()
    assert [a["module"] for a in body["actions"]] == ["work_orders"]
    assert body["quick_add_items"] == ["work_orders"]


# ---------------------------------------------------------
# Module picks do not customize quick-add
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_module_picks_keep_quick_add_default(client, db):
    p = await free_user(db)
    headers = auth_headers(p.id)

    r = await client.put(
        "/api/v1/preferences/modules",
        json={"enabled_modules": ["work_orders", "forms"]},
        headers=headers,
    )
    assert r.status_code == 200, r.text

    r = await client.get("/api/v1/preferences/quick-add", headers=headers)
    body = r.json()
    assert body["customized"] is False
    assert body["quick_add_items"] == ["work_orders", "forms"]
    assert [a["module"] for a in body["actions"]] == ["work_orders", "forms"]
    assert body["warning"] is None


@pytest.mark.asyncio
async def test_toggle_after_module_picks_starts_from_default(client, db):
    p = await free_user(db)
    headers = auth_headers(p.id)
    await client.put("/api/v1/preferences/modules", json={"enabled_modules": ["work_orders", "forms"]}, headers=headers)

    r = await client.post("/api/v1/preferences/quick-add/toggle", json={"item": "forms"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["quick_add_items"] == ["work_orders"]

    r = await client.get("/api/v1/preferences/quick-add", headers=headers)
    assert r.json()["customized"] is True
