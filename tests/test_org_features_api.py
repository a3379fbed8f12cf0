# tests/test_org_features_api.py
from __future__ import annotations

import pytest

from fieldops.core.features import ALL_MODULES

from factories import add_membership, auth_headers, create_org, create_profile, set_features


async def org_with_owner(db, role: str = "owner"):
    org = await create_org(db)
    owner = await create_profile(db, approval_status="approved", organization_id=org.id)
    await add_membership(db, org.id, owner.id, role=role)
    return org, owner


# ---------------------------------------------------------
# Reads
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_member_lists_flags(client, db):
    org, owner = await org_with_owner(db)
    await set_features(db, org.id, {"work_orders": True, "inventory": False})
    await db.commit()

    r = await client.get(f"/api/v1/orgs/{org.id}/features", headers=auth_headers(owner.id))
    assert r.status_code == 200, r.text
    rows = {row["module"]: row["enabled"] for row in r.json()}
    assert rows == {"work_orders": True, "inventory": False}


@pytest.mark.asyncio
async def test_outsider_cannot_read_flags(client, db):
    org, _ = await org_with_owner(db)
    outsider = await create_profile(db, approval_status="approved")
    await db.commit()

    r = await client.get(f"/api/v1/orgs/{org.id}/features", headers=auth_headers(outsider.id))
    assert r.status_code == 403, r.text
    assert r.json()["detail"]["code"] == "org_forbidden"


@pytest.mark.asyncio
async def test_unknown_org_is_404(client, db):
    p = await create_profile(db, is_super_admin=True)
    await db.commit()

    r = await client.get(
        "/api/v1/orgs/00000000-0000-0000-0000-000000000000/features",
        headers=auth_headers(p.id),
    )
    assert r.status_code == 404, r.text


# ---------------------------------------------------------
# Administration
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_owner_toggles_module_and_nav_updates_immediately(client, db):
    org, owner = await org_with_owner(db)
    await set_features(db, org.id, {"work_orders": True})
    await db.commit()
    headers = auth_headers(owner.id)

    # warm the cache
    r = await client.get("/api/v1/access/navigation", headers=headers)
    assert [i["module"] for i in r.json()] == ["work_orders"]

    r = await client.put(f"/api/v1/orgs/{org.id}/features/invoicing", json={"enabled": True}, headers=headers)
    assert r.status_code == 200, r.text
    assert {row["module"] for row in r.json() if row["enabled"]} == {"work_orders", "invoicing"}

    r = await client.get("/api/v1/access/navigation", headers=headers)
    assert [i["module"] for i in r.json()] == ["work_orders", "invoicing"]


@pytest.mark.asyncio
async def test_toggle_off_keeps_single_row(client, db):
    org, owner = await org_with_owner(db, role="admin")
    await set_features(db, org.id, {"forms": True})
    await db.commit()

    r = await client.put(f"/api/v1/orgs/{org.id}/features/forms", json={"enabled": False}, headers=auth_headers(owner.id))
    assert r.status_code == 200, r.text
    rows = [row for row in r.json() if row["module"] == "forms"]
    assert len(rows) == 1
    assert rows[0]["enabled"] is False


@pytest.mark.asyncio
async def test_staff_cannot_toggle(client, db):
    org, _ = await org_with_owner(db)
    staff = await create_profile(db, organization_id=org.id)
    await add_membership(db, org.id, staff.id, role="staff")
    await db.commit()

    r = await client.put(f"/api/v1/orgs/{org.id}/features/forms", json={"enabled": True}, headers=auth_headers(staff.id))
    assert r.status_code == 403, r.text
    assert r.json()["detail"]["code"] == "org_forbidden"


@pytest.mark.asyncio
async def test_super_admin_can_toggle_any_org(client, db):
    org, _ = await org_with_owner(db)
    admin = await create_profile(db, is_super_admin=True)
    await db.commit()

    r = await client.put(f"/api/v1/orgs/{org.id}/features/pos", json={"enabled": True}, headers=auth_headers(admin.id))
    assert r.status_code == 200, r.text


@pytest.mark.asyncio
async def test_toggle_unknown_module_is_422(client, db):
    org, owner = await org_with_owner(db)
    await db.commit()

    r = await client.put(f"/api/v1/orgs/{org.id}/features/spaceships", json={"enabled": True}, headers=auth_headers(owner.id))
    assert r.status_code == 422, r.text
    assert r.json()["detail"]["code"] == "unknown_module"


@pytest.mark.asyncio
async def test_saving_config_enables_module(client, db):
    org, owner = await org_with_owner(db)
    await set_features(db, org.id, {"work_orders": False})
    await db.commit()
    headers = auth_headers(owner.id)

    r = await client.put(
        f"/api/v1/orgs/{org.id}/features/work_orders/config",
        json={"config": {"display_name": "Jobs"}},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    [row] = r.json()
    assert row["enabled"] is True
    assert row["config"] == {"display_name": "Jobs"}

    r = await client.get("/api/v1/access/navigation", headers=headers)
    assert r.json()[0]["label"] == "Jobs"


@pytest.mark.asyncio
async def test_enable_all(client, db):
    org, owner = await org_with_owner(db)
    await set_features(db, org.id, {"forms": False})
    await db.commit()

    r = await client.post(f"/api/v1/orgs/{org.id}/features/enable-all", headers=auth_headers(owner.id))
    assert r.status_code == 200, r.text
    rows = r.json()
    assert len(rows) == len(ALL_MODULES)
    assert all(row["enabled"] for row in rows)


@pytest.mark.asyncio
async def test_refresh_picks_up_out_of_band_changes(client, db, app):
    org, owner = await org_with_owner(db)
    await set_features(db, org.id, {"reports": False})
    await db.commit()
    headers = auth_headers(owner.id)

    r = await client.get(f"/api/v1/orgs/{org.id}/features", headers=headers)
    assert r.json()[0]["enabled"] is False

    # written behind the API's back; cache still holds the old row
    await set_features(db, org.id, {"files": True})
    await db.commit()

    r = await client.get(f"/api/v1/orgs/{org.id}/features", headers=headers)
    assert {row["module"] for row in r.json()} == {"reports"}

    r = await client.post(f"/api/v1/orgs/{org.id}/features/refresh", headers=headers)
    assert r.status_code == 200, r.text
    assert {row["module"] for row in r.json()} == {"files", "reports"}
    assert app.state.feature_cache.peek(org.id) is not None
