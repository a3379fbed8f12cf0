# tests/test_tier_resolver.py
from __future__ import annotations

import uuid
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from fieldops.core import tier_resolver
from fieldops.core.features import ALL_MODULES, FREE_TIER_FEATURES, PREMIUM_ONLY_FEATURES, FeatureModule
from fieldops.core.tier_resolver import AccessDecision, AccessTier, load_access, resolve_access

from factories import create_org, create_profile


def profile(**kw):
    base = dict(
        id=uuid.uuid4(),
        approval_status="pending",
        organization_id=None,
        active_org_id=None,
        is_super_admin=False,
    )
    base.update(kw)
    return SimpleNamespace(**base)


# ---------------------------------------------------------
# Pure resolution
# ---------------------------------------------------------
def test_pending_user_without_org_is_free_tier():
    d = resolve_access(profile())
    assert d.tier is AccessTier.FREE
    assert d.has_premium_access() is False

    for name in FREE_TIER_FEATURES:
        assert d.can_access_feature(name) is True
    for name in PREMIUM_ONLY_FEATURES:
        assert d.can_access_feature(name) is False


def test_approved_user_gets_premium_without_org():
    d = resolve_access(profile(approval_status="approved"))
    assert d.tier is AccessTier.ORGANIZATION
    assert all(d.can_access_feature(m) for m in ALL_MODULES)
    assert d.can_access_feature("customers") is True


def test_org_member_gets_premium_even_when_pending():
    d = resolve_access(profile(organization_id=uuid.uuid4()))
    assert d.has_premium_access() is True
    assert d.can_access_feature(FeatureModule.INVOICING) is True


def test_super_admin_sees_everything_including_unknown_names():
    d = resolve_access(profile(is_super_admin=True))
    assert d.tier is AccessTier.SUPER_ADMIN
    assert d.can_access_feature("something_new") is True
    assert d.bypasses_usage_limits() is True


def test_unknown_feature_is_denied_for_free_tier():
    d = resolve_access(profile())
    assert d.can_access_feature("something_new") is False
    assert d.is_premium_only("something_new") is False


def test_feature_names_are_case_insensitive():
    d = resolve_access(profile())
    assert d.can_access_feature("  Work_Orders ") is True
    assert d.can_access_feature("INVOICING") is False


def test_missing_profile_is_fail_closed():
    d = resolve_access(None)
    assert d.resolved is False
    assert d.has_premium_access() is False
    assert d.can_access_feature(FeatureModule.WORK_ORDERS) is False
    assert d.bypasses_usage_limits() is False


def test_enum_approval_status_is_accepted():
    d = resolve_access(profile(approval_status=SimpleNamespace(value="APPROVED")))
    assert d.is_approved is True


def test_usage_limits_lift_only_for_approved_users_in_an_org():
    org_id = uuid.uuid4()

    assert resolve_access(profile(approval_status="approved")).bypasses_usage_limits() is False
    assert resolve_access(profile(organization_id=org_id)).bypasses_usage_limits() is False
    assert resolve_access(profile(approval_status="approved", organization_id=org_id)).bypasses_usage_limits() is True
    # active org alone counts as being inside an organization
    assert resolve_access(profile(approval_status="approved", active_org_id=org_id)).bypasses_usage_limits() is True


def test_effective_org_prefers_active_org():
    home, active = uuid.uuid4(), uuid.uuid4()
    d = resolve_access(profile(organization_id=home, active_org_id=active))
    assert d.effective_org_id == active

    d = resolve_access(profile(organization_id=home))
    assert d.effective_org_id == home


def test_feature_matrix_covers_modules_and_customers():
    matrix = resolve_access(profile()).feature_matrix()
    assert set(matrix) == {m.value for m in ALL_MODULES} | {"customers"}
    assert matrix["work_orders"] is True
    assert matrix["customers"] is False


def test_decision_is_frozen():
    d = AccessDecision(user_id=uuid.uuid4())
    with pytest.raises(Exception):
        d.is_approved = True  # type: ignore[misc]


# ---------------------------------------------------------
# Loading from the data store
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_load_access_reads_profile(db):
    org = await create_org(db)
    p = await create_profile(db, approval_status="approved", organization_id=org.id)
    await db.commit()

    d = await load_access(db, p.id)
    assert d.user_id == p.id
    assert d.is_approved is True
    assert d.has_org is True
    assert d.organization_id == org.id


@pytest.mark.asyncio
async def test_joining_an_org_takes_effect_on_next_load(db):
    p = await create_profile(db)
    await db.commit()

    before = await load_access(db, p.id)
    assert before.can_access_feature("invoicing") is False

    org = await create_org(db)
    p.organization_id = org.id
    await db.commit()

    after = await load_access(db, p.id)
    assert after.can_access_feature("invoicing") is True
    # still pending: quotas keep applying
    assert after.bypasses_usage_limits() is False


@pytest.mark.asyncio
async def test_load_access_unknown_user_is_denied(db):
    d = await load_access(db, uuid.uuid4())
    assert d.resolved is False
    assert d.can_access_feature("work_orders") is False


@pytest.mark.asyncio
async def test_load_access_without_user_is_denied(db):
    d = await load_access(db, None)
    assert d.user_id is None
    assert d.resolved is False


@pytest.mark.asyncio
async def test_load_access_store_error_is_denied(db, monkeypatch):
    async def boom(_db, _user_id):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(tier_resolver, "get_profile", boom)

    user_id = uuid.uuid4()
    d = await load_access(db, user_id)
    assert d.user_id == user_id
    assert d.resolved is False
    assert d.has_premium_access() is False


def test_active_org_alone_counts_as_org_membership():
    d = resolve_access(profile(active_org_id=uuid.uuid4()))
    assert d.has_org is True
    assert d.has_premium_access() is True
    assert d.can_access_feature("invoicing") is True
