# fieldops/core/roles.py

import enum


class OrgRole(str, enum.Enum):
    OWNER = "owner"   # creator / ultimate authority
    ADMIN = "admin"   # manages org modules and members
    STAFF = "staff"
    VIEWER = "viewer"


# Roles allowed to toggle and configure org_features
FEATURE_MANAGER_ROLES = frozenset({OrgRole.OWNER.value, OrgRole.ADMIN.value})


def normalize_role(role: str | None) -> str:
    return (role or "").strip().lower()


def can_manage_features(role: str | None) -> bool:
    return normalize_role(role) in FEATURE_MANAGER_ROLES
