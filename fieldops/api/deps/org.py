import uuid

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.api.deps.auth import get_current_profile
from fieldops.core.roles import can_manage_features, normalize_role
from fieldops.crud.org_membership import get_org_membership
from fieldops.db.session import get_db
from fieldops.models.organization import Organization
from fieldops.models.profile import Profile


async def get_org(
    org_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Organization:
    org = await db.get(Organization, org_id)
    if not org:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found",
        )
    return org


async def get_readable_org(
    org: Organization = Depends(get_org),
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
) -> Organization:
    """
    Org feature flags are visible to members of the org and to super admins.
    """
    if profile.is_super_admin:
        return org
    if org.id in {profile.organization_id, profile.active_org_id}:
        return org
    if await get_org_membership(db, org.id, profile.id) is not None:
        return org

    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"code": "org_forbidden", "message": "You are not a member of this organization."},
    )


async def get_feature_manager_org(
    org: Organization = Depends(get_org),
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
) -> Organization:
    """
    Toggling modules: super admins anywhere, org owners/admins in their org.
    """
    if profile.is_super_admin:
        return org

    membership = await get_org_membership(db, org.id, profile.id)
    role = normalize_role(membership.role if membership else None)
    if not can_manage_features(role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "code": "org_forbidden",
                "message": "Only organization owners and admins can manage features.",
                "role": role or None,
            },
        )
    return org
