from __future__ import annotations

from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel


class AccessOut(BaseModel):
    user_id: Optional[UUID] = None
    tier: str
    has_premium_access: bool
    is_approved: bool
    has_org: bool
    is_super_admin: bool
    organization_id: Optional[UUID] = None
    features: Dict[str, bool]


class FeatureAccessOut(BaseModel):
    feature: str
    allowed: bool
    premium_only: bool


class NavItemOut(BaseModel):
    module: str
    label: str
    path: str
    icon: str
    is_locked: bool

    model_config = {"from_attributes": True}


class RouteCheckOut(BaseModel):
    path: str
    enabled: bool


class ModuleGuardOut(BaseModel):
    module: str
    status: str = "ok"


class UsageItemOut(BaseModel):
    resource: str
    used: int
    limit: int
    remaining: Optional[int] = None
    percent: float
    at_limit: bool


class UsageOut(BaseModel):
    unlimited: bool
    items: List[UsageItemOut]
