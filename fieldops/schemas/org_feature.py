from __future__ import annotations

from typing import Any, Dict
from uuid import UUID

from pydantic import BaseModel, Field


class OrgFeatureOut(BaseModel):
    org_id: UUID
    module: str
    enabled: bool
    config: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"from_attributes": True}


class OrgFeatureToggle(BaseModel):
    enabled: bool


class OrgFeatureConfigUpdate(BaseModel):
    config: Dict[str, Any] = Field(default_factory=dict)
