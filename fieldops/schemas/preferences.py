from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from fieldops.core.features import parse_module


def _modules(values: List[str]) -> List[str]:
    out: List[str] = []
    for v in values:
        name = parse_module(v).value
        if name not in out:
            out.append(name)
    return out


class QuickAddActionOut(BaseModel):
    module: str
    path: str
    label: str


class NotificationOut(BaseModel):
    title: str
    message: str
    level: str = "info"


class QuickAddOut(BaseModel):
    workspace_id: Optional[UUID] = None
    quick_add_enabled: bool
    quick_add_items: List[str]
    customized: bool
    limit: Optional[int] = None
    available: List[str]
    actions: List[QuickAddActionOut]
    warning: Optional[str] = None


class QuickAddUpdate(BaseModel):
    workspace_id: Optional[UUID] = None
    quick_add_enabled: bool = True
    quick_add_items: List[str] = Field(default_factory=list)

    @field_validator("quick_add_items")
    @classmethod
    def validate_items(cls, v: List[str]) -> List[str]:
        return _modules(v)


class QuickAddToggle(BaseModel):
    workspace_id: Optional[UUID] = None
    item: str

    @field_validator("item")
    @classmethod
    def validate_item(cls, v: str) -> str:
        return parse_module(v).value


class QuickAddToggleOut(BaseModel):
    quick_add_items: List[str]
    notification: Optional[NotificationOut] = None


class ModulePicksUpdate(BaseModel):
    enabled_modules: List[str] = Field(default_factory=list)

    @field_validator("enabled_modules")
    @classmethod
    def validate_modules(cls, v: List[str]) -> List[str]:
        return _modules(v)


class ModulePicksOut(BaseModel):
    enabled_modules: List[str]
