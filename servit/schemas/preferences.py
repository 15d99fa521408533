from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from servit.models.user import ROLES


class RecentEntry(BaseModel):
    id: str
    name: Optional[str] = None
    viewed_at: datetime


class Preferences(BaseModel):
    role_view: Optional[str] = None
    favorites: List[str] = []
    recent: List[RecentEntry] = []
    print_quantity: int = Field(1, ge=1)

    @field_validator("role_view")
    @classmethod
    def check_role(cls, v):
        if v is not None and v not in ROLES:
            raise ValueError(f"role_view must be one of {', '.join(ROLES)}")
        return v


class PreferencesUpdate(BaseModel):
    role_view: Optional[str] = None
    favorites: Optional[List[str]] = None
    print_quantity: Optional[int] = Field(None, ge=1)

    @field_validator("role_view")
    @classmethod
    def check_role(cls, v):
        if v is not None and v not in ROLES:
            raise ValueError(f"role_view must be one of {', '.join(ROLES)}")
        return v


class RecentPush(BaseModel):
    id: str
    name: Optional[str] = None
