from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime

from servit.models.menu import MENU_ITEM_TYPES
from servit.schemas.costing import RecipeCostResponse
from servit.schemas.pricing import PriceRecordResponse
from servit.schemas.recipe import MenuItemRef


def _check_type(v):
    if v is not None and v not in MENU_ITEM_TYPES:
        raise ValueError(f"type must be one of {', '.join(MENU_ITEM_TYPES)}")
    return v


class MenuItemBase(BaseModel):
    name: str = Field(..., min_length=1)
    brand: Optional[str] = None
    type: str = "Line Station"
    station: Optional[str] = None
    recipe_id: Optional[str] = None
    active: bool = True
    image_url: Optional[str] = None

    @field_validator("type")
    @classmethod
    def check_type(cls, v):
        return _check_type(v)


class MenuItemCreate(MenuItemBase):
    id: Optional[str] = Field(None, min_length=1, max_length=64)


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    brand: Optional[str] = None
    type: Optional[str] = None
    station: Optional[str] = None
    recipe_id: Optional[str] = None
    active: Optional[bool] = None
    image_url: Optional[str] = None

    @field_validator("type")
    @classmethod
    def check_type(cls, v):
        return _check_type(v)


class MenuItemResponse(BaseModel):
    id: str
    name: str
    brand: Optional[str] = None
    type: str
    station: Optional[str] = None
    recipe_id: Optional[str] = None
    active: bool
    image_url: Optional[str] = None
    organization_id: str
    created_at: datetime
    updated_at: datetime
    current_price: Optional[PriceRecordResponse] = None

    class Config:
        from_attributes = True


class AllergenMatrixRow(BaseModel):
    menu_item_id: str
    name: str
    recipe_found: bool
    flags: Dict[str, bool]


class AllergenMatrixResponse(BaseModel):
    allergens: List[str]
    rows: List[AllergenMatrixRow]


class ComponentRef(BaseModel):
    recipe_id: str
    name: str


class MenuItemSpecResponse(BaseModel):
    menu_item: MenuItemResponse
    recipe_found: bool
    shelf_life_days: Optional[int] = None
    tools: Optional[str] = None
    method: Optional[str] = None
    cost: Optional[RecipeCostResponse] = None
    components: List[ComponentRef] = []
    used_in_menu_items: List[MenuItemRef] = []
