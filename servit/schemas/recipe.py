from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class RecipeLineBase(BaseModel):
    ingredient_id: str = Field(..., min_length=1)
    qty: float = Field(0, ge=0, allow_inf_nan=False)
    unit: str = ""


class RecipeLineResponse(BaseModel):
    position: int
    ingredient_id: str
    qty: float
    unit: str

    class Config:
        from_attributes = True


class RecipeBase(BaseModel):
    name: str = Field(..., min_length=1)
    yield_qty: float = Field(1, gt=0, allow_inf_nan=False)
    yield_unit: str = "portion"
    shelf_life_days: int = Field(0, ge=0)
    tools: Optional[str] = None
    method: Optional[str] = None
    image_url: Optional[str] = None
    components: List[str] = []


class RecipeCreate(RecipeBase):
    id: Optional[str] = Field(None, min_length=1, max_length=64)
    lines: List[RecipeLineBase] = []


class RecipeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    yield_qty: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    yield_unit: Optional[str] = None
    shelf_life_days: Optional[int] = Field(None, ge=0)
    tools: Optional[str] = None
    method: Optional[str] = None
    image_url: Optional[str] = None
    components: Optional[List[str]] = None
    lines: Optional[List[RecipeLineBase]] = None


class MenuItemRef(BaseModel):
    id: str
    name: str


class RecipeResponse(BaseModel):
    id: str
    name: str
    yield_qty: float
    yield_unit: str
    shelf_life_days: int
    tools: Optional[str] = None
    method: Optional[str] = None
    image_url: Optional[str] = None
    components: List[str] = []
    organization_id: str
    created_at: datetime
    updated_at: datetime
    lines: List[RecipeLineResponse] = []
    used_in_menu_items: List[MenuItemRef] = []

    class Config:
        from_attributes = True
