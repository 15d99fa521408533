from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from servit.schemas.pricing import PriceRecordResponse
from servit.services.costing import ALLERGENS


def _check_allergens(values):
    if values is None:
        return values
    unknown = [a for a in values if a not in ALLERGENS]
    if unknown:
        raise ValueError(f"Unknown allergen(s): {', '.join(unknown)}")
    return list(dict.fromkeys(values))


class IngredientBase(BaseModel):
    name: str = Field(..., min_length=1)
    unit: str = ""
    category: Optional[str] = None
    allergens: List[str] = []

    @field_validator("allergens")
    @classmethod
    def check_allergens(cls, v):
        return _check_allergens(v)


class IngredientCreate(IngredientBase):
    id: Optional[str] = Field(None, min_length=1, max_length=64)


class IngredientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    unit: Optional[str] = None
    category: Optional[str] = None
    allergens: Optional[List[str]] = None

    @field_validator("allergens")
    @classmethod
    def check_allergens(cls, v):
        return _check_allergens(v)


class IngredientResponse(BaseModel):
    id: str
    name: str
    unit: str
    category: Optional[str] = None
    allergens: List[str] = []
    organization_id: str
    created_at: datetime
    updated_at: datetime
    current_price: Optional[PriceRecordResponse] = None

    class Config:
        from_attributes = True
