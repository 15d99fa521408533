from pydantic import BaseModel
from typing import List


class CostLineResponse(BaseModel):
    ingredient_id: str
    ingredient_name: str
    qty: float
    unit: str
    unit_cost: float
    ext_cost: float

    class Config:
        from_attributes = True


class ScaledCostLineResponse(CostLineResponse):
    qty_scaled: float
    ext_cost_scaled: float


class RecipeCostResponse(BaseModel):
    recipe_id: str
    recipe_name: str
    yield_qty: float
    yield_unit: str
    total: float
    cost_per_portion: float
    allergens: List[str] = []
    factor: float
    scaled_total: float
    scaled_yield: float
    lines: List[ScaledCostLineResponse] = []
