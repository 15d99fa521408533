from pydantic import BaseModel
from typing import Optional, List
from datetime import date


class BucketResponse(BaseModel):
    key: str
    sales: float
    items: int
    cogs: float

    class Config:
        from_attributes = True


class TopItemResponse(BaseModel):
    menu_item_id: str
    name: str
    station: str
    type: str
    qty: int
    sales: float
    cogs: float

    class Config:
        from_attributes = True


class SalesInsightsResponse(BaseModel):
    start: date
    end: date
    location_id: Optional[str] = None
    target_food_cost_pct: float
    total_sales: float
    total_items: int
    total_cogs: float
    food_cost_pct: float
    variance_pct: float
    tables_count: int
    avg_check: float
    by_date: List[BucketResponse] = []
    top_items: List[TopItemResponse] = []
    by_location: List[BucketResponse] = []
