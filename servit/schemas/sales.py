from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime


class SaleCreate(BaseModel):
    menu_item_id: str
    qty: int = Field(1, ge=1)
    price_per_unit: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    table: Optional[str] = Field(None, max_length=32)


class SaleResponse(BaseModel):
    id: str
    server_id: str
    server_name: Optional[str]
    location_id: Optional[str]
    menu_item_id: str
    menu_item_name: Optional[str]
    type: Optional[str]
    station: Optional[str]
    table: Optional[str]
    qty: int
    price_per_unit: float
    line_total: float
    service_date: date
    created_at: datetime


class OpenTable(BaseModel):
    table: str
    subtotal: float
    lines: List[SaleResponse] = []


class TableCloseRequest(BaseModel):
    tip_percent: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class TableClosingResponse(BaseModel):
    id: str
    table: str
    service_date: date
    subtotal: float
    tip_percent: float
    tip_amount: float
    grand_total: float
    created_at: datetime
