from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from servit.schemas import SuccessResponse


class PriceCreate(BaseModel):
    value: float = Field(..., ge=0, allow_inf_nan=False)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    vendor_id: Optional[str] = None
    location_id: Optional[str] = None


class PriceRecordResponse(BaseModel):
    id: str
    value: Optional[float]
    currency: str
    effective_from: Optional[datetime]
    effective_to: Optional[datetime]
    is_current: bool
    vendor_id: Optional[str] = None
    location_id: Optional[str] = None

    class Config:
        from_attributes = True


class PriceCreatedResponse(SuccessResponse):
    message: str = "Price added"
    price_id: str
