from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class StockThresholdsIn(BaseModel):
    minimum: int = Field(0, ge=0)
    maximum: Optional[int] = Field(None, ge=0)
    reorder_point: int = Field(0, ge=0)
    reserved: int = Field(0, ge=0)
    in_transit: int = Field(0, ge=0)


class ProductCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    unit_cost: Optional[Decimal] = Field(None, gt=0)
    order_cost: Optional[Decimal] = Field(None, gt=0)
    holding_cost_annual: Optional[Decimal] = Field(None, gt=0)
    lead_time_days: Optional[int] = Field(None, ge=0, le=365)
    preferred_supplier_id: Optional[int] = None
    stock: StockThresholdsIn = Field(default_factory=StockThresholdsIn)


class ProductResponse(BaseModel):
    id: int
    sku: str
    name: str
    unit_cost: Optional[Decimal] = None
    order_cost: Optional[Decimal] = None
    holding_cost_annual: Optional[Decimal] = None
    lead_time_days: Optional[int] = None
    preferred_supplier_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    items: List[ProductResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
