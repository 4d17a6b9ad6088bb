from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class StockLevelResponse(BaseModel):
    product_id: int
    available: int
    reserved: int
    in_transit: int
    minimum: int
    maximum: Optional[int] = None
    reorder_point: int
    last_movement_at: Optional[datetime] = None
    last_sale_at: Optional[datetime] = None
    status: str
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockLevelListResponse(BaseModel):
    items: List[StockLevelResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class StockThresholdsUpdate(BaseModel):
    minimum: Optional[int] = Field(None, ge=0)
    maximum: Optional[int] = Field(None, ge=0)
    reorder_point: Optional[int] = Field(None, ge=0)
    reserved: Optional[int] = Field(None, ge=0)
    in_transit: Optional[int] = Field(None, ge=0)


class ReconciliationResponse(BaseModel):
    product_id: int
    cached_available: int
    ledger_available: int
    tail_balance: int
    consistent: bool


class StockHealthSummary(BaseModel):
    total_products: int
    statuses: Dict[str, Dict[str, Any]]
