from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal

from stockledger.models.enums import MovementType


class MovementCreate(BaseModel):
    product_id: int
    movement_type: MovementType
    quantity: int = Field(..., gt=0)
    user_id: Optional[int] = None
    document_number: Optional[str] = Field(None, max_length=64)
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    supplier_id: Optional[int] = None
    lot_number: Optional[str] = Field(None, max_length=64)
    expiry_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=1000)
    occurred_at: Optional[datetime] = None


class MovementCorrection(BaseModel):
    user_id: Optional[int] = None
    reason: Optional[str] = Field(None, max_length=500)


class MovementResponse(BaseModel):
    id: int
    product_id: int
    movement_type: str
    quantity: int
    delta: int
    unit_cost: Optional[Decimal] = None
    running_balance: int
    document_number: Optional[str] = None
    supplier_id: Optional[int] = None
    user_id: Optional[int] = None
    lot_number: Optional[str] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None
    voided: bool
    reference_movement_id: Optional[int] = None
    occurred_at: datetime
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MovementListResponse(BaseModel):
    items: List[MovementResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class MovementSummary(BaseModel):
    entries: int
    exits: int
    adjustments: int
    compensating: int
    total_entered: int
    total_exited: int
    last_movement_at: Optional[datetime] = None
    most_moved_product_id: Optional[int] = None


class BalanceResponse(BaseModel):
    product_id: int
    balance: int


class LotBalanceResponse(BaseModel):
    lot_number: Optional[str] = None
    expiry_date: Optional[date] = None
    remaining: int
    first_movement_id: int
    received_at: datetime

    class Config:
        from_attributes = True
