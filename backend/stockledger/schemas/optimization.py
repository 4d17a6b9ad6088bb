from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime


class OptimizationRequest(BaseModel):
    demand_annual: Optional[float] = Field(None, allow_inf_nan=False)
    order_cost: Optional[float] = Field(None, allow_inf_nan=False)
    holding_cost_per_unit_year: Optional[float] = Field(None, allow_inf_nan=False)
    unit_cost: Optional[float] = Field(None, allow_inf_nan=False)
    lead_time_days: Optional[float] = Field(None, allow_inf_nan=False)
    service_level: Optional[float] = Field(None, allow_inf_nan=False)
    demand_std_dev: Optional[float] = Field(None, allow_inf_nan=False)


class OptimizationResultView(BaseModel):
    id: int
    product_id: int
    created_at: Optional[datetime] = None
    eoq: int
    rop: int
    safety_stock: int
    z_factor: float
    demand_annual: float
    demand_daily: float
    orders_per_year: float
    days_between_orders: float
    ordering_cost_annual: float
    holding_cost_annual: float
    total_cost_annual: float
    parameters: Dict[str, Any]


class PurchaseOrderResponse(BaseModel):
    status: str
    product_id: int
    suggested_quantity: int = Field(..., ge=0)
    supplier_id: Optional[int] = None
