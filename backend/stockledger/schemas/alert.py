from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime

from stockledger.models.enums import AlertSeverity, AlertStatus, AlertType


class AlertResponse(BaseModel):
    id: int
    product_id: int
    alert_type: str
    severity: str
    status: str
    message: str
    stock_at_creation: int
    suggested_quantity: Optional[int] = None
    assigned_user_id: Optional[int] = None
    action_taken: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AlertListResponse(BaseModel):
    items: List[AlertResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class AlertCreate(BaseModel):
    product_id: int
    alert_type: AlertType
    severity: AlertSeverity = AlertSeverity.MEDIUM
    message: str = Field(..., min_length=3, max_length=1000)
    suggested_quantity: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=1000)


class AlertCreateResponse(BaseModel):
    created: bool
    alert: AlertResponse


class AlertTransitionRequest(BaseModel):
    status: AlertStatus
    user_id: Optional[int] = None
    note: Optional[str] = Field(None, max_length=1000)
    action_taken: Optional[str] = Field(None, max_length=1000)


class AlertBatchTransitionRequest(AlertTransitionRequest):
    alert_ids: List[int] = Field(..., min_length=1, max_length=500)


class BatchFailureView(BaseModel):
    alert_id: int
    code: str
    message: str


class AlertBatchTransitionResponse(BaseModel):
    succeeded: List[AlertResponse]
    failed: List[BatchFailureView]


class AlertEvaluationResponse(BaseModel):
    product_id: int
    created: List[AlertResponse]
    escalated: List[AlertResponse]
    resolved: List[AlertResponse]


class AlertStatistics(BaseModel):
    by_status: Dict[str, int]
    pending_by_severity: Dict[str, int]
    active_total: int
