"""
Alerts Router — Thin Controller
"""
from math import ceil
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from stockledger.dependencies import get_alert_engine
from stockledger.schemas.alert import (
    AlertBatchTransitionRequest,
    AlertBatchTransitionResponse,
    AlertCreate,
    AlertCreateResponse,
    AlertEvaluationResponse,
    AlertListResponse,
    AlertResponse,
    AlertStatistics,
    AlertTransitionRequest,
    BatchFailureView,
)
from stockledger.services.alert_engine import AlertEngine, EvaluationOutcome

router = APIRouter(prefix="/alerts", tags=["Alerts"])


def _outcome_view(outcome: EvaluationOutcome) -> AlertEvaluationResponse:
    return AlertEvaluationResponse(
        product_id=outcome.product_id,
        created=outcome.created,
        escalated=outcome.escalated,
        resolved=outcome.resolved,
    )


@router.get("", response_model=AlertListResponse)
def list_alerts(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    status: Optional[str] = None,
    severity: Optional[str] = None,
    alert_type: Optional[str] = None,
    product_id: Optional[int] = None,
    assigned_user_id: Optional[int] = None,
    engine: AlertEngine = Depends(get_alert_engine),
):
    items, total = engine.list_alerts(
        page=page, page_size=page_size, status=status, severity=severity,
        alert_type=alert_type, product_id=product_id, assigned_user_id=assigned_user_id,
    )
    return AlertListResponse(
        items=items, total=total, page=page, page_size=page_size,
        total_pages=ceil(total / page_size) if total else 0,
    )


@router.get("/statistics", response_model=AlertStatistics)
def alert_statistics(engine: AlertEngine = Depends(get_alert_engine)):
    return engine.statistics()


@router.post("", response_model=AlertCreateResponse)
def create_alert(payload: AlertCreate, engine: AlertEngine = Depends(get_alert_engine)):
    alert, created = engine.create_manual(
        payload.product_id,
        payload.alert_type.value,
        payload.severity.value,
        payload.message,
        suggested_quantity=payload.suggested_quantity,
        notes=payload.notes,
    )
    return AlertCreateResponse(created=created, alert=alert)


@router.post("/evaluate", response_model=List[AlertEvaluationResponse])
def evaluate_all(engine: AlertEngine = Depends(get_alert_engine)):
    return [_outcome_view(o) for o in engine.evaluate_all()]


@router.post("/evaluate/{product_id}", response_model=AlertEvaluationResponse)
def evaluate_product(product_id: int, engine: AlertEngine = Depends(get_alert_engine)):
    return _outcome_view(engine.evaluate(product_id))


@router.post("/batch/transition", response_model=AlertBatchTransitionResponse)
def batch_transition(payload: AlertBatchTransitionRequest, engine: AlertEngine = Depends(get_alert_engine)):
    result = engine.transition_batch(
        payload.alert_ids,
        payload.status.value,
        user_id=payload.user_id,
        note=payload.note,
        action_taken=payload.action_taken,
    )
    return AlertBatchTransitionResponse(
        succeeded=result.succeeded,
        failed=[BatchFailureView(alert_id=f.alert_id, code=f.code, message=f.message) for f in result.failed],
    )


@router.get("/{alert_id}", response_model=AlertResponse)
def get_alert(alert_id: int, engine: AlertEngine = Depends(get_alert_engine)):
    return engine.get(alert_id)


@router.post("/{alert_id}/transition", response_model=AlertResponse)
def transition_alert(
    alert_id: int,
    payload: AlertTransitionRequest,
    engine: AlertEngine = Depends(get_alert_engine),
):
    return engine.transition(
        alert_id,
        payload.status.value,
        user_id=payload.user_id,
        note=payload.note,
        action_taken=payload.action_taken,
    )
