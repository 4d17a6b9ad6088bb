"""
Stock Router — Thin Controller
"""
from math import ceil
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from stockledger.dependencies import get_stock_projection
from stockledger.schemas.stock import (
    ReconciliationResponse,
    StockHealthSummary,
    StockLevelListResponse,
    StockLevelResponse,
    StockThresholdsUpdate,
)
from stockledger.services.stock_projection import StockProjection

router = APIRouter(prefix="/stock", tags=["Stock Projection"])


def _report_view(report) -> ReconciliationResponse:
    return ReconciliationResponse(
        product_id=report.product_id,
        cached_available=report.cached_available,
        ledger_available=report.ledger_available,
        tail_balance=report.tail_balance,
        consistent=report.consistent,
    )


@router.get("", response_model=StockLevelListResponse)
def list_stock(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    status: Optional[str] = None,
    projection: StockProjection = Depends(get_stock_projection),
):
    items, total = projection.list_levels(status=status, page=page, page_size=page_size)
    return StockLevelListResponse(
        items=items, total=total, page=page, page_size=page_size,
        total_pages=ceil(total / page_size) if total else 0,
    )


@router.get("/health", response_model=StockHealthSummary)
def stock_health(projection: StockProjection = Depends(get_stock_projection)):
    summary = projection.health_summary()
    total = summary.pop("total_products")
    return StockHealthSummary(total_products=total, statuses=summary)


@router.post("/reconcile", response_model=List[ReconciliationResponse])
def reconcile_all(projection: StockProjection = Depends(get_stock_projection)):
    return [_report_view(r) for r in projection.reconcile_all()]


@router.get("/{product_id}", response_model=StockLevelResponse)
def get_stock(product_id: int, projection: StockProjection = Depends(get_stock_projection)):
    return projection.get(product_id)


@router.patch("/{product_id}/thresholds", response_model=StockLevelResponse)
def update_thresholds(
    product_id: int,
    payload: StockThresholdsUpdate,
    projection: StockProjection = Depends(get_stock_projection),
):
    return projection.update_thresholds(product_id, **payload.model_dump(exclude_unset=True))


@router.post("/{product_id}/apply-optimization", response_model=StockLevelResponse)
def apply_optimization(product_id: int, projection: StockProjection = Depends(get_stock_projection)):
    return projection.apply_optimization(product_id)


@router.post("/{product_id}/reconcile", response_model=ReconciliationResponse)
def reconcile(product_id: int, projection: StockProjection = Depends(get_stock_projection)):
    return _report_view(projection.reconcile(product_id))
