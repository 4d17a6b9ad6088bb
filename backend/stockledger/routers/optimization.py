"""
Reorder Optimization Router — Thin Controller
"""
from typing import List

from fastapi import APIRouter, Depends, Query

from stockledger.dependencies import get_purchase_order_generator, get_reorder_optimizer
from stockledger.schemas.optimization import OptimizationRequest, OptimizationResultView, PurchaseOrderResponse
from stockledger.services.reorder_optimizer import OptimizationParams, ReorderOptimizer, present_result

router = APIRouter(prefix="/optimization", tags=["Reorder Optimization"])


@router.post("/{product_id}", response_model=OptimizationResultView)
def optimize(
    product_id: int,
    payload: OptimizationRequest,
    optimizer: ReorderOptimizer = Depends(get_reorder_optimizer),
):
    result = optimizer.optimize(product_id, OptimizationParams(**payload.model_dump()))
    return present_result(result)


@router.get("/{product_id}/latest", response_model=OptimizationResultView)
def latest(product_id: int, optimizer: ReorderOptimizer = Depends(get_reorder_optimizer)):
    return present_result(optimizer.latest(product_id))


@router.get("/{product_id}/history", response_model=List[OptimizationResultView])
def history(
    product_id: int,
    limit: int = Query(20, ge=1, le=100),
    optimizer: ReorderOptimizer = Depends(get_reorder_optimizer),
):
    return [present_result(r) for r in optimizer.history(product_id, limit)]


@router.post("/{product_id}/purchase-order", response_model=PurchaseOrderResponse)
def request_purchase_order(
    product_id: int,
    optimizer: ReorderOptimizer = Depends(get_reorder_optimizer),
    generator=Depends(get_purchase_order_generator),
):
    return optimizer.request_purchase_order(product_id, generator)
