"""
Movements Router — Thin Controller
"""
from datetime import datetime
from math import ceil
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from stockledger.dependencies import get_movement_ledger
from stockledger.schemas.movement import (
    BalanceResponse,
    LotBalanceResponse,
    MovementCorrection,
    MovementCreate,
    MovementListResponse,
    MovementResponse,
    MovementSummary,
)
from stockledger.services.movement_ledger import MovementLedger, MovementMetadata

router = APIRouter(prefix="/movements", tags=["Movement Ledger"])


@router.post("", response_model=MovementResponse, status_code=201)
def record_movement(
    payload: MovementCreate,
    ledger: MovementLedger = Depends(get_movement_ledger),
):
    metadata = MovementMetadata(**payload.model_dump(exclude={"product_id", "movement_type", "quantity"}))
    return ledger.append(payload.product_id, payload.movement_type, payload.quantity, metadata)


@router.get("", response_model=MovementListResponse)
def list_movements(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    product_id: Optional[int] = None,
    movement_type: Optional[str] = None,
    supplier_id: Optional[int] = None,
    user_id: Optional[int] = None,
    document_number: Optional[str] = None,
    lot_number: Optional[str] = None,
    occurred_from: Optional[datetime] = None,
    occurred_to: Optional[datetime] = None,
    include_voided: bool = True,
    ledger: MovementLedger = Depends(get_movement_ledger),
):
    items, total = ledger.list_movements(
        page=page, page_size=page_size,
        product_id=product_id, movement_type=movement_type, supplier_id=supplier_id,
        user_id=user_id, document_number=document_number, lot_number=lot_number,
        occurred_from=occurred_from, occurred_to=occurred_to, include_voided=include_voided,
    )
    return MovementListResponse(
        items=items, total=total, page=page, page_size=page_size,
        total_pages=ceil(total / page_size) if total else 0,
    )


@router.get("/summary", response_model=MovementSummary)
def movement_summary(ledger: MovementLedger = Depends(get_movement_ledger)):
    return ledger.summary()


@router.get("/recent", response_model=List[MovementResponse])
def recent_movements(
    limit: int = Query(20, ge=1, le=100),
    ledger: MovementLedger = Depends(get_movement_ledger),
):
    return ledger.recent(limit)


@router.get("/balance/{product_id}", response_model=BalanceResponse)
def product_balance(product_id: int, ledger: MovementLedger = Depends(get_movement_ledger)):
    return BalanceResponse(product_id=product_id, balance=ledger.current_balance(product_id))


@router.get("/expiring/{product_id}", response_model=List[LotBalanceResponse])
def expiring_lots(
    product_id: int,
    within_days: int = Query(30, ge=0, le=365),
    ledger: MovementLedger = Depends(get_movement_ledger),
):
    return ledger.expiring_lots(product_id, within_days)


@router.get("/{movement_id}", response_model=MovementResponse)
def get_movement(movement_id: int, ledger: MovementLedger = Depends(get_movement_ledger)):
    return ledger.get(movement_id)


@router.post("/{movement_id}/void", response_model=MovementResponse)
def void_movement(
    movement_id: int,
    payload: MovementCorrection,
    ledger: MovementLedger = Depends(get_movement_ledger),
):
    return ledger.void(movement_id, user_id=payload.user_id, reason=payload.reason)


@router.post("/{movement_id}/restore", response_model=MovementResponse)
def restore_movement(
    movement_id: int,
    payload: MovementCorrection,
    ledger: MovementLedger = Depends(get_movement_ledger),
):
    return ledger.restore(movement_id, user_id=payload.user_id, reason=payload.reason)
