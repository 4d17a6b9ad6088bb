"""
Stock Projection Service

Current-state view per product. The cached ``available`` figure only ever
changes through ``apply_delta``, which the ledger calls inside its own unit of
work; ``reconcile`` audits that cache against the ledger.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from math import ceil
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from stockledger.config import Settings, settings as default_settings
from stockledger.core.exceptions import (
    BusinessRuleViolationException,
    EntityNotFoundException,
    InvalidInputException,
    StockInvariantViolation,
)
from stockledger.models.enums import StockStatus
from stockledger.models.stock_level import StockLevel
from stockledger.repositories.movement_repository import MovementRepository
from stockledger.repositories.optimization_repository import OptimizationRepository
from stockledger.repositories.product_repository import ProductRepository
from stockledger.repositories.stock_level_repository import StockLevelRepository
from stockledger.utils.events import EventBus, StockIntegrityViolationEvent

logger = logging.getLogger(__name__)


def derive_stock_status(
    available: int,
    minimum: int,
    reorder_point: int,
    maximum: Optional[int] = None,
    critical_factor: float = 1.0,
) -> StockStatus:
    """First matching rule wins: depleted, critical, low, excess, normal."""
    if available == 0:
        return StockStatus.DEPLETED
    if available < minimum * critical_factor:
        return StockStatus.CRITICAL
    if available <= reorder_point:
        return StockStatus.LOW
    if maximum is not None and available > maximum:
        return StockStatus.EXCESS
    return StockStatus.NORMAL


@dataclass
class StockThresholds:
    minimum: int = 0
    maximum: Optional[int] = None
    reorder_point: int = 0
    reserved: int = 0
    in_transit: int = 0


@dataclass
class ReconciliationReport:
    product_id: int
    cached_available: int
    ledger_available: int
    tail_balance: int

    @property
    def consistent(self) -> bool:
        return self.cached_available == self.ledger_available == self.tail_balance


class StockProjection:

    def __init__(self, db: Session, bus: EventBus, settings: Optional[Settings] = None):
        self._db = db
        self._bus = bus
        self._settings = settings or default_settings
        self._repo = StockLevelRepository(db)
        self._movement_repo = MovementRepository(db)
        self._product_repo = ProductRepository(db)
        self._optimization_repo = OptimizationRepository(db)

    # ── Reads ────────────────────────────────────────────────────────────────

    def get(self, product_id: int) -> StockLevel:
        stock = self._repo.get_by_product(product_id)
        if not stock:
            raise EntityNotFoundException("StockLevel", product_id)
        return stock

    def list_levels(self, status: Optional[str] = None, page: int = 1, page_size: int = 50) -> Tuple[List[StockLevel], int]:
        return self._repo.list_paginated(page=page, page_size=page_size, status=status)

    def health_summary(self) -> dict:
        counts = self._repo.counts_by_status()
        total = sum(counts.values())
        summary = {"total_products": total}
        for status in StockStatus:
            n = counts.get(status.value, 0)
            summary[status.value] = {"count": n, "pct": round(n / total * 100, 2) if total else 0.0}
        return summary

    # ── Threshold management ─────────────────────────────────────────────────

    def register(self, product_id: int, thresholds: Optional[StockThresholds] = None) -> StockLevel:
        if not self._product_repo.get_by_id(product_id):
            raise EntityNotFoundException("Product", product_id)
        if self._repo.get_by_product(product_id):
            raise BusinessRuleViolationException(
                f"Stock level for product {product_id} already exists.", {"product_id": product_id}
            )
        thresholds = thresholds or StockThresholds()
        self._validate_thresholds(thresholds)
        stock = StockLevel(
            product_id=product_id,
            available=0,
            reserved=thresholds.reserved,
            in_transit=thresholds.in_transit,
            minimum=thresholds.minimum,
            maximum=thresholds.maximum,
            reorder_point=thresholds.reorder_point,
        )
        stock.status = self._status_for(stock).value
        return self._repo.create(stock)

    def update_thresholds(self, product_id: int, **changes) -> StockLevel:
        stock = self.get(product_id)
        merged = StockThresholds(
            minimum=changes.get("minimum", stock.minimum),
            maximum=changes["maximum"] if "maximum" in changes else stock.maximum,
            reorder_point=changes.get("reorder_point", stock.reorder_point),
            reserved=changes.get("reserved", stock.reserved),
            in_transit=changes.get("in_transit", stock.in_transit),
        )
        self._validate_thresholds(merged)
        updates = dict(vars(merged))
        updates["status"] = derive_stock_status(
            stock.available, merged.minimum, merged.reorder_point, merged.maximum,
            self._settings.CRITICAL_STOCK_FACTOR,
        ).value
        return self._repo.update(stock, updates)

    def apply_optimization(self, product_id: int) -> StockLevel:
        """Adopt the latest optimization ROP, rounded up to whole units, as the reorder point."""
        latest = self._optimization_repo.latest_for_product(product_id)
        if not latest:
            raise EntityNotFoundException("OptimizationResult", product_id)
        return self.update_thresholds(product_id, reorder_point=int(ceil(latest.rop)))

    # ── Ledger hook ──────────────────────────────────────────────────────────

    def apply_delta(
        self,
        stock: StockLevel,
        delta: int,
        movement_at: Optional[datetime] = None,
        is_sale: bool = False,
    ) -> StockLevel:
        """
        Apply a signed delta to the cached level without committing.

        ``movement_at`` is passed for business movements only; void and restore
        corrections leave the activity timestamps untouched.
        """
        new_available = stock.available + delta
        if new_available < 0:
            raise StockInvariantViolation(
                f"product {stock.product_id}: available would become {new_available}"
            )
        stock.available = new_available
        if movement_at is not None:
            stock.last_movement_at = movement_at
            if is_sale:
                stock.last_sale_at = movement_at
        stock.status = self._status_for(stock).value
        return stock

    # ── Audit ────────────────────────────────────────────────────────────────

    def reconcile(self, product_id: int) -> ReconciliationReport:
        stock = self.get(product_id)
        tail = self._movement_repo.latest_for_product(product_id)
        report = ReconciliationReport(
            product_id=product_id,
            cached_available=stock.available,
            ledger_available=self._movement_repo.sum_active_deltas(product_id),
            tail_balance=tail.running_balance if tail else 0,
        )
        if not report.consistent:
            logger.error(
                "stock_integrity_violation product_id=%s cached=%s ledger=%s tail=%s",
                product_id, report.cached_available, report.ledger_available, report.tail_balance,
            )
            self._bus.publish(StockIntegrityViolationEvent(
                product_id=product_id,
                cached_available=report.cached_available,
                ledger_available=report.ledger_available,
                tail_balance=report.tail_balance,
            ))
        return report

    def reconcile_all(self) -> List[ReconciliationReport]:
        return [self.reconcile(product_id) for product_id in self._repo.product_ids()]

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _status_for(self, stock: StockLevel) -> StockStatus:
        return derive_stock_status(
            stock.available,
            stock.minimum or 0,
            stock.reorder_point or 0,
            stock.maximum,
            self._settings.CRITICAL_STOCK_FACTOR,
        )

    @staticmethod
    def _validate_thresholds(t: StockThresholds) -> None:
        for name in ("minimum", "reorder_point", "reserved", "in_transit"):
            if getattr(t, name) < 0:
                raise InvalidInputException(f"{name} must be >= 0", field=name)
        if t.maximum is not None and t.maximum < t.minimum:
            raise InvalidInputException("maximum must be >= minimum", field="maximum")
