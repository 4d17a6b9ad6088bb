"""
Movement Ledger Service

Append-only record of stock-affecting events. Every write runs under the
product's ledger lock and commits the movement row together with the stock
projection update, so the two can never disagree after a commit.

Voiding and restoring append a compensating row (REVERSAL / RESTORATION) and
flip ``voided`` on the original, which is the only field that ever changes
on an existing row.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from stockledger.core.exceptions import (
    EntityNotFoundException,
    InsufficientStockException,
    InvalidInputException,
    MovementAlreadyVoidedException,
    MovementNotVoidedException,
    StockLedgerException,
)
from stockledger.models.enums import MovementType
from stockledger.models.movement import MovementRecord
from stockledger.models.stock_level import StockLevel
from stockledger.repositories.movement_repository import MovementRepository
from stockledger.repositories.stock_level_repository import StockLevelRepository
from stockledger.services.lot_tracking import LotBalance, lots_expiring_by
from stockledger.services.stock_projection import StockProjection
from stockledger.utils.events import (
    EventBus,
    MovementRecordedEvent,
    MovementRestoredEvent,
    MovementVoidedEvent,
)
from stockledger.utils.locks import ProductLockRegistry

if TYPE_CHECKING:
    from stockledger.services.alert_engine import AlertEngine

logger = logging.getLogger(__name__)


@dataclass
class MovementMetadata:
    user_id: Optional[int] = None
    document_number: Optional[str] = None
    unit_cost: Optional[Decimal] = None
    supplier_id: Optional[int] = None
    lot_number: Optional[str] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None
    occurred_at: Optional[datetime] = None


class MovementLedger:

    def __init__(
        self,
        db: Session,
        projection: StockProjection,
        bus: EventBus,
        locks: ProductLockRegistry,
        alert_engine: Optional["AlertEngine"] = None,
    ):
        self._db = db
        self._projection = projection
        self._bus = bus
        self._locks = locks
        self._alert_engine = alert_engine
        self._repo = MovementRepository(db)
        self._stock_repo = StockLevelRepository(db)

    # ── Writes ───────────────────────────────────────────────────────────────

    def append(
        self,
        product_id: int,
        movement_type: Union[MovementType, str],
        quantity: int,
        metadata: Optional[MovementMetadata] = None,
    ) -> MovementRecord:
        mtype = self._resolve_type(movement_type)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidInputException("quantity must be a positive integer", field="quantity")
        meta = metadata or MovementMetadata()
        delta = mtype.direction * quantity
        occurred_at = meta.occurred_at or datetime.utcnow()

        with self._locks.hold(product_id):
            try:
                stock = self._lock_stock_row(product_id)
                balance = self._balance(product_id)
                if balance + delta < 0:
                    raise InsufficientStockException(product_id, available=balance, requested=quantity)

                record = self._repo.stage(MovementRecord(
                    product_id=product_id,
                    movement_type=mtype.value,
                    quantity=quantity,
                    delta=delta,
                    unit_cost=meta.unit_cost,
                    running_balance=balance + delta,
                    document_number=meta.document_number,
                    supplier_id=meta.supplier_id,
                    user_id=meta.user_id,
                    lot_number=meta.lot_number,
                    expiry_date=meta.expiry_date,
                    notes=meta.notes,
                    voided=False,
                    occurred_at=occurred_at,
                ))
                self._projection.apply_delta(
                    stock, delta, movement_at=occurred_at, is_sale=mtype is MovementType.EXIT_SALE,
                )
                self._db.commit()
            except Exception:
                self._db.rollback()
                raise
            self._db.refresh(record)

        logger.info(
            "movement_recorded id=%s product_id=%s type=%s delta=%s balance=%s",
            record.id, product_id, mtype.value, delta, record.running_balance,
        )
        self._bus.publish(MovementRecordedEvent(
            movement_id=record.id,
            product_id=product_id,
            movement_type=mtype.value,
            delta=delta,
            running_balance=record.running_balance,
            user_id=meta.user_id,
        ))
        self._after_write(product_id)
        return record

    def void(self, movement_id: int, user_id: Optional[int] = None, reason: Optional[str] = None) -> MovementRecord:
        original = self._get_business_movement(movement_id)
        with self._locks.hold(original.product_id):
            try:
                stock = self._lock_stock_row(original.product_id)
                self._db.refresh(original)
                if original.voided:
                    raise MovementAlreadyVoidedException(movement_id)
                reversal = self._compensate(stock, original, MovementType.REVERSAL, -original.delta, user_id, reason)
                original.voided = True
                self._db.commit()
            except Exception:
                self._db.rollback()
                raise
            self._db.refresh(reversal)

        logger.info("movement_voided id=%s reversal_id=%s product_id=%s", movement_id, reversal.id, original.product_id)
        self._bus.publish(MovementVoidedEvent(
            movement_id=movement_id,
            reversal_id=reversal.id,
            product_id=original.product_id,
            delta=reversal.delta,
            user_id=user_id,
            reason=reason,
        ))
        self._after_write(original.product_id)
        return reversal

    def restore(self, movement_id: int, user_id: Optional[int] = None, reason: Optional[str] = None) -> MovementRecord:
        original = self._get_business_movement(movement_id)
        with self._locks.hold(original.product_id):
            try:
                stock = self._lock_stock_row(original.product_id)
                self._db.refresh(original)
                if not original.voided:
                    raise MovementNotVoidedException(movement_id)
                restoration = self._compensate(stock, original, MovementType.RESTORATION, original.delta, user_id, reason)
                original.voided = False
                self._db.commit()
            except Exception:
                self._db.rollback()
                raise
            self._db.refresh(restoration)

        logger.info(
            "movement_restored id=%s restoration_id=%s product_id=%s",
            movement_id, restoration.id, original.product_id,
        )
        self._bus.publish(MovementRestoredEvent(
            movement_id=movement_id,
            restoration_id=restoration.id,
            product_id=original.product_id,
            delta=restoration.delta,
            user_id=user_id,
            reason=reason,
        ))
        self._after_write(original.product_id)
        return restoration

    # ── Reads ────────────────────────────────────────────────────────────────

    def current_balance(self, product_id: int) -> int:
        return self._balance(product_id)

    def get(self, movement_id: int) -> MovementRecord:
        record = self._repo.get_by_id(movement_id)
        if not record:
            raise EntityNotFoundException("Movement", movement_id)
        return record

    def list_movements(self, page: int = 1, page_size: int = 50, **filters) -> Tuple[List[MovementRecord], int]:
        return self._repo.list_filtered(page=page, page_size=page_size, **filters)

    def recent(self, limit: int = 20) -> List[MovementRecord]:
        return self._repo.recent(limit)

    def expiring_lots(self, product_id: int, within_days: int = 30) -> List[LotBalance]:
        """Lots still holding units whose expiry falls within ``within_days`` (already expired included)."""
        return lots_expiring_by(
            self._repo.active_business_movements(product_id), date.today() + timedelta(days=within_days),
        )

    def summary(self) -> dict:
        counts = {"entries": 0, "exits": 0, "adjustments": 0, "compensating": 0}
        for movement_type, n in self._repo.count_by_type():
            mtype = MovementType(movement_type)
            if mtype.is_compensating:
                counts["compensating"] += n
            elif mtype.is_adjustment:
                counts["adjustments"] += n
            elif mtype.is_entry:
                counts["entries"] += n
            else:
                counts["exits"] += n
        entered, exited = self._repo.active_totals_by_direction()
        latest = self._repo.recent(1)
        most_moved = self._repo.most_moved_product()
        return {
            **counts,
            "total_entered": entered,
            "total_exited": exited,
            "last_movement_at": latest[0].occurred_at if latest else None,
            "most_moved_product_id": most_moved[0] if most_moved else None,
        }

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _balance(self, product_id: int) -> int:
        latest = self._repo.latest_for_product(product_id)
        return latest.running_balance if latest else 0

    def _lock_stock_row(self, product_id: int) -> StockLevel:
        # the stock row lock serializes writers across processes; flags are read after it is held
        stock = self._stock_repo.get_by_product(product_id, for_update=True)
        if not stock:
            raise EntityNotFoundException("StockLevel", product_id)
        return stock

    def _compensate(
        self,
        stock: StockLevel,
        original: MovementRecord,
        movement_type: MovementType,
        delta: int,
        user_id: Optional[int],
        reason: Optional[str],
    ) -> MovementRecord:
        balance = self._balance(original.product_id)
        if balance + delta < 0:
            raise InsufficientStockException(original.product_id, available=balance, requested=abs(delta))
        record = self._repo.stage(MovementRecord(
            product_id=original.product_id,
            movement_type=movement_type.value,
            quantity=abs(delta),
            delta=delta,
            unit_cost=original.unit_cost,
            running_balance=balance + delta,
            document_number=original.document_number,
            supplier_id=original.supplier_id,
            user_id=user_id,
            lot_number=original.lot_number,
            notes=reason,
            voided=False,
            reference_movement_id=original.id,
            occurred_at=datetime.utcnow(),
        ))
        self._projection.apply_delta(stock, delta)
        return record

    def _get_business_movement(self, movement_id: int) -> MovementRecord:
        original = self.get(movement_id)
        if MovementType(original.movement_type).is_compensating:
            raise InvalidInputException(
                f"Movement {movement_id} is a compensating entry and cannot be voided or restored.",
                field="movement_id",
            )
        return original

    @staticmethod
    def _resolve_type(movement_type: Union[MovementType, str]) -> MovementType:
        try:
            mtype = MovementType(movement_type)
        except ValueError:
            raise InvalidInputException(f"Unknown movement type '{movement_type}'", field="movement_type")
        if mtype.is_compensating:
            raise InvalidInputException(
                f"Movement type '{mtype.value}' is reserved for void/restore", field="movement_type",
            )
        return mtype

    def _after_write(self, product_id: int) -> None:
        """Alert evaluation runs after the movement is committed and never changes its outcome."""
        if self._alert_engine is None:
            return
        try:
            self._alert_engine.evaluate(product_id)
        except StockLedgerException:
            self._db.rollback()
            logger.exception("alert_evaluation_failed product_id=%s", product_id)
