"""
Alert Engine

Evaluates a product's stock level and lot data against business thresholds
and drives the alert lifecycle:

    PENDING -> IN_PROGRESS -> RESOLVED
    PENDING -> IGNORED
    PENDING -> ESCALATED -> IN_PROGRESS

At most one PENDING alert exists per (product, alert type). Evaluation holds
the product's alert lock so two concurrent evaluations cannot both open one;
the partial unique index on ``inventory_alerts`` backs that up at the database.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from math import ceil
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockledger.config import Settings, settings as default_settings
from stockledger.core.exceptions import (
    DuplicateAlertException,
    EntityNotFoundException,
    InvalidInputException,
    InvalidStateTransitionException,
    StockLedgerException,
)
from stockledger.models.alert import InventoryAlert
from stockledger.models.enums import AlertSeverity, AlertStatus, AlertType
from stockledger.models.stock_level import StockLevel
from stockledger.repositories.alert_repository import AlertRepository
from stockledger.repositories.movement_repository import MovementRepository
from stockledger.repositories.optimization_repository import OptimizationRepository
from stockledger.repositories.stock_level_repository import StockLevelRepository
from stockledger.services.lot_tracking import LotBalance, lots_expiring_by
from stockledger.utils.events import AlertOpenedEvent, AlertStatusChangedEvent, EventBus
from stockledger.utils.locks import ProductLockRegistry

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[AlertStatus, Set[AlertStatus]] = {
    AlertStatus.PENDING: {AlertStatus.IN_PROGRESS, AlertStatus.IGNORED, AlertStatus.ESCALATED},
    AlertStatus.IN_PROGRESS: {AlertStatus.RESOLVED},
    AlertStatus.ESCALATED: {AlertStatus.IN_PROGRESS},
    AlertStatus.RESOLVED: set(),
    AlertStatus.IGNORED: set(),
}

SHORTAGE_TYPES = (AlertType.CRITICAL, AlertType.LOW_STOCK, AlertType.REORDER_POINT)

# Types whose condition evaluate() can both raise and clear
EVALUATED_TYPES = SHORTAGE_TYPES + (
    AlertType.EXCESS,
    AlertType.OBSOLETE,
    AlertType.EXPIRY_NEAR,
    AlertType.EXPIRY_PASSED,
)

AUTO_RESOLVE_ACTION = "Condition cleared on re-evaluation"


@dataclass
class AlertCondition:
    alert_type: AlertType
    severity: AlertSeverity
    message: str
    suggested_quantity: Optional[int] = None


@dataclass
class EvaluationOutcome:
    product_id: int
    created: List[InventoryAlert] = field(default_factory=list)
    escalated: List[InventoryAlert] = field(default_factory=list)
    resolved: List[InventoryAlert] = field(default_factory=list)


@dataclass
class BatchFailure:
    alert_id: int
    code: str
    message: str


@dataclass
class BatchTransitionResult:
    succeeded: List[InventoryAlert] = field(default_factory=list)
    failed: List[BatchFailure] = field(default_factory=list)


class AlertEngine:

    def __init__(
        self,
        db: Session,
        bus: EventBus,
        locks: ProductLockRegistry,
        settings: Optional[Settings] = None,
    ):
        self._db = db
        self._bus = bus
        self._locks = locks
        self._settings = settings or default_settings
        self._repo = AlertRepository(db)
        self._stock_repo = StockLevelRepository(db)
        self._movement_repo = MovementRepository(db)
        self._optimization_repo = OptimizationRepository(db)

    # ── Evaluation ───────────────────────────────────────────────────────────

    def evaluate(self, product_id: int) -> EvaluationOutcome:
        outcome = EvaluationOutcome(product_id=product_id)
        with self._locks.hold(product_id, scope="alerts"):
            stock = self._stock_repo.get_by_product(product_id)
            if not stock:
                raise EntityNotFoundException("StockLevel", product_id)

            conditions = self.detect_conditions(stock)
            for condition in conditions:
                alert, created = self._open_or_escalate(stock, condition)
                if created:
                    outcome.created.append(alert)
                elif alert is not None:
                    outcome.escalated.append(alert)

            if self._settings.ALERT_AUTO_RESOLVE:
                matched = {c.alert_type.value for c in conditions}
                for alert in self._repo.list_active_for_product(product_id):
                    if alert.alert_type in matched or AlertType(alert.alert_type) not in EVALUATED_TYPES:
                        continue
                    outcome.resolved.append(self._auto_resolve(alert))

        if outcome.created or outcome.escalated or outcome.resolved:
            logger.info(
                "alerts_evaluated product_id=%s created=%s escalated=%s resolved=%s",
                product_id, len(outcome.created), len(outcome.escalated), len(outcome.resolved),
            )
        return outcome

    def evaluate_all(self) -> List[EvaluationOutcome]:
        return [self.evaluate(product_id) for product_id in self._stock_repo.product_ids()]

    def detect_conditions(self, stock: StockLevel, today: Optional[date] = None) -> List[AlertCondition]:
        """Pure read of which alert conditions currently hold for ``stock``."""
        today = today or date.today()
        conditions: List[AlertCondition] = []

        shortage = self._shortage_condition(stock)
        if shortage:
            conditions.append(shortage)

        if stock.maximum is not None and stock.available > stock.maximum:
            conditions.append(AlertCondition(
                AlertType.EXCESS,
                AlertSeverity.MEDIUM,
                f"Stock {stock.available} exceeds maximum {stock.maximum}.",
            ))

        if stock.available > 0:
            reference = stock.last_sale_at or stock.last_movement_at
            if reference is not None:
                idle_days = (datetime.combine(today, datetime.min.time()) - reference).days
                if idle_days >= self._settings.OBSOLETE_AFTER_DAYS:
                    conditions.append(AlertCondition(
                        AlertType.OBSOLETE,
                        AlertSeverity.LOW,
                        f"No sales for {idle_days} days with {stock.available} units on hand.",
                    ))

            horizon = today + timedelta(days=self._settings.EXPIRY_WARNING_DAYS)
            lots = self._lots_on_hand_expiring_by(stock.product_id, horizon)
            expired = [lot for lot in lots if lot.expiry_date < today]
            near = [lot for lot in lots if lot.expiry_date >= today]
            if expired:
                conditions.append(AlertCondition(
                    AlertType.EXPIRY_PASSED,
                    AlertSeverity.HIGH,
                    f"Expired lots on hand: {self._describe_lots(expired)}.",
                ))
            if near:
                conditions.append(AlertCondition(
                    AlertType.EXPIRY_NEAR,
                    AlertSeverity.MEDIUM,
                    f"Lots expiring within {self._settings.EXPIRY_WARNING_DAYS} days: {self._describe_lots(near)}.",
                ))
        return conditions

    # ── Manual alerts ────────────────────────────────────────────────────────

    def create_manual(
        self,
        product_id: int,
        alert_type: str,
        severity: str,
        message: str,
        suggested_quantity: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Tuple[InventoryAlert, bool]:
        """Returns ``(alert, created)``; an existing active alert of the type is returned as-is."""
        atype = self._parse(AlertType, alert_type, "alert_type")
        aseverity = self._parse(AlertSeverity, severity, "severity")
        with self._locks.hold(product_id, scope="alerts"):
            stock = self._stock_repo.get_by_product(product_id)
            if not stock:
                raise EntityNotFoundException("StockLevel", product_id)
            try:
                alert = self._insert(stock, AlertCondition(atype, aseverity, message, suggested_quantity), notes)
            except DuplicateAlertException as dup:
                return self._repo.get_by_id(dup.existing_id), False
        return alert, True

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def transition(
        self,
        alert_id: int,
        new_status: str,
        user_id: Optional[int] = None,
        note: Optional[str] = None,
        action_taken: Optional[str] = None,
    ) -> InventoryAlert:
        target = self._parse(AlertStatus, new_status, "status")
        alert = self.get(alert_id)
        current = AlertStatus(alert.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStateTransitionException("InventoryAlert", current.value, target.value)
        if target is AlertStatus.RESOLVED and not (action_taken and action_taken.strip()):
            raise InvalidInputException("action_taken is required to resolve an alert", field="action_taken")

        updates = {"status": target.value}
        if target is AlertStatus.IN_PROGRESS and user_id is not None:
            updates["assigned_user_id"] = user_id
        if target in (AlertStatus.RESOLVED, AlertStatus.IGNORED):
            updates["resolved_at"] = datetime.utcnow()
        if action_taken:
            updates["action_taken"] = action_taken.strip()
        if note:
            updates["notes"] = f"{alert.notes}\n{note}" if alert.notes else note

        alert = self._repo.update(alert, updates)
        self._bus.publish(AlertStatusChangedEvent(
            alert_id=alert.id,
            product_id=alert.product_id,
            old_status=current.value,
            new_status=target.value,
            user_id=user_id,
        ))
        return alert

    def transition_batch(
        self,
        alert_ids: List[int],
        new_status: str,
        user_id: Optional[int] = None,
        note: Optional[str] = None,
        action_taken: Optional[str] = None,
    ) -> BatchTransitionResult:
        result = BatchTransitionResult()
        for alert_id in alert_ids:
            try:
                result.succeeded.append(
                    self.transition(alert_id, new_status, user_id=user_id, note=note, action_taken=action_taken)
                )
            except StockLedgerException as exc:
                self._db.rollback()
                result.failed.append(BatchFailure(alert_id=alert_id, code=exc.code, message=exc.message))
        return result

    # ── Reads ────────────────────────────────────────────────────────────────

    def get(self, alert_id: int) -> InventoryAlert:
        alert = self._repo.get_by_id(alert_id)
        if not alert:
            raise EntityNotFoundException("InventoryAlert", alert_id)
        return alert

    def list_alerts(self, page: int = 1, page_size: int = 50, **filters) -> Tuple[List[InventoryAlert], int]:
        return self._repo.list_filtered(page=page, page_size=page_size, **filters)

    def statistics(self) -> dict:
        by_status = self._repo.count_by_status()
        pending = self._repo.count_pending_by_severity()
        return {
            "by_status": {s.value: by_status.get(s.value, 0) for s in AlertStatus},
            "pending_by_severity": {s.value: pending.get(s.value, 0) for s in AlertSeverity},
            "active_total": sum(by_status.get(s.value, 0) for s in AlertStatus.active()),
        }

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _shortage_condition(self, stock: StockLevel) -> Optional[AlertCondition]:
        available = stock.available
        minimum = stock.minimum or 0
        rop = stock.reorder_point or 0
        suggested = self._suggested_quantity(stock)

        if available == 0:
            return AlertCondition(AlertType.CRITICAL, AlertSeverity.CRITICAL, "Stock depleted.", suggested)
        if available < minimum * self._settings.CRITICAL_STOCK_FACTOR:
            return AlertCondition(
                AlertType.LOW_STOCK, AlertSeverity.HIGH,
                f"Stock {available} is below minimum {minimum}.", suggested,
            )
        if rop > 0 and available <= rop:
            return AlertCondition(
                AlertType.REORDER_POINT, AlertSeverity.MEDIUM,
                f"Stock {available} reached reorder point {rop}.", suggested,
            )
        if rop > 0 and available <= rop * self._settings.REORDER_WARNING_FACTOR:
            return AlertCondition(
                AlertType.REORDER_POINT, AlertSeverity.LOW,
                f"Stock {available} is approaching reorder point {rop}.", suggested,
            )
        return None

    def _suggested_quantity(self, stock: StockLevel) -> Optional[int]:
        if stock.maximum is not None:
            return max(0, stock.maximum - stock.available)
        latest = self._optimization_repo.latest_for_product(stock.product_id)
        if latest is not None:
            return int(ceil(latest.eoq))
        return None

    def _open_or_escalate(
        self, stock: StockLevel, condition: AlertCondition
    ) -> Tuple[Optional[InventoryAlert], bool]:
        try:
            return self._insert(stock, condition), True
        except DuplicateAlertException as dup:
            existing = self._repo.get_by_id(dup.existing_id) if dup.existing_id else None
        if existing is None or condition.severity.rank <= AlertSeverity(existing.severity).rank:
            return None, False
        escalated = self._repo.update(existing, {
            "severity": condition.severity.value,
            "message": condition.message,
            "suggested_quantity": condition.suggested_quantity,
        })
        logger.info(
            "alert_escalated id=%s product_id=%s type=%s severity=%s",
            escalated.id, escalated.product_id, escalated.alert_type, escalated.severity,
        )
        return escalated, False

    def _insert(self, stock: StockLevel, condition: AlertCondition, notes: Optional[str] = None) -> InventoryAlert:
        existing = self._repo.get_active_by_product_and_type(stock.product_id, condition.alert_type.value)
        if existing is not None:
            raise DuplicateAlertException(stock.product_id, condition.alert_type.value, existing.id)
        try:
            alert = self._repo.create(InventoryAlert(
                product_id=stock.product_id,
                alert_type=condition.alert_type.value,
                severity=condition.severity.value,
                status=AlertStatus.PENDING.value,
                message=condition.message,
                stock_at_creation=stock.available,
                suggested_quantity=condition.suggested_quantity,
                notes=notes,
            ))
        except IntegrityError:
            # Another writer opened the same alert first
            self._db.rollback()
            existing = self._repo.get_active_by_product_and_type(stock.product_id, condition.alert_type.value)
            raise DuplicateAlertException(
                stock.product_id, condition.alert_type.value, existing.id if existing else None,
            )
        logger.info(
            "alert_opened id=%s product_id=%s type=%s severity=%s",
            alert.id, alert.product_id, alert.alert_type, alert.severity,
        )
        self._bus.publish(AlertOpenedEvent(
            alert_id=alert.id,
            product_id=alert.product_id,
            alert_type=alert.alert_type,
            severity=alert.severity,
        ))
        return alert

    def _auto_resolve(self, alert: InventoryAlert) -> InventoryAlert:
        if AlertStatus(alert.status) is not AlertStatus.IN_PROGRESS:
            alert = self.transition(alert.id, AlertStatus.IN_PROGRESS.value)
        return self.transition(alert.id, AlertStatus.RESOLVED.value, action_taken=AUTO_RESOLVE_ACTION)

    def _lots_on_hand_expiring_by(self, product_id: int, cutoff: date) -> List[LotBalance]:
        if not self._movement_repo.lots_expiring_before(product_id, cutoff):
            return []
        return lots_expiring_by(self._movement_repo.active_business_movements(product_id), cutoff)

    @staticmethod
    def _describe_lots(lots) -> str:
        return ", ".join(
            f"{lot.label} ({lot.expiry_date.isoformat()}, {lot.remaining} units)" for lot in lots
        )

    @staticmethod
    def _parse(enum_cls, value, field_name: str):
        try:
            return enum_cls(value)
        except ValueError:
            raise InvalidInputException(f"Invalid {field_name} '{value}'", field=field_name)
