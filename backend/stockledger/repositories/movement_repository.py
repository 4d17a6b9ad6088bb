from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from stockledger.repositories.base import BaseRepository
from stockledger.models.movement import MovementRecord
from stockledger.models.enums import MovementType

_COMPENSATING = [MovementType.REVERSAL.value, MovementType.RESTORATION.value]


class MovementRepository(BaseRepository[MovementRecord]):

    def __init__(self, db: Session):
        super().__init__(MovementRecord, db)

    def latest_for_product(self, product_id: int) -> Optional[MovementRecord]:
        return (
            self.db.query(MovementRecord)
            .filter(MovementRecord.product_id == product_id)
            .order_by(MovementRecord.id.desc())
            .first()
        )

    def sum_active_deltas(self, product_id: int) -> int:
        """Fold of non-voided business movements; compensating rows are excluded."""
        total = (
            self.db.query(func.coalesce(func.sum(MovementRecord.delta), 0))
            .filter(
                MovementRecord.product_id == product_id,
                MovementRecord.voided.is_(False),
                MovementRecord.movement_type.notin_(_COMPENSATING),
            )
            .scalar()
        )
        return int(total or 0)

    def list_filtered(
        self,
        page: int = 1,
        page_size: int = 50,
        product_id: Optional[int] = None,
        movement_type: Optional[str] = None,
        supplier_id: Optional[int] = None,
        user_id: Optional[int] = None,
        document_number: Optional[str] = None,
        lot_number: Optional[str] = None,
        occurred_from: Optional[datetime] = None,
        occurred_to: Optional[datetime] = None,
        include_voided: bool = True,
    ) -> Tuple[List[MovementRecord], int]:
        q = self.db.query(MovementRecord)
        if product_id is not None:
            q = q.filter(MovementRecord.product_id == product_id)
        if movement_type:
            q = q.filter(MovementRecord.movement_type == movement_type)
        if supplier_id is not None:
            q = q.filter(MovementRecord.supplier_id == supplier_id)
        if user_id is not None:
            q = q.filter(MovementRecord.user_id == user_id)
        if document_number:
            q = q.filter(MovementRecord.document_number == document_number)
        if lot_number:
            q = q.filter(MovementRecord.lot_number == lot_number)
        if occurred_from is not None:
            q = q.filter(MovementRecord.occurred_at >= occurred_from)
        if occurred_to is not None:
            q = q.filter(MovementRecord.occurred_at <= occurred_to)
        if not include_voided:
            q = q.filter(MovementRecord.voided.is_(False))
        total = q.count()
        items = q.order_by(MovementRecord.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    def recent(self, limit: int = 20) -> List[MovementRecord]:
        return self.db.query(MovementRecord).order_by(MovementRecord.id.desc()).limit(limit).all()

    def lots_expiring_before(self, product_id: int, cutoff: date) -> List[MovementRecord]:
        return (
            self.db.query(MovementRecord)
            .filter(
                MovementRecord.product_id == product_id,
                MovementRecord.voided.is_(False),
                MovementRecord.delta > 0,
                MovementRecord.movement_type.notin_(_COMPENSATING),
                MovementRecord.expiry_date.isnot(None),
                MovementRecord.expiry_date <= cutoff,
            )
            .order_by(MovementRecord.expiry_date)
            .all()
        )

    def active_business_movements(self, product_id: int) -> List[MovementRecord]:
        """Non-voided business movements in the order the ledger applied them."""
        return (
            self.db.query(MovementRecord)
            .filter(
                MovementRecord.product_id == product_id,
                MovementRecord.voided.is_(False),
                MovementRecord.movement_type.notin_(_COMPENSATING),
            )
            .order_by(MovementRecord.id)
            .all()
        )

    def demand_rows(self, product_id: int, since: datetime, types: Sequence[str]) -> List[Tuple[datetime, int]]:
        rows = (
            self.db.query(MovementRecord.occurred_at, MovementRecord.quantity)
            .filter(
                MovementRecord.product_id == product_id,
                MovementRecord.voided.is_(False),
                MovementRecord.movement_type.in_(list(types)),
                MovementRecord.occurred_at >= since,
            )
            .order_by(MovementRecord.occurred_at)
            .all()
        )
        return [(occurred_at, quantity) for occurred_at, quantity in rows]

    def active_totals_by_direction(self) -> Tuple[int, int]:
        """(total entered, total exited) across non-voided business movements."""
        base = self.db.query(func.coalesce(func.sum(MovementRecord.delta), 0)).filter(
            MovementRecord.voided.is_(False),
            MovementRecord.movement_type.notin_(_COMPENSATING),
        )
        entered = base.filter(MovementRecord.delta > 0).scalar() or 0
        exited = base.filter(MovementRecord.delta < 0).scalar() or 0
        return int(entered), int(-exited)

    def count_by_type(self) -> List[Tuple[str, int]]:
        return (
            self.db.query(MovementRecord.movement_type, func.count(MovementRecord.id))
            .group_by(MovementRecord.movement_type)
            .all()
        )

    def most_moved_product(self) -> Optional[Tuple[int, int]]:
        row = (
            self.db.query(MovementRecord.product_id, func.count(MovementRecord.id).label("n"))
            .filter(MovementRecord.movement_type.notin_(_COMPENSATING))
            .group_by(MovementRecord.product_id)
            .order_by(func.count(MovementRecord.id).desc())
            .first()
        )
        return (row[0], row[1]) if row else None
