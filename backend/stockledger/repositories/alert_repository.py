"""
Inventory Alert Repository
"""
from typing import Dict, List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from stockledger.repositories.base import BaseRepository
from stockledger.models.alert import InventoryAlert
from stockledger.models.enums import AlertStatus

_ACTIVE = [s.value for s in AlertStatus.active()]


class AlertRepository(BaseRepository[InventoryAlert]):

    def __init__(self, db: Session):
        super().__init__(InventoryAlert, db)

    def list_filtered(
        self,
        page: int = 1,
        page_size: int = 50,
        status: Optional[str] = None,
        severity: Optional[str] = None,
        alert_type: Optional[str] = None,
        product_id: Optional[int] = None,
        assigned_user_id: Optional[int] = None,
    ) -> Tuple[List[InventoryAlert], int]:
        q = self.db.query(InventoryAlert)
        if status:
            q = q.filter(InventoryAlert.status == status)
        if severity:
            q = q.filter(InventoryAlert.severity == severity)
        if alert_type:
            q = q.filter(InventoryAlert.alert_type == alert_type)
        if product_id is not None:
            q = q.filter(InventoryAlert.product_id == product_id)
        if assigned_user_id is not None:
            q = q.filter(InventoryAlert.assigned_user_id == assigned_user_id)
        total = q.count()
        items = q.order_by(InventoryAlert.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    def get_active_by_product_and_type(self, product_id: int, alert_type: str) -> Optional[InventoryAlert]:
        return (
            self.db.query(InventoryAlert)
            .filter(
                InventoryAlert.product_id == product_id,
                InventoryAlert.alert_type == alert_type,
                InventoryAlert.status.in_(_ACTIVE),
            )
            .order_by(InventoryAlert.id.desc())
            .first()
        )

    def list_active_for_product(self, product_id: int) -> List[InventoryAlert]:
        return (
            self.db.query(InventoryAlert)
            .filter(InventoryAlert.product_id == product_id, InventoryAlert.status.in_(_ACTIVE))
            .all()
        )

    def count_by_status(self) -> Dict[str, int]:
        rows = self.db.query(InventoryAlert.status, func.count(InventoryAlert.id)).group_by(InventoryAlert.status).all()
        return {status: count for status, count in rows}

    def count_pending_by_severity(self) -> Dict[str, int]:
        rows = (
            self.db.query(InventoryAlert.severity, func.count(InventoryAlert.id))
            .filter(InventoryAlert.status == AlertStatus.PENDING.value)
            .group_by(InventoryAlert.severity)
            .all()
        )
        return {severity: count for severity, count in rows}
