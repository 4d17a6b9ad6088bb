from typing import Dict, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from stockledger.repositories.base import BaseRepository
from stockledger.models.stock_level import StockLevel


class StockLevelRepository(BaseRepository[StockLevel]):

    def __init__(self, db: Session):
        super().__init__(StockLevel, db)

    def get_by_product(self, product_id: int, for_update: bool = False) -> Optional[StockLevel]:
        q = self.db.query(StockLevel).filter(StockLevel.product_id == product_id)
        if for_update:
            # Emitted as SELECT ... FOR UPDATE where the dialect supports row locks
            q = q.with_for_update().populate_existing()
        return q.first()

    def counts_by_status(self) -> Dict[str, int]:
        rows = self.db.query(StockLevel.status, func.count(StockLevel.id)).group_by(StockLevel.status).all()
        return {status: count for status, count in rows}

    def product_ids(self):
        return [pid for (pid,) in self.db.query(StockLevel.product_id).order_by(StockLevel.product_id).all()]
