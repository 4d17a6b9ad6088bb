from typing import List, Optional
from sqlalchemy.orm import Session

from stockledger.repositories.base import BaseRepository
from stockledger.models.optimization_result import OptimizationResult


class OptimizationRepository(BaseRepository[OptimizationResult]):

    def __init__(self, db: Session):
        super().__init__(OptimizationResult, db)

    def latest_for_product(self, product_id: int) -> Optional[OptimizationResult]:
        return (
            self.db.query(OptimizationResult)
            .filter(OptimizationResult.product_id == product_id)
            .order_by(OptimizationResult.id.desc())
            .first()
        )

    def history(self, product_id: int, limit: int = 20) -> List[OptimizationResult]:
        return (
            self.db.query(OptimizationResult)
            .filter(OptimizationResult.product_id == product_id)
            .order_by(OptimizationResult.id.desc())
            .limit(limit)
            .all()
        )
