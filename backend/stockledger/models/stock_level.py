from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    func,
)
from stockledger.database import Base
from stockledger.models.enums import StockStatus, sql_in


class StockLevel(Base):
    __tablename__ = "stock_levels"
    __table_args__ = (
        CheckConstraint(f"status IN {sql_in(StockStatus)}", name="ck_stock_levels_status"),
        CheckConstraint("available >= 0", name="ck_stock_levels_available_non_negative"),
        CheckConstraint("reserved >= 0", name="ck_stock_levels_reserved_non_negative"),
        CheckConstraint("in_transit >= 0", name="ck_stock_levels_in_transit_non_negative"),
        CheckConstraint("minimum >= 0", name="ck_stock_levels_minimum_non_negative"),
        CheckConstraint("reorder_point >= 0", name="ck_stock_levels_reorder_point_non_negative"),
        CheckConstraint("maximum IS NULL OR maximum >= minimum", name="ck_stock_levels_maximum_gte_minimum"),
        Index("ix_stock_levels_status", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, unique=True, index=True)
    available = Column(Integer, nullable=False, default=0)
    reserved = Column(Integer, nullable=False, default=0)
    in_transit = Column(Integer, nullable=False, default=0)
    minimum = Column(Integer, nullable=False, default=0)
    maximum = Column(Integer, nullable=True)
    reorder_point = Column(Integer, nullable=False, default=0)
    last_movement_at = Column(DateTime, nullable=True)
    last_sale_at = Column(DateTime, nullable=True)
    status = Column(String(20), nullable=False, default=StockStatus.DEPLETED.value)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def days_since_last_sale(self, now: Optional[datetime] = None) -> Optional[int]:
        if self.last_sale_at is None:
            return None
        return ((now or datetime.utcnow()) - self.last_sale_at).days
