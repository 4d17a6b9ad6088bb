from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    Date,
    Boolean,
    ForeignKey,
    Text,
    CheckConstraint,
    Index,
    func,
)
from stockledger.database import Base
from stockledger.models.enums import MovementType, sql_in


class MovementRecord(Base):
    """One row per stock-affecting event. Rows are never deleted; only ``voided`` changes."""

    __tablename__ = "movements"
    __table_args__ = (
        CheckConstraint(f"movement_type IN {sql_in(MovementType)}", name="ck_movements_type"),
        CheckConstraint("quantity > 0", name="ck_movements_quantity_positive"),
        CheckConstraint("delta <> 0", name="ck_movements_delta_non_zero"),
        CheckConstraint("running_balance >= 0", name="ck_movements_running_balance_non_negative"),
        CheckConstraint("unit_cost IS NULL OR unit_cost >= 0", name="ck_movements_unit_cost_non_negative"),
        Index("ix_movements_product_id_id", "product_id", "id"),
        Index("ix_movements_product_occurred", "product_id", "occurred_at"),
        Index("ix_movements_lot_expiry", "product_id", "expiry_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    movement_type = Column(String(32), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    delta = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(12, 2), nullable=True)
    running_balance = Column(Integer, nullable=False)
    document_number = Column(String(64), nullable=True, index=True)
    supplier_id = Column(Integer, nullable=True)
    user_id = Column(Integer, nullable=True)
    lot_number = Column(String(64), nullable=True)
    expiry_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    voided = Column(Boolean, nullable=False, default=False)
    reference_movement_id = Column(Integer, ForeignKey("movements.id"), nullable=True)
    occurred_at = Column(DateTime, nullable=False, default=func.now())
    created_at = Column(DateTime, default=func.now())
