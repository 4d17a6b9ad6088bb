from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    CheckConstraint,
    func,
)
from stockledger.database import Base


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("unit_cost IS NULL OR unit_cost > 0", name="ck_products_unit_cost_positive"),
        CheckConstraint("order_cost IS NULL OR order_cost > 0", name="ck_products_order_cost_positive"),
        CheckConstraint(
            "holding_cost_annual IS NULL OR holding_cost_annual > 0",
            name="ck_products_holding_cost_positive",
        ),
        CheckConstraint("lead_time_days IS NULL OR lead_time_days >= 0", name="ck_products_lead_time_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    unit_cost = Column(Numeric(12, 2), nullable=True)
    order_cost = Column(Numeric(12, 2), nullable=True)
    holding_cost_annual = Column(Numeric(12, 4), nullable=True)
    lead_time_days = Column(Integer, nullable=True)
    preferred_supplier_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=func.now())
