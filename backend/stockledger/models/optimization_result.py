from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    func,
)
from stockledger.database import Base


class OptimizationResult(Base):
    """Append-only snapshot of one reorder-policy computation, stored unrounded."""

    __tablename__ = "optimization_results"
    __table_args__ = (
        CheckConstraint("demand_source IN ('caller', 'forecast')", name="ck_optimization_results_demand_source"),
        CheckConstraint("eoq > 0", name="ck_optimization_results_eoq_positive"),
        CheckConstraint("rop >= 0", name="ck_optimization_results_rop_non_negative"),
        CheckConstraint("safety_stock >= 0", name="ck_optimization_results_safety_stock_non_negative"),
        Index("ix_optimization_results_product_created", "product_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    demand_annual = Column(Float, nullable=False)
    demand_daily = Column(Float, nullable=False)
    eoq = Column(Float, nullable=False)
    rop = Column(Float, nullable=False)
    safety_stock = Column(Float, nullable=False)
    z_factor = Column(Float, nullable=False)
    ordering_cost_annual = Column(Float, nullable=False)
    holding_cost_annual = Column(Float, nullable=False)
    total_cost_annual = Column(Float, nullable=False)
    orders_per_year = Column(Float, nullable=False)
    days_between_orders = Column(Float, nullable=False)

    order_cost = Column(Float, nullable=False)
    holding_cost_per_unit_year = Column(Float, nullable=False)
    unit_cost = Column(Float, nullable=True)
    lead_time_days = Column(Float, nullable=False)
    service_level = Column(Float, nullable=False)
    demand_std_dev = Column(Float, nullable=False)
    demand_source = Column(String(10), nullable=False, default="caller")

    created_at = Column(DateTime, default=func.now())
