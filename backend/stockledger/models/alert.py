from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Text,
    CheckConstraint,
    Index,
    func,
    text,
)
from stockledger.database import Base
from stockledger.models.enums import AlertSeverity, AlertStatus, AlertType, sql_in


class InventoryAlert(Base):
    __tablename__ = "inventory_alerts"
    __table_args__ = (
        CheckConstraint(f"alert_type IN {sql_in(AlertType)}", name="ck_inventory_alerts_type"),
        CheckConstraint(f"severity IN {sql_in(AlertSeverity)}", name="ck_inventory_alerts_severity"),
        CheckConstraint(f"status IN {sql_in(AlertStatus)}", name="ck_inventory_alerts_status"),
        CheckConstraint(
            "suggested_quantity IS NULL OR suggested_quantity >= 0",
            name="ck_inventory_alerts_suggested_quantity_non_negative",
        ),
        Index("ix_inventory_alerts_status_severity", "status", "severity"),
        Index("ix_inventory_alerts_product_type", "product_id", "alert_type"),
        Index(
            "uq_inventory_alerts_pending_product_type",
            "product_id",
            "alert_type",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    alert_type = Column(String(30), nullable=False)
    severity = Column(String(10), nullable=False, default=AlertSeverity.MEDIUM.value)
    status = Column(String(20), nullable=False, default=AlertStatus.PENDING.value)
    message = Column(Text, nullable=False)
    stock_at_creation = Column(Integer, nullable=False, default=0)
    suggested_quantity = Column(Integer, nullable=True)
    assigned_user_id = Column(Integer, nullable=True)
    action_taken = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    resolved_at = Column(DateTime, nullable=True)
