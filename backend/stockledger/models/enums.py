from enum import Enum
from typing import List


class MovementType(str, Enum):
    ENTRY_PURCHASE = "entry_purchase"
    ENTRY_CUSTOMER_RETURN = "entry_customer_return"
    ENTRY_ADJUSTMENT = "entry_adjustment"
    ENTRY_TRANSFER = "entry_transfer"
    ENTRY_PRODUCTION = "entry_production"
    ENTRY_INITIAL = "entry_initial"

    EXIT_SALE = "exit_sale"
    EXIT_SUPPLIER_RETURN = "exit_supplier_return"
    EXIT_ADJUSTMENT = "exit_adjustment"
    EXIT_TRANSFER = "exit_transfer"
    EXIT_SHRINKAGE = "exit_shrinkage"
    EXIT_EXPIRY = "exit_expiry"
    EXIT_INTERNAL_USE = "exit_internal_use"

    ADJUSTMENT_POSITIVE = "adjustment_positive"
    ADJUSTMENT_NEGATIVE = "adjustment_negative"

    # Written only by void/restore
    REVERSAL = "reversal"
    RESTORATION = "restoration"

    @property
    def is_entry(self) -> bool:
        return self.value.startswith("entry_")

    @property
    def is_exit(self) -> bool:
        return self.value.startswith("exit_")

    @property
    def is_adjustment(self) -> bool:
        return self.value.startswith("adjustment_")

    @property
    def is_compensating(self) -> bool:
        return self in (MovementType.REVERSAL, MovementType.RESTORATION)

    @property
    def direction(self) -> int:
        """+1 for stock-increasing types, -1 for decreasing ones. Compensating types carry their own sign."""
        if self.is_entry or self is MovementType.ADJUSTMENT_POSITIVE:
            return 1
        if self.is_exit or self is MovementType.ADJUSTMENT_NEGATIVE:
            return -1
        raise ValueError(f"{self.value} has no intrinsic direction")

    @classmethod
    def submittable(cls) -> List["MovementType"]:
        return [m for m in cls if not m.is_compensating]

    @classmethod
    def demand_types(cls) -> List["MovementType"]:
        return [cls.EXIT_SALE, cls.EXIT_INTERNAL_USE]


class StockStatus(str, Enum):
    NORMAL = "normal"
    LOW = "low"
    CRITICAL = "critical"
    EXCESS = "excess"
    DEPLETED = "depleted"


class AlertType(str, Enum):
    LOW_STOCK = "low_stock"
    CRITICAL = "critical"
    REORDER_POINT = "reorder_point"
    EXCESS = "excess"
    OBSOLETE = "obsolete"
    EXPIRY_NEAR = "expiry_near"
    EXPIRY_PASSED = "expiry_passed"
    ANOMALOUS_DEMAND = "anomalous_demand"
    HIGH_COST = "high_cost"
    HIGH_SHRINK = "high_shrink"
    SUPPLIER_DELAY = "supplier_delay"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.LOW: 1,
    AlertSeverity.MEDIUM: 2,
    AlertSeverity.HIGH: 3,
    AlertSeverity.CRITICAL: 4,
}


class AlertStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    IGNORED = "ignored"
    ESCALATED = "escalated"

    @classmethod
    def active(cls) -> List["AlertStatus"]:
        return [cls.PENDING, cls.IN_PROGRESS, cls.ESCALATED]


def sql_in(enum_cls) -> str:
    """Render enum values as a SQL ``IN`` list for CheckConstraints."""
    return "(" + ", ".join(f"'{member.value}'" for member in enum_cls) + ")"
