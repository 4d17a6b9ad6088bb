"""
Reorder Optimizer Service

Classic inventory policy math:

    EOQ           = sqrt(2 * D * S / H)
    safety stock  = z * sigma_daily * sqrt(L)
    ROP           = D / 365 * L + safety stock
    annual cost   = (D / EOQ) * S + (EOQ / 2) * H

Every value is kept unrounded in ``OptimizationResult``; rounding happens only
when a result is presented (quantities up to whole units, costs to cents).
"""
import logging
from dataclasses import dataclass
from math import ceil, isfinite, sqrt
from typing import List, Optional

from sqlalchemy.orm import Session

from stockledger.config import Settings, settings as default_settings
from stockledger.core.exceptions import (
    EntityNotFoundException,
    InvalidInputException,
    InvalidParametersException,
)
from stockledger.core.interfaces import (
    ForecastProvider,
    ProductCatalog,
    PurchaseOrderGenerator,
    PurchaseOrderRequest,
)
from stockledger.models.optimization_result import OptimizationResult
from stockledger.repositories.optimization_repository import OptimizationRepository
from stockledger.utils.events import EventBus, OptimizationCompletedEvent

logger = logging.getLogger(__name__)

MIN_SERVICE_LEVEL = 0.80
MAX_SERVICE_LEVEL = 0.99

# (service level, z) anchors; values between anchors are interpolated linearly
Z_TABLE = (
    (0.80, 0.84),
    (0.90, 1.28),
    (0.95, 1.65),
    (0.975, 1.96),
    (0.99, 2.33),
)


def service_level_to_z(service_level: float) -> float:
    if not MIN_SERVICE_LEVEL <= service_level <= MAX_SERVICE_LEVEL:
        raise InvalidInputException(
            f"service_level must be between {MIN_SERVICE_LEVEL} and {MAX_SERVICE_LEVEL}",
            field="service_level",
        )
    for (lo_sl, lo_z), (hi_sl, hi_z) in zip(Z_TABLE, Z_TABLE[1:]):
        if service_level <= hi_sl:
            return lo_z + (service_level - lo_sl) / (hi_sl - lo_sl) * (hi_z - lo_z)
    return Z_TABLE[-1][1]


@dataclass(frozen=True)
class ReorderPolicy:
    demand_annual: float
    demand_daily: float
    eoq: float
    rop: float
    safety_stock: float
    z_factor: float
    ordering_cost_annual: float
    holding_cost_annual: float
    total_cost_annual: float
    orders_per_year: float
    days_between_orders: float


def compute_reorder_policy(
    demand_annual: float,
    order_cost: float,
    holding_cost_per_unit_year: float,
    lead_time_days: float,
    service_level: float,
    demand_std_dev: float,
) -> ReorderPolicy:
    """Pure computation; raises on invalid parameters, never rounds."""
    for name, value in (
        ("demand_annual", demand_annual),
        ("order_cost", order_cost),
        ("holding_cost_per_unit_year", holding_cost_per_unit_year),
    ):
        if value is None or not isfinite(value) or value <= 0:
            raise InvalidParametersException(f"{name} must be a positive finite number", parameter=name)
    for name, value in (
        ("lead_time_days", lead_time_days),
        ("service_level", service_level),
        ("demand_std_dev", demand_std_dev),
    ):
        if value is None or not isfinite(value):
            raise InvalidInputException(f"{name} must be a finite number", field=name)
    if lead_time_days < 0:
        raise InvalidInputException("lead_time_days must be >= 0", field="lead_time_days")
    if demand_std_dev < 0:
        raise InvalidInputException("demand_std_dev must be >= 0", field="demand_std_dev")

    z = service_level_to_z(service_level)
    eoq = sqrt(2 * demand_annual * order_cost / holding_cost_per_unit_year)
    demand_daily = demand_annual / 365
    safety_stock = z * demand_std_dev * sqrt(lead_time_days)
    rop = demand_daily * lead_time_days + safety_stock
    orders_per_year = demand_annual / eoq
    ordering_cost_annual = orders_per_year * order_cost
    holding_cost_annual = eoq / 2 * holding_cost_per_unit_year

    return ReorderPolicy(
        demand_annual=demand_annual,
        demand_daily=demand_daily,
        eoq=eoq,
        rop=rop,
        safety_stock=safety_stock,
        z_factor=z,
        ordering_cost_annual=ordering_cost_annual,
        holding_cost_annual=holding_cost_annual,
        total_cost_annual=ordering_cost_annual + holding_cost_annual,
        orders_per_year=orders_per_year,
        days_between_orders=365 / orders_per_year,
    )


def present_result(result: OptimizationResult) -> dict:
    """Presentation view: order quantities rounded up, money to two decimals."""
    return {
        "id": result.id,
        "product_id": result.product_id,
        "created_at": result.created_at,
        "eoq": int(ceil(result.eoq)),
        "rop": int(ceil(result.rop)),
        "safety_stock": int(ceil(result.safety_stock)),
        "z_factor": round(result.z_factor, 2),
        "demand_annual": round(result.demand_annual, 2),
        "demand_daily": round(result.demand_daily, 2),
        "orders_per_year": round(result.orders_per_year, 2),
        "days_between_orders": round(result.days_between_orders, 1),
        "ordering_cost_annual": round(result.ordering_cost_annual, 2),
        "holding_cost_annual": round(result.holding_cost_annual, 2),
        "total_cost_annual": round(result.total_cost_annual, 2),
        "parameters": {
            "order_cost": result.order_cost,
            "holding_cost_per_unit_year": result.holding_cost_per_unit_year,
            "unit_cost": result.unit_cost,
            "lead_time_days": result.lead_time_days,
            "service_level": result.service_level,
            "demand_std_dev": result.demand_std_dev,
            "demand_source": result.demand_source,
        },
    }


@dataclass
class OptimizationParams:
    demand_annual: Optional[float] = None
    order_cost: Optional[float] = None
    holding_cost_per_unit_year: Optional[float] = None
    unit_cost: Optional[float] = None
    lead_time_days: Optional[float] = None
    service_level: Optional[float] = None
    demand_std_dev: Optional[float] = None


class ReorderOptimizer:

    def __init__(
        self,
        db: Session,
        bus: EventBus,
        catalog: ProductCatalog,
        forecast_provider: Optional[ForecastProvider] = None,
        settings: Optional[Settings] = None,
    ):
        self._db = db
        self._bus = bus
        self._catalog = catalog
        self._forecasts = forecast_provider
        self._settings = settings or default_settings
        self._repo = OptimizationRepository(db)

    def optimize(self, product_id: int, params: Optional[OptimizationParams] = None) -> OptimizationResult:
        params = params or OptimizationParams()
        entry = self._catalog.get_entry(product_id)
        if entry is None:
            raise EntityNotFoundException("Product", product_id)
        s = self._settings

        unit_cost = params.unit_cost if params.unit_cost is not None else entry.unit_cost
        if unit_cost is not None and (not isfinite(unit_cost) or unit_cost <= 0):
            raise InvalidInputException("unit_cost must be a positive finite number", field="unit_cost")

        order_cost = self._first(params.order_cost, entry.order_cost, s.DEFAULT_ORDER_COST)
        holding = self._first(
            params.holding_cost_per_unit_year,
            entry.holding_cost_annual,
            unit_cost * s.DEFAULT_HOLDING_COST_RATE if unit_cost is not None else None,
        )
        lead_time = self._first(params.lead_time_days, entry.lead_time_days, s.DEFAULT_LEAD_TIME_DAYS)
        service_level = self._first(params.service_level, s.DEFAULT_SERVICE_LEVEL)

        demand_annual, std_dev, source = params.demand_annual, params.demand_std_dev, "caller"
        if demand_annual is None or std_dev is None:
            forecast = self._forecast(product_id, missing="demand_annual" if demand_annual is None else "demand_std_dev")
            if demand_annual is None:
                demand_annual, source = forecast.annual_demand, "forecast"
            if std_dev is None:
                std_dev = forecast.demand_std_dev

        policy = compute_reorder_policy(
            demand_annual=demand_annual,
            order_cost=order_cost,
            holding_cost_per_unit_year=holding,
            lead_time_days=lead_time,
            service_level=service_level,
            demand_std_dev=std_dev,
        )
        result = self._repo.create(OptimizationResult(
            product_id=product_id,
            demand_annual=policy.demand_annual,
            demand_daily=policy.demand_daily,
            eoq=policy.eoq,
            rop=policy.rop,
            safety_stock=policy.safety_stock,
            z_factor=policy.z_factor,
            ordering_cost_annual=policy.ordering_cost_annual,
            holding_cost_annual=policy.holding_cost_annual,
            total_cost_annual=policy.total_cost_annual,
            orders_per_year=policy.orders_per_year,
            days_between_orders=policy.days_between_orders,
            order_cost=order_cost,
            holding_cost_per_unit_year=holding,
            unit_cost=unit_cost,
            lead_time_days=lead_time,
            service_level=service_level,
            demand_std_dev=std_dev,
            demand_source=source,
        ))
        logger.info(
            "optimization_completed product_id=%s eoq=%.2f rop=%.2f source=%s",
            product_id, result.eoq, result.rop, source,
        )
        self._bus.publish(OptimizationCompletedEvent(
            result_id=result.id, product_id=product_id, eoq=result.eoq, rop=result.rop,
        ))
        return result

    def latest(self, product_id: int) -> OptimizationResult:
        result = self._repo.latest_for_product(product_id)
        if not result:
            raise EntityNotFoundException("OptimizationResult", product_id)
        return result

    def history(self, product_id: int, limit: int = 20) -> List[OptimizationResult]:
        return self._repo.history(product_id, limit)

    def request_purchase_order(self, product_id: int, generator: PurchaseOrderGenerator):
        result = self.latest(product_id)
        entry = self._catalog.get_entry(product_id)
        request = PurchaseOrderRequest(
            product_id=product_id,
            suggested_quantity=int(ceil(result.eoq)),
            supplier_id=entry.preferred_supplier_id if entry else None,
            metadata={"optimization_result_id": result.id},
        )
        return generator.submit(request)

    def _forecast(self, product_id: int, missing: str):
        if self._forecasts is None:
            raise InvalidParametersException(
                f"{missing} is required when no forecast provider is configured", parameter=missing,
            )
        return self._forecasts.get_demand_forecast(product_id, self._settings.FORECAST_HORIZON_DAYS)

    @staticmethod
    def _first(*values):
        for value in values:
            if value is not None:
                return value
        return None
