"""
Collaborator contracts consumed by the ledger core.

Forecasting, product master data and purchase-order generation live outside
this service; the core only depends on these shapes.
"""
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class DemandForecast:
    product_id: int
    horizon_days: int
    total_quantity: float
    demand_std_dev: float
    method: str = "unknown"

    @property
    def daily_demand(self) -> float:
        return self.total_quantity / self.horizon_days if self.horizon_days else 0.0

    @property
    def annual_demand(self) -> float:
        return self.daily_demand * 365


@dataclass(frozen=True)
class CatalogEntry:
    product_id: int
    sku: str
    name: str
    unit_cost: Optional[float] = None
    order_cost: Optional[float] = None
    holding_cost_annual: Optional[float] = None
    lead_time_days: Optional[int] = None
    preferred_supplier_id: Optional[int] = None


@dataclass
class PurchaseOrderRequest:
    product_id: int
    suggested_quantity: int
    supplier_id: Optional[int] = None
    metadata: dict = field(default_factory=dict)


@runtime_checkable
class ForecastProvider(Protocol):
    def get_demand_forecast(self, product_id: int, horizon_days: int) -> DemandForecast:
        ...


@runtime_checkable
class ProductCatalog(Protocol):
    def get_entry(self, product_id: int) -> Optional[CatalogEntry]:
        ...


@runtime_checkable
class PurchaseOrderGenerator(Protocol):
    def submit(self, request: PurchaseOrderRequest):
        ...
