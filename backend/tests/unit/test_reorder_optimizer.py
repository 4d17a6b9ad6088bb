import logging

import pytest

from stockledger.core.exceptions import (
    EntityNotFoundException,
    InvalidInputException,
    InvalidParametersException,
)
from stockledger.core.interfaces import DemandForecast, PurchaseOrderRequest
from stockledger.services.collaborators import LoggingPurchaseOrderGenerator, SqlProductCatalog
from stockledger.services.reorder_optimizer import (
    OptimizationParams,
    ReorderOptimizer,
    compute_reorder_policy,
    present_result,
    service_level_to_z,
)
from stockledger.utils.events import OptimizationCompletedEvent


class FixedForecast:
    def __init__(self, total_quantity, std_dev):
        self.total_quantity = total_quantity
        self.std_dev = std_dev
        self.calls = []

    def get_demand_forecast(self, product_id, horizon_days):
        self.calls.append((product_id, horizon_days))
        return DemandForecast(
            product_id=product_id,
            horizon_days=horizon_days,
            total_quantity=self.total_quantity,
            demand_std_dev=self.std_dev,
            method="fixed",
        )


class RecordingGenerator:
    def __init__(self):
        self.requests = []

    def submit(self, request):
        self.requests.append(request)
        return {
            "status": "queued",
            "product_id": request.product_id,
            "suggested_quantity": request.suggested_quantity,
            "supplier_id": request.supplier_id,
        }


@pytest.fixture
def optimizer(db, bus, test_settings):
    return ReorderOptimizer(db, bus, SqlProductCatalog(db), settings=test_settings)


class TestServiceLevelTable:

    @pytest.mark.parametrize(
        "service_level, z",
        [(0.80, 0.84), (0.90, 1.28), (0.95, 1.65), (0.975, 1.96), (0.99, 2.33)],
    )
    def test_anchor_points(self, service_level, z):
        assert service_level_to_z(service_level) == pytest.approx(z)

    def test_interpolates_between_anchors(self):
        assert service_level_to_z(0.925) == pytest.approx(1.465)
        assert service_level_to_z(0.85) == pytest.approx(1.06)

    @pytest.mark.parametrize("service_level", [0.5, 0.79, 0.995, 1.0])
    def test_out_of_range(self, service_level):
        with pytest.raises(InvalidInputException):
            service_level_to_z(service_level)


class TestComputeReorderPolicy:

    def test_eoq_scenario(self):
        policy = compute_reorder_policy(
            demand_annual=1200, order_cost=50, holding_cost_per_unit_year=2,
            lead_time_days=0, service_level=0.95, demand_std_dev=0,
        )
        assert policy.eoq == pytest.approx(244.949, abs=1e-3)
        assert policy.orders_per_year == pytest.approx(4.899, abs=1e-3)
        assert policy.ordering_cost_annual == pytest.approx(policy.holding_cost_annual)
        assert policy.total_cost_annual == pytest.approx(489.898, abs=1e-3)
        assert policy.days_between_orders == pytest.approx(74.5, abs=0.05)

    def test_rop_scenario(self):
        policy = compute_reorder_policy(
            demand_annual=3650, order_cost=50, holding_cost_per_unit_year=2,
            lead_time_days=5, service_level=0.95, demand_std_dev=2,
        )
        assert policy.demand_daily == pytest.approx(10)
        assert policy.safety_stock == pytest.approx(7.379, abs=1e-3)
        assert policy.rop == pytest.approx(57.379, abs=1e-3)

    @pytest.mark.parametrize(
        "overrides",
        [{"demand_annual": 0}, {"demand_annual": -5}, {"order_cost": 0}, {"holding_cost_per_unit_year": -1}],
    )
    def test_non_positive_economics(self, overrides):
        params = dict(
            demand_annual=100, order_cost=10, holding_cost_per_unit_year=1,
            lead_time_days=3, service_level=0.95, demand_std_dev=1,
        )
        params.update(overrides)
        with pytest.raises(InvalidParametersException):
            compute_reorder_policy(**params)

    @pytest.mark.parametrize("field", ["demand_annual", "order_cost", "holding_cost_per_unit_year"])
    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_economics_are_rejected(self, field, value):
        params = dict(
            demand_annual=100, order_cost=10, holding_cost_per_unit_year=1,
            lead_time_days=3, service_level=0.95, demand_std_dev=1,
        )
        params[field] = value
        with pytest.raises(InvalidParametersException) as exc:
            compute_reorder_policy(**params)
        assert exc.value.parameter == field

    @pytest.mark.parametrize("field", ["lead_time_days", "service_level", "demand_std_dev"])
    def test_non_finite_inputs_are_rejected(self, field):
        params = dict(
            demand_annual=100, order_cost=10, holding_cost_per_unit_year=1,
            lead_time_days=3, service_level=0.95, demand_std_dev=1,
        )
        params[field] = float("nan")
        with pytest.raises(InvalidInputException) as exc:
            compute_reorder_policy(**params)
        assert exc.value.field == field

    @pytest.mark.parametrize("overrides", [{"lead_time_days": -1}, {"demand_std_dev": -0.5}, {"service_level": 0.999}])
    def test_invalid_inputs(self, overrides):
        params = dict(
            demand_annual=100, order_cost=10, holding_cost_per_unit_year=1,
            lead_time_days=3, service_level=0.95, demand_std_dev=1,
        )
        params.update(overrides)
        with pytest.raises(InvalidInputException):
            compute_reorder_policy(**params)


class TestOptimize:

    def test_persists_unrounded_and_presents_rounded(self, optimizer, product, published):
        result = optimizer.optimize(product.id, OptimizationParams(
            demand_annual=1200, order_cost=50, holding_cost_per_unit_year=2,
            lead_time_days=0, demand_std_dev=0,
        ))

        assert result.eoq == pytest.approx(244.949, abs=1e-3)
        assert result.demand_source == "caller"
        view = present_result(result)
        assert view["eoq"] == 245
        assert view["total_cost_annual"] == 489.9
        assert any(isinstance(e, OptimizationCompletedEvent) for e in published)

    def test_defaults_come_from_catalog_and_settings(self, optimizer, product):
        result = optimizer.optimize(product.id, OptimizationParams(demand_annual=500, demand_std_dev=3))

        assert result.order_cost == 50
        assert result.holding_cost_per_unit_year == pytest.approx(2.5)
        assert result.unit_cost == pytest.approx(10)
        assert result.lead_time_days == 7
        assert result.service_level == 0.95

    def test_catalog_costs_win_over_defaults(self, optimizer, make_product):
        p = make_product(unit_cost=20, order_cost=80, holding_cost_annual=3, lead_time_days=12)

        result = optimizer.optimize(p.id, OptimizationParams(demand_annual=500, demand_std_dev=3))

        assert (result.order_cost, result.holding_cost_per_unit_year, result.lead_time_days) == (80, 3, 12)

    def test_missing_holding_cost_is_invalid(self, optimizer, make_product):
        p = make_product()
        with pytest.raises(InvalidParametersException):
            optimizer.optimize(p.id, OptimizationParams(demand_annual=500, demand_std_dev=3))

    def test_demand_from_forecast_provider(self, db, bus, product, test_settings):
        forecast = FixedForecast(total_quantity=900, std_dev=4.0)
        optimizer = ReorderOptimizer(db, bus, SqlProductCatalog(db), forecast, test_settings)

        result = optimizer.optimize(product.id)

        assert forecast.calls == [(product.id, test_settings.FORECAST_HORIZON_DAYS)]
        assert result.demand_source == "forecast"
        assert result.demand_annual == pytest.approx(900 / 90 * 365)
        assert result.demand_std_dev == 4.0

    def test_zero_forecast_demand_is_invalid(self, db, bus, product, test_settings):
        optimizer = ReorderOptimizer(db, bus, SqlProductCatalog(db), FixedForecast(0, 5.0), test_settings)
        with pytest.raises(InvalidParametersException):
            optimizer.optimize(product.id)

    def test_without_provider_demand_is_required(self, optimizer, product):
        with pytest.raises(InvalidParametersException) as exc:
            optimizer.optimize(product.id)
        assert exc.value.parameter == "demand_annual"

    def test_without_provider_std_dev_is_named_when_missing(self, optimizer, product):
        with pytest.raises(InvalidParametersException) as exc:
            optimizer.optimize(product.id, OptimizationParams(demand_annual=500))
        assert exc.value.parameter == "demand_std_dev"
        assert "demand_std_dev" in exc.value.message

    @pytest.mark.parametrize("unit_cost", [float("nan"), float("inf")])
    def test_non_finite_unit_cost(self, optimizer, product, unit_cost):
        with pytest.raises(InvalidInputException):
            optimizer.optimize(product.id, OptimizationParams(demand_annual=10, unit_cost=unit_cost, demand_std_dev=1))

    def test_nan_demand_is_not_persisted(self, optimizer, product):
        with pytest.raises(InvalidParametersException):
            optimizer.optimize(product.id, OptimizationParams(demand_annual=float("nan"), demand_std_dev=1))
        assert optimizer.history(product.id) == []

    def test_negative_unit_cost(self, optimizer, product):
        with pytest.raises(InvalidInputException):
            optimizer.optimize(product.id, OptimizationParams(demand_annual=10, unit_cost=-1, demand_std_dev=1))

    def test_unknown_product(self, optimizer):
        with pytest.raises(EntityNotFoundException):
            optimizer.optimize(321, OptimizationParams(demand_annual=10))

    def test_results_are_append_only(self, optimizer, product):
        first = optimizer.optimize(product.id, OptimizationParams(demand_annual=100, demand_std_dev=1))
        second = optimizer.optimize(product.id, OptimizationParams(demand_annual=400, demand_std_dev=1))

        assert optimizer.latest(product.id).id == second.id
        assert [r.id for r in optimizer.history(product.id)] == [second.id, first.id]
        assert first.eoq < second.eoq


class TestPurchaseOrder:

    def test_sends_rounded_eoq_and_preferred_supplier(self, optimizer, make_product):
        p = make_product(unit_cost=8, preferred_supplier_id=7)
        optimizer.optimize(p.id, OptimizationParams(
            demand_annual=1200, order_cost=50, holding_cost_per_unit_year=2, demand_std_dev=1,
        ))
        generator = RecordingGenerator()

        response = optimizer.request_purchase_order(p.id, generator)

        assert response["suggested_quantity"] == 245
        assert response["supplier_id"] == 7
        assert generator.requests[0].product_id == p.id
        assert generator.requests[0].metadata["optimization_result_id"] is not None

    def test_logging_generator_logs_and_keeps_nothing(self, caplog):
        generator = LoggingPurchaseOrderGenerator()
        request = PurchaseOrderRequest(product_id=4, suggested_quantity=120, supplier_id=2)

        with caplog.at_level(logging.INFO, logger="stockledger.services.collaborators"):
            for _ in range(3):
                receipt = generator.submit(request)

        assert receipt == {"status": "queued", "product_id": 4, "suggested_quantity": 120, "supplier_id": 2}
        assert caplog.records[-1].purchase_order["suggested_quantity"] == 120
        assert vars(generator) == {}

    def test_requires_an_optimization(self, optimizer, product):
        with pytest.raises(EntityNotFoundException):
            optimizer.request_purchase_order(product.id, LoggingPurchaseOrderGenerator())
