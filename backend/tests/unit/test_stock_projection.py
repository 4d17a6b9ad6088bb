import pytest

from stockledger.core.exceptions import (
    BusinessRuleViolationException,
    EntityNotFoundException,
    InvalidInputException,
    StockInvariantViolation,
)
from stockledger.models.enums import MovementType, StockStatus
from stockledger.services.reorder_optimizer import OptimizationParams, ReorderOptimizer
from stockledger.services.collaborators import SqlProductCatalog
from stockledger.services.stock_projection import StockThresholds, derive_stock_status
from stockledger.utils.events import StockIntegrityViolationEvent


@pytest.mark.parametrize(
    "available, minimum, reorder_point, maximum, expected",
    [
        (0, 10, 20, 100, StockStatus.DEPLETED),
        (0, 0, 0, None, StockStatus.DEPLETED),
        (5, 10, 20, 100, StockStatus.CRITICAL),
        (10, 10, 20, 100, StockStatus.LOW),
        (20, 10, 20, 100, StockStatus.LOW),
        (21, 10, 20, 100, StockStatus.NORMAL),
        (100, 10, 20, 100, StockStatus.NORMAL),
        (101, 10, 20, 100, StockStatus.EXCESS),
        (5000, 10, 20, None, StockStatus.NORMAL),
    ],
)
def test_derive_stock_status(available, minimum, reorder_point, maximum, expected):
    assert derive_stock_status(available, minimum, reorder_point, maximum) is expected


def test_derive_stock_status_is_deterministic():
    first = derive_stock_status(12, 10, 15, 40)
    assert all(derive_stock_status(12, 10, 15, 40) is first for _ in range(5))


def test_critical_factor_widens_critical_band():
    assert derive_stock_status(14, 10, 5, None, critical_factor=1.5) is StockStatus.CRITICAL
    assert derive_stock_status(14, 10, 5, None, critical_factor=1.0) is StockStatus.NORMAL


class TestThresholds:

    def test_register_starts_empty(self, product, projection):
        stock = projection.get(product.id)
        assert stock.available == 0
        assert stock.status == StockStatus.DEPLETED.value

    def test_register_twice_is_rejected(self, product, projection):
        with pytest.raises(BusinessRuleViolationException):
            projection.register(product.id, StockThresholds())

    def test_register_unknown_product(self, projection):
        with pytest.raises(EntityNotFoundException):
            projection.register(777)

    def test_update_thresholds_recomputes_status(self, product, projection, ledger):
        ledger.append(product.id, MovementType.ENTRY_PURCHASE, 15)
        assert projection.get(product.id).status == StockStatus.NORMAL.value

        stock = projection.update_thresholds(product.id, minimum=5, reorder_point=15)

        assert stock.status == StockStatus.LOW.value

    def test_maximum_below_minimum_is_invalid(self, product, projection):
        with pytest.raises(InvalidInputException):
            projection.update_thresholds(product.id, minimum=10, maximum=5)

    def test_apply_optimization_rounds_rop_up(self, db, bus, product, projection, test_settings):
        optimizer = ReorderOptimizer(db, bus, SqlProductCatalog(db), settings=test_settings)
        optimizer.optimize(product.id, OptimizationParams(
            demand_annual=3650, order_cost=50, holding_cost_per_unit_year=2,
            lead_time_days=5, service_level=0.95, demand_std_dev=2,
        ))

        stock = projection.apply_optimization(product.id)

        assert stock.reorder_point == 58

    def test_apply_optimization_without_result(self, product, projection):
        with pytest.raises(EntityNotFoundException):
            projection.apply_optimization(product.id)

    def test_health_summary_counts_statuses(self, make_product, projection, ledger):
        a = make_product()
        make_product()
        ledger.append(a.id, MovementType.ENTRY_PURCHASE, 3)

        summary = projection.health_summary()

        assert summary["total_products"] == 2
        assert summary["depleted"]["count"] == 1
        assert summary["normal"]["count"] == 1
        assert summary["normal"]["pct"] == 50.0


class TestApplyDelta:

    def test_negative_result_is_an_invariant_violation(self, product, projection):
        stock = projection.get(product.id)
        with pytest.raises(StockInvariantViolation):
            projection.apply_delta(stock, -1)


class TestReconcile:

    def test_consistent_after_movements(self, product, projection, ledger, published):
        ledger.append(product.id, MovementType.ENTRY_PURCHASE, 9)
        sale = ledger.append(product.id, MovementType.EXIT_SALE, 4)
        ledger.void(sale.id)

        report = projection.reconcile(product.id)

        assert report.consistent
        assert report.cached_available == report.ledger_available == report.tail_balance == 9
        assert not any(isinstance(e, StockIntegrityViolationEvent) for e in published)

    def test_mismatch_is_reported_not_corrected(self, db, product, projection, ledger, published, caplog):
        ledger.append(product.id, MovementType.ENTRY_PURCHASE, 9)
        stock = projection.get(product.id)
        stock.available = 99
        db.commit()

        with caplog.at_level("ERROR"):
            report = projection.reconcile(product.id)

        assert not report.consistent
        assert report.ledger_available == 9
        assert projection.get(product.id).available == 99
        violations = [e for e in published if isinstance(e, StockIntegrityViolationEvent)]
        assert len(violations) == 1
        assert violations[0].cached_available == 99
        assert "stock_integrity_violation" in caplog.text

    def test_reconcile_all_covers_every_product(self, make_product, projection):
        make_product()
        make_product()
        assert len(projection.reconcile_all()) == 2
