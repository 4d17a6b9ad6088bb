from datetime import datetime, timedelta

import pandas as pd
import pytest

from stockledger.ml.demand_strategies import (
    ExponentialSmoothingStrategy,
    HistoricalDemandForecastProvider,
    MovingAverageStrategy,
    build_daily_series,
    get_demand_strategy,
)
from stockledger.models.enums import MovementType
from stockledger.services.movement_ledger import MovementMetadata


def test_daily_series_fills_missing_days_with_zero():
    start = datetime(2026, 3, 1)
    end = datetime(2026, 3, 5)
    rows = [(datetime(2026, 3, 1, 9), 4), (datetime(2026, 3, 1, 17), 1), (datetime(2026, 3, 4, 12), 3)]

    series = build_daily_series(rows, start, end)

    assert list(series.values) == [5.0, 0.0, 0.0, 3.0, 0.0]


def test_moving_average_weights_recent_days():
    series = pd.Series([0.0] * 20 + [10.0] * 10)
    flat = pd.Series([4.0] * 30)

    assert MovingAverageStrategy().daily_rate(flat) == pytest.approx(4.0)
    assert MovingAverageStrategy().daily_rate(series, {"window": 30}) > series.mean()


def test_exponential_smoothing_falls_back_on_short_history():
    short = pd.Series([2.0, 4.0, 6.0])
    assert ExponentialSmoothingStrategy().daily_rate(short) == MovingAverageStrategy().daily_rate(short)


def test_factory():
    assert get_demand_strategy("exp_smoothing").model_id == "exp_smoothing"
    with pytest.raises(ValueError):
        get_demand_strategy("crystal_ball")


class TestHistoricalProvider:

    def test_without_history_uses_default_deviation(self, db, product):
        forecast = HistoricalDemandForecastProvider(db).get_demand_forecast(product.id, 90)

        assert forecast.total_quantity == 0
        assert forecast.demand_std_dev == 5.0

    def test_uses_sales_and_internal_use_only(self, db, ledger, product):
        now = datetime.utcnow()
        ledger.append(product.id, MovementType.ENTRY_PURCHASE, 500, MovementMetadata(occurred_at=now - timedelta(days=40)))
        for days_ago in range(1, 31):
            ledger.append(
                product.id, MovementType.EXIT_SALE, 6,
                MovementMetadata(occurred_at=now - timedelta(days=days_ago)),
            )
        ledger.append(product.id, MovementType.EXIT_INTERNAL_USE, 2, MovementMetadata(occurred_at=now - timedelta(days=1)))
        shrink = ledger.append(product.id, MovementType.EXIT_SHRINKAGE, 50, MovementMetadata(occurred_at=now))
        voided = ledger.append(product.id, MovementType.EXIT_SALE, 100, MovementMetadata(occurred_at=now))
        ledger.void(voided.id)

        provider = HistoricalDemandForecastProvider(db, strategy=MovingAverageStrategy(), history_days=180)
        forecast = provider.get_demand_forecast(product.id, 90)

        assert shrink.movement_type == "exit_shrinkage"
        assert forecast.method == "moving_average"
        assert 0 < forecast.daily_demand < 10
        assert forecast.demand_std_dev >= 1.0
        assert forecast.annual_demand == pytest.approx(forecast.daily_demand * 365)

    def test_std_dev_is_floored(self, db, ledger, product):
        now = datetime.utcnow()
        ledger.append(product.id, MovementType.ENTRY_PURCHASE, 5, MovementMetadata(occurred_at=now - timedelta(days=3)))
        ledger.append(product.id, MovementType.EXIT_SALE, 1, MovementMetadata(occurred_at=now - timedelta(days=2)))

        forecast = HistoricalDemandForecastProvider(db, history_days=180, min_std_dev=1.0).get_demand_forecast(
            product.id, 30,
        )

        assert forecast.demand_std_dev == 1.0
