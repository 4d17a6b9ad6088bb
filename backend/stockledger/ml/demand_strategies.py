"""
Demand Estimation Strategies — Strategy Pattern

Each strategy turns a daily demand series into a daily-rate estimate for a
horizon. ``HistoricalDemandForecastProvider`` builds that series from the
movement ledger and is the default ForecastProvider for reorder optimization.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict, Optional, Type

import numpy as np
import pandas as pd
from sqlalchemy.orm import Session

from stockledger.core.interfaces import DemandForecast
from stockledger.models.enums import MovementType
from stockledger.repositories.movement_repository import MovementRepository


# ── Abstract Strategy ────────────────────────────────────────────────────────

class BaseDemandStrategy(ABC):

    @property
    @abstractmethod
    def model_id(self) -> str:
        ...

    @property
    def min_history_days(self) -> int:
        return 1

    @abstractmethod
    def daily_rate(self, series: pd.Series, params: Optional[dict] = None) -> float:
        """
        Args:
            series: daily demand indexed by date, gaps already filled with 0

        Returns:
            Expected units per day, never negative.
        """
        ...


# ── Concrete Strategy 1: Moving Average ──────────────────────────────────────

class MovingAverageStrategy(BaseDemandStrategy):
    """Linearly weighted mean of the trailing window; recent days weigh more."""

    @property
    def model_id(self) -> str:
        return "moving_average"

    def daily_rate(self, series: pd.Series, params: Optional[dict] = None) -> float:
        params = params or {}
        window = max(7, min(int(params.get("window", 30)), 365))
        window = min(window, len(series))
        if window == 0:
            return 0.0
        recent = series.tail(window).to_numpy(dtype=float)
        weights = np.arange(1, window + 1, dtype=float)
        return max(0.0, float(np.average(recent, weights=weights)))


# ── Concrete Strategy 2: Exponential Smoothing ───────────────────────────────

class ExponentialSmoothingStrategy(BaseDemandStrategy):
    """Simple exponential smoothing; falls back to moving average on short history."""

    @property
    def model_id(self) -> str:
        return "exp_smoothing"

    @property
    def min_history_days(self) -> int:
        return 14

    def daily_rate(self, series: pd.Series, params: Optional[dict] = None) -> float:
        params = params or {}
        if len(series) < self.min_history_days:
            return MovingAverageStrategy().daily_rate(series, params)
        alpha = max(0.05, min(0.95, float(params.get("alpha", 0.3))))
        return max(0.0, float(series.ewm(alpha=alpha, adjust=False).mean().iloc[-1]))


# ── Factory ──────────────────────────────────────────────────────────────────

_STRATEGIES: Dict[str, Type[BaseDemandStrategy]] = {
    "moving_average": MovingAverageStrategy,
    "exp_smoothing": ExponentialSmoothingStrategy,
}


def get_demand_strategy(model_id: str = "moving_average") -> BaseDemandStrategy:
    try:
        return _STRATEGIES[model_id]()
    except KeyError:
        raise ValueError(f"Unknown demand strategy '{model_id}'. Available: {sorted(_STRATEGIES)}")


# ── Ledger-backed ForecastProvider ───────────────────────────────────────────

def build_daily_series(rows, start: datetime, end: datetime) -> pd.Series:
    """Sum quantities per calendar day over [start, end]; days without demand are 0."""
    index = pd.date_range(start.date(), end.date(), freq="D")
    if not rows:
        return pd.Series(0.0, index=index)
    df = pd.DataFrame(rows, columns=["ts", "qty"])
    daily = df.groupby(pd.to_datetime(df["ts"]).dt.normalize())["qty"].sum()
    return daily.reindex(index, fill_value=0).astype(float)


class HistoricalDemandForecastProvider:

    def __init__(
        self,
        db: Session,
        strategy: Optional[BaseDemandStrategy] = None,
        history_days: int = 180,
        default_std_dev: float = 5.0,
        min_std_dev: float = 1.0,
    ):
        self._repo = MovementRepository(db)
        self._strategy = strategy or MovingAverageStrategy()
        self._history_days = history_days
        self._default_std_dev = default_std_dev
        self._min_std_dev = min_std_dev

    def get_demand_forecast(self, product_id: int, horizon_days: int) -> DemandForecast:
        end = datetime.utcnow()
        start = end - timedelta(days=self._history_days)
        rows = self._repo.demand_rows(
            product_id, start, [t.value for t in MovementType.demand_types()],
        )
        series = build_daily_series(rows, start, end)

        daily = self._strategy.daily_rate(series) if rows else 0.0
        if rows and len(series) > 1:
            std_dev = max(float(np.std(series.to_numpy(), ddof=1)), self._min_std_dev)
        else:
            std_dev = self._default_std_dev

        return DemandForecast(
            product_id=product_id,
            horizon_days=horizon_days,
            total_quantity=daily * horizon_days,
            demand_std_dev=std_dev,
            method=self._strategy.model_id,
        )
