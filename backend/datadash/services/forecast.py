# datadash/services/forecast.py

from datetime import date, timedelta
from typing import List, Sequence, Tuple

import numpy as np

from datadash.schemas.analytics import DailyTrend, ForecastPoint, TrendAnalysis, TrendForecast

DEFAULT_HORIZON_DAYS = 7
MIN_BUCKETS = 2


def _ols(totals: Sequence[float]) -> Tuple[float, float]:
    """Least squares of daily total on day index (x_i = i)."""
    y = np.asarray(totals, dtype=float)
    n = len(y)
    x = np.arange(n, dtype=float)
    sum_x, sum_y = x.sum(), y.sum()
    sum_xy, sum_xx = (x * y).sum(), (x * x).sum()
    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n
    return float(slope), float(intercept)


def _direction(slope: float) -> str:
    if slope > 0:
        return "increasing"
    if slope < 0:
        return "decreasing"
    return "stable"


def confidence_for(slope: float) -> float:
    # Heuristic kept for compatibility with existing dashboards, not a prediction interval.
    return max(0.1, min(0.9, 1 - abs(slope) * 0.1))


def fit_trend(trends: Sequence[DailyTrend]) -> TrendAnalysis:
    if len(trends) < MIN_BUCKETS:
        return TrendAnalysis()
    slope, intercept = _ols([t.total for t in trends])
    return TrendAnalysis(slope=slope, intercept=intercept, direction=_direction(slope))


def forecast(trends: Sequence[DailyTrend], horizon_days: int = DEFAULT_HORIZON_DAYS) -> TrendForecast:
    """Project the daily trend line `horizon_days` ahead of the last bucket."""
    fit = fit_trend(trends)
    if len(trends) < MIN_BUCKETS:
        return TrendForecast()

    n = len(trends)
    last_day = date.fromisoformat(trends[-1].date)
    confidence = confidence_for(fit.slope)

    points: List[ForecastPoint] = []
    for i in range(1, horizon_days + 1):
        future_index = n + i - 1
        predicted = max(0.0, fit.intercept + fit.slope * future_index)
        points.append(
            ForecastPoint(
                date=(last_day + timedelta(days=i)).isoformat(),
                predicted_value=round(predicted, 2),
                confidence=confidence,
            )
        )

    return TrendForecast(
        slope=fit.slope,
        intercept=fit.intercept,
        direction=fit.direction,
        forecast=points,
    )
