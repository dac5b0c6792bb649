"""
Linear trend forecaster.

Ordinary least squares over the historical actuals, using the 1-based
position in the series as the independent variable::

    slope     = (nΣxy − ΣxΣy) / (nΣx² − (Σx)²)
    intercept = (Σy − slope·Σx) / n
    forecast  = intercept + slope·(n + k)     for future offset k = 1, 2, ...

Fewer than two actuals cannot define a trend, so the forecaster returns
nothing rather than guessing from a single point.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)

MIN_POINTS = 2


@dataclass(frozen=True)
class LinearForecastPoint:
    """One projected point of the linear trend.

    Attributes:
        period:         Month key being forecast.
        forecast_value: Trend value at this period.
        pct_change:     Fractional change vs the previous value (the last
                        actual for the first point); 0 when the previous
                        value is not positive.
    """

    period: str
    forecast_value: float
    pct_change: float


def fit_trend(values: Sequence[float]) -> tuple[float, float] | None:
    """Return ``(slope, intercept)`` of the OLS fit, or ``None`` if undefined."""
    n = len(values)
    if n < MIN_POINTS:
        return None

    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for i, y in enumerate(values, start=1):
        sum_x += i
        sum_y += y
        sum_xy += i * y
        sum_x2 += i * i

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return None

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def forecast_linear_points(
    historical_values: Sequence[float],
    future_periods: Sequence[str],
) -> list[LinearForecastPoint]:
    """Project the trend onto ``future_periods`` with period-over-period change.

    Args:
        historical_values: Non-null actuals in chronological order.
        future_periods:    Month keys to project, in chronological order.

    Returns:
        One point per future period, or an empty list when fewer than two
        actuals are available.
    """
    fit = fit_trend(historical_values)
    if fit is None:
        logger.debug(
            "Linear trend skipped: %d historical point(s), need %d",
            len(historical_values), MIN_POINTS,
        )
        return []

    slope, intercept = fit
    n = len(historical_values)
    points: list[LinearForecastPoint] = []
    previous = historical_values[-1]
    for k, period in enumerate(future_periods, start=1):
        value = intercept + slope * (n + k)
        pct_change = (value - previous) / previous if previous > 0 else 0.0
        points.append(LinearForecastPoint(period=period, forecast_value=value, pct_change=pct_change))
        previous = value
    return points


def forecast_linear(
    historical_values: Sequence[float],
    future_periods: Sequence[str],
) -> dict[str, float]:
    """Return ``{period: trend value}`` for each future period (empty if n < 2)."""
    return {
        p.period: p.forecast_value
        for p in forecast_linear_points(historical_values, future_periods)
    }
