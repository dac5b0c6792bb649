"""
Growth-compounding forecaster.

Turns a per-period score series (0..10 scale) into forecasts by scaling the
average historical month-over-month growth rate:

  1. ``last_actual``  — last finite value in the history (0 if none).
  2. ``avg_growth``   — mean of ``(curr − prev) / prev`` over consecutive
     pairs, skipping pairs where ``prev`` is 0 or either value is missing.
  3. For each score:  ``growth = avg_growth · score / 10`` and
     ``forecast = previous · (1 + growth)``, where ``previous`` starts at
     ``last_actual`` and is replaced by each new forecast (compounding).

A score of 10 continues the historical growth rate; a score of 0 holds the
last actual flat.  Negative average growth produces contracting forecasts,
which are kept as-is.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

SCORE_SCALE = 10.0
MIN_HISTORY = 2


@dataclass(frozen=True)
class GrowthForecastPoint:
    """One compounded forecast step.

    Attributes:
        period_offset:  1-based offset after the last actual.
        growth_pct:     Growth applied at this step, in percent (2 dp).
        forecast_value: Compounded forecast (2 dp).
        change:         ``forecast_value − last_actual`` (2 dp).
    """

    period_offset: int
    growth_pct: float
    forecast_value: float
    change: float


def _is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def last_actual(values: Sequence[Optional[float]]) -> float:
    """Return the last finite value in ``values``, or 0.0 if there is none."""
    for value in reversed(values):
        if _is_finite(value):
            return float(value)  # type: ignore[arg-type]
    return 0.0


def average_growth_rate(values: Sequence[Optional[float]]) -> float:
    """Mean period-over-period relative change; 0.0 when no pair is usable."""
    rates: list[float] = []
    for prev, curr in zip(values, values[1:]):
        if not _is_finite(prev) or not _is_finite(curr) or prev == 0:
            continue
        rates.append((curr - prev) / prev)  # type: ignore[operator]
    return sum(rates) / len(rates) if rates else 0.0


def forecast_from_scores(
    historical_values: Sequence[Optional[float]],
    period_scores: Sequence[Optional[float]],
) -> list[GrowthForecastPoint]:
    """Compound score-scaled historical growth onto the last actual.

    Args:
        historical_values: Actuals in chronological order.
        period_scores:     One score per future period, aligned in order.
                           Missing scores count as 0.

    Returns:
        One ``GrowthForecastPoint`` per score, or an empty list when fewer
        than two actuals or no scores are given.
    """
    if len(historical_values) < MIN_HISTORY or not period_scores:
        return []

    base = last_actual(historical_values)
    avg_growth = average_growth_rate(historical_values)

    points: list[GrowthForecastPoint] = []
    previous = base
    for offset, score in enumerate(period_scores, start=1):
        score_pct = (score if _is_finite(score) else 0.0) / SCORE_SCALE  # type: ignore[operator]
        growth = avg_growth * score_pct
        forecast = previous * (1 + growth)
        previous = forecast
        points.append(
            GrowthForecastPoint(
                period_offset=offset,
                growth_pct=round(growth * 100, 2),
                forecast_value=round(forecast, 2),
                change=round(forecast - base, 2),
            )
        )
    return points
