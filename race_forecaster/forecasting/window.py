"""
Historical/future partitioning of a monthly series.

``partition_series()`` walks the points once, in order:

- period <= base month with a value  → historical actual
- period <= base month without value → skipped (gaps are never interpolated)
- period >  base month               → future month to forecast

Future months are capped at ``horizon``.
"""

from __future__ import annotations

from typing import Sequence

from race_forecaster.models.series import HistoricalPoint, PeriodWindow


def partition_series(
    points: Sequence[HistoricalPoint],
    base_month: str,
    horizon: int,
) -> PeriodWindow:
    """Split ``points`` around ``base_month``.

    Args:
        points:     Monthly points in chronological order.
        base_month: Last month treated as actual.
        horizon:    Maximum number of future months kept.

    Returns:
        A validated ``PeriodWindow``.
    """
    historical: list[float] = []
    historical_periods: list[str] = []
    future: list[str] = []

    for point in sorted(points, key=lambda p: p.period):
        if point.period <= base_month:
            if point.value is not None:
                historical.append(point.value)
                historical_periods.append(point.period)
        else:
            future.append(point.period)

    cap = max(0, horizon)
    return PeriodWindow(
        base_month=base_month,
        horizon=cap,
        historical=historical,
        historical_periods=historical_periods,
        future=future[:cap],
    )
