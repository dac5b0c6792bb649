"""
Historical volume series models.

``HistoricalPoint`` is one observed monthly actual for a vehicle-category
series.  Missing months are carried as ``value=None`` — never as zero, since a
zero is a real observation and would corrupt the regression and growth rates.

``PeriodWindow`` is the split of a point list around the base month: the
non-null actuals up to and including the base month, and the future month keys
to forecast (capped at the horizon).

``HistoricalSeries`` is the series provider's response for one category: the
points plus the base month the provider resolved.
"""

from __future__ import annotations

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from race_forecaster.utils.month_keys import validate_month_key


class HistoricalPoint(BaseModel):
    """One monthly actual.

    Attributes:
        period: Month key ``YYYY-MM``.
        value:  Observed volume, or ``None`` for a gap.  Non-finite inputs
                (NaN, inf) are stored as ``None``.
    """

    model_config = ConfigDict(frozen=True)

    period: str
    value: Optional[float] = None

    @field_validator("period")
    @classmethod
    def validate_period(cls, v: str) -> str:
        return validate_month_key(v)

    @field_validator("value")
    @classmethod
    def drop_non_finite(cls, v: Optional[float]) -> Optional[float]:
        if v is None or not math.isfinite(v):
            return None
        return v


class PeriodWindow(BaseModel):
    """Historical/future partition of a series around a base month.

    Attributes:
        base_month: The partition point (inclusive on the historical side).
        horizon:    Maximum number of future periods.
        historical: Non-null actuals with period <= base_month, in order.
        historical_periods: Month keys matching ``historical`` one-to-one.
        future:     Month keys after base_month, at most ``horizon`` of them.
    """

    model_config = ConfigDict(frozen=True)

    base_month: str
    horizon: int
    historical: list[float] = []
    historical_periods: list[str] = []
    future: list[str] = []

    @model_validator(mode="after")
    def validate_partition(self) -> "PeriodWindow":
        if len(self.historical) != len(self.historical_periods):
            raise ValueError("historical and historical_periods must have equal length.")
        if len(self.future) > max(0, self.horizon):
            raise ValueError(
                f"future has {len(self.future)} periods; horizon is {self.horizon}."
            )
        if any(p > self.base_month for p in self.historical_periods):
            raise ValueError("historical periods must not be after base_month.")
        if any(p <= self.base_month for p in self.future):
            raise ValueError("future periods must be after base_month.")
        return self

    @property
    def has_sufficient_history(self) -> bool:
        """True when at least two actuals are available for trend/growth fitting."""
        return len(self.historical) >= 2


class HistoricalSeries(BaseModel):
    """Series provider response for one category.

    Attributes:
        category:       Canonical category key the values were read from.
        points:         Ordered monthly points (gaps as ``None``).
        base_month:     Base month the provider resolved, if reported.
    """

    model_config = ConfigDict(frozen=True)

    category: str
    points: list[HistoricalPoint] = []
    base_month: Optional[str] = None
