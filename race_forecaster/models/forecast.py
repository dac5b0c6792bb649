"""
Forecast request and output models.

``ForecastMethod`` tags each competing forecast curve.  The string values are
the wire names used in report configuration (``forecast_types``).

``ForecastRequest`` is the orchestrator's input for one (report, category,
base month, horizon, user) combination.  ``ForecastResult`` is one method's
``{month → value}`` curve.  Results are computed fresh per request and never
persisted.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from race_forecaster.models.series import HistoricalPoint
from race_forecaster.utils.month_keys import validate_month_key


class ForecastMethod(StrEnum):
    """Competing forecast curves, in display order."""

    LINEAR = "linear"
    """Ordinary least-squares trend over the historical actuals."""

    SCORE = "score"
    """Survey consensus: all analysts' scores compounded onto the last actual."""

    BUILD_YOUR_OWN = "byof"
    """The requesting analyst's own scores, same method as ``SCORE``."""

    AI = "ai"
    """Externally generated AI forecast, passed through unchanged."""

    CURATED_INSIGHT = "race"
    """Analyst-curated RACE insight values, passed through unchanged."""


class ForecastRequest(BaseModel):
    """Input for one forecast stack computation.

    Attributes:
        graph_id:          Report (graph) primary key.
        base_month:        Last month treated as actual (``YYYY-MM``).
        horizon:           Number of future months to project.
        category:          Vehicle category the series belongs to.
        historical_series: Points for the category; fetched from the data
                           source when ``None``.
        user_email:        Requesting analyst for the build-your-own curve.
    """

    model_config = ConfigDict(frozen=True)

    graph_id: int
    base_month: str
    horizon: int = 6
    category: str = "Total"
    historical_series: Optional[list[HistoricalPoint]] = None
    user_email: Optional[str] = None

    @field_validator("graph_id")
    @classmethod
    def validate_graph_id(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"graph_id must be positive, got {v}.")
        return v

    @field_validator("base_month")
    @classmethod
    def validate_base_month(cls, v: str) -> str:
        return validate_month_key(v)

    @field_validator("horizon")
    @classmethod
    def validate_horizon(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"horizon must be >= 0, got {v}.")
        return v

    @field_validator("user_email")
    @classmethod
    def blank_email_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


class ForecastResult(BaseModel):
    """One method's forecast curve.

    An enabled method that could not compute anything still appears with an
    empty ``by_period`` so callers can tell "disabled" from "no data".
    """

    model_config = ConfigDict(frozen=True)

    method: ForecastMethod
    by_period: dict[str, float] = {}

    @property
    def is_empty(self) -> bool:
        return not self.by_period
