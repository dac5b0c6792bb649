"""
Report configuration models.

``ReportConfig`` is what the orchestrator needs from a report (graph) row:
which forecast methods are switched on and the pre-computed AI / curated
values, which are opaque to this package and only passed through.

``ScoreSettings`` carries the label axis (``year_names``) that score-based
forecasts are plotted on, and the ordered score labels analysts pick from.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from race_forecaster.models.forecast import ForecastMethod


class ReportConfig(BaseModel):
    """Forecast-relevant configuration of one report.

    Attributes:
        graph_id:           Report primary key.
        name:               Display name.
        score_settings_key: Key of the score-settings record for this report;
                            ``None`` falls back to the configured default.
        enabled_methods:    Methods switched on for the report.
        ai_forecast:        Pre-computed AI values ``{period: value}``.
        curated_forecast:   Pre-computed curated values ``{period: value}``.
    """

    model_config = ConfigDict(frozen=True)

    graph_id: int
    name: Optional[str] = None
    score_settings_key: Optional[str] = None
    enabled_methods: frozenset[ForecastMethod] = frozenset()
    ai_forecast: dict[str, float] = {}
    curated_forecast: dict[str, float] = {}

    @field_validator("score_settings_key")
    @classmethod
    def blank_key_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


class ScoreSettings(BaseModel):
    """Label axis and score labels for score-based forecasting.

    Attributes:
        key:          Settings record key.
        year_names:   Ordered period labels (month keys for flash reports).
        score_labels: Ordered labels from lowest (0) to highest (10) score.
    """

    model_config = ConfigDict(frozen=True)

    key: str = "scoreSettings"
    year_names: list[str] = []
    score_labels: list[str] = []
