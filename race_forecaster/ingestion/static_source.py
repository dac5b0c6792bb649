"""
In-memory data source — serves the forecast stack from already-fetched data.

Used for offline runs (``race-forecaster forecast-file``), fixtures and tests.
A fixture file holds the raw API payloads under one JSON object, so captured
responses can be replayed as-is::

    {
      "graph":         { ...  /api/graphs response ... },
      "questions":     [ ... /api/questions response ... ],
      "scoreSettings": { ... /api/scoreSettings response ... },
      "submissions":   { "submissions": [ ... ] },
      "series":        { "data": [ ... ], "meta": { ... } }
    }

Submissions are filtered by base period and (optionally) user email the same
way the ``/api/saveScores`` endpoint filters them.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from race_forecaster.ingestion.base import ForecastDataSource, UpstreamFetchFailure
from race_forecaster.ingestion.payloads import (
    parse_historical_series,
    parse_questions,
    parse_report_config,
    parse_score_settings,
    parse_submissions,
)
from race_forecaster.models.report import ReportConfig, ScoreSettings
from race_forecaster.models.series import HistoricalSeries
from race_forecaster.models.survey import DriverQuestion, Submission
from race_forecaster.taxonomy.vehicle_category import normalize_category

logger = logging.getLogger(__name__)


class StaticDataSource(ForecastDataSource):
    """Data source backed by models held in memory.

    A ``None`` field means the resource is unavailable; fetching it raises
    ``UpstreamFetchFailure`` just like a failed HTTP call would.

    ``series`` holds one category.  A source built from payloads also keeps
    the raw series payload and parses it per call for the requested category.
    """

    def __init__(
        self,
        report: Optional[ReportConfig] = None,
        questions: Optional[list[DriverQuestion]] = None,
        score_settings: Optional[ScoreSettings] = None,
        submissions: Optional[list[Submission]] = None,
        series: Optional[HistoricalSeries] = None,
        series_payload: Any = None,
    ) -> None:
        self.report = report
        self.questions = questions
        self.score_settings = score_settings
        self.submissions = submissions
        self.series = series
        self.series_payload = series_payload

    @classmethod
    def from_payloads(cls, payloads: dict[str, Any], category: str = "Total") -> "StaticDataSource":
        """Build a source from raw API payloads keyed as in a fixture file.

        ``category`` selects the series parsed up front into ``series``; every
        payload is validated here, so a malformed file fails at load time.

        Raises:
            ValueError: If any payload is malformed.
        """
        graph = payloads.get("graph")
        questions = payloads.get("questions")
        settings = payloads.get("scoreSettings")
        submissions = payloads.get("submissions")
        series = payloads.get("series")

        return cls(
            report=None if graph is None else parse_report_config(graph),
            questions=None if questions is None else parse_questions(questions),
            score_settings=None if settings is None else parse_score_settings(settings, "scoreSettings"),
            submissions=None if submissions is None else parse_submissions(submissions),
            series=None if series is None else parse_historical_series(series, category),
            series_payload=series,
        )

    @classmethod
    def from_fixture_file(cls, path: Path, category: str = "Total") -> "StaticDataSource":
        """Load a fixture file (see module docstring).

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            ValueError: If the file is not valid JSON or a payload is malformed.
        """
        payloads = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(payloads, dict):
            raise ValueError(f"Fixture {path} must contain a JSON object.")
        logger.info("Loaded forecast fixture %s (%s)", path, ", ".join(sorted(payloads)))
        return cls.from_payloads(payloads, category=category)

    @staticmethod
    def _require(resource: str, value: Any) -> Any:
        if value is None:
            raise UpstreamFetchFailure({resource: LookupError(f"no {resource} data loaded")})
        return value

    async def fetch_report_config(self, graph_id: int) -> ReportConfig:
        return self._require("report", self.report)

    async def fetch_questions(self, graph_id: int) -> list[DriverQuestion]:
        questions = self._require("questions", self.questions)
        return [q for q in questions if q.graph_id in (None, graph_id)]

    async def fetch_score_settings(
        self,
        key: str,
        base_month: str,
        horizon: int,
    ) -> ScoreSettings:
        return self._require("score_settings", self.score_settings)

    async def fetch_submissions(
        self,
        graph_id: int,
        base_period: str,
        user_email: Optional[str] = None,
    ) -> list[Submission]:
        resource = "user_submissions" if user_email else "submissions"
        submissions = self._require(resource, self.submissions)
        return [
            s for s in submissions
            if s.graph_id in (None, graph_id)
            and s.base_period in (None, base_period)
            and (user_email is None or s.user_email == user_email)
        ]

    async def fetch_historical_series(
        self,
        category: str,
        base_month: str,
        horizon: int,
    ) -> HistoricalSeries:
        if self.series_payload is not None:
            try:
                return parse_historical_series(self.series_payload, category)
            except ValueError as exc:
                raise UpstreamFetchFailure({"series": exc}) from exc

        series = self._require("series", self.series)
        canonical = normalize_category(category)
        key = canonical.value if canonical is not None else category
        if series.category != key:
            raise UpstreamFetchFailure(
                {"series": LookupError(f"no {key!r} series loaded (have {series.category!r})")}
            )
        return series
