"""
RACE HTTP API client.

Endpoints (all GET, JSON):
  /api/graphs?id={graphId}
  /api/questions?graphId={graphId}
  /api/scoreSettings?key={key}&baseMonth={YYYY-MM}&horizon={n}
  /api/saveScores?graphId={graphId}&basePeriod={YYYY-MM}[&email={user}]
  /api/flash-reports/overall-chart-data?month={YYYY-MM}&horizon={n}

Credential setup (.env, gitignored):
  RACE_FORECASTER_API_BASE_URL=https://race.example.com
  RACE_FORECASTER_API_TOKEN=your_token_here   # sent as a Bearer token

One ``httpx.AsyncClient`` is shared by every open ``async with`` block so the
orchestrator's concurrent fetches (and concurrent orchestrations) share a
connection pool.  The client never retries; a failed request surfaces
immediately as ``UpstreamFetchFailure``.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Optional

import httpx

from race_forecaster.config import ApiConfig
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

logger = logging.getLogger(__name__)


class RaceApiClient(ForecastDataSource):
    """Async client for the RACE Analytics HTTP API.

    Usage::

        client = RaceApiClient(config.api)
        async with client:
            questions = await client.fetch_questions(12)

    Attributes:
        config:    API connection settings.
        transport: Optional httpx transport (``httpx.MockTransport`` in tests).
    """

    GRAPHS_PATH: ClassVar[str] = "/api/graphs"
    QUESTIONS_PATH: ClassVar[str] = "/api/questions"
    SCORE_SETTINGS_PATH: ClassVar[str] = "/api/scoreSettings"
    SUBMISSIONS_PATH: ClassVar[str] = "/api/saveScores"
    SERIES_PATH: ClassVar[str] = "/api/flash-reports/overall-chart-data"

    def __init__(
        self,
        config: ApiConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._open_sessions = 0

    # ── Connection lifecycle ──────────────────────────────────────────────────

    async def __aenter__(self) -> "RaceApiClient":
        # Nested and concurrent ``async with`` blocks share one AsyncClient;
        # it is opened by the first enter and closed by the last exit.
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.config.api_token:
                headers["Authorization"] = f"Bearer {self.config.api_token}"
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers=headers,
                timeout=self.config.timeout_seconds,
                transport=self.transport,
            )
        self._open_sessions += 1
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self._open_sessions -= 1
        if self._open_sessions == 0 and self._client is not None:
            client, self._client = self._client, None
            await client.aclose()

    async def _get_json(self, resource: str, path: str, params: dict[str, Any]) -> Any:
        """GET ``path`` and decode JSON, wrapping any failure for ``resource``."""
        if self._client is None:
            raise RuntimeError("RaceApiClient must be used inside 'async with'.")
        try:
            resp = await self._client.get(path, params=params)
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("GET %s failed for %s: %s", path, resource, exc)
            raise UpstreamFetchFailure({resource: exc}) from exc

    def _parse(self, resource: str, parser: Any, *args: Any) -> Any:
        try:
            return parser(*args)
        except ValueError as exc:
            logger.error("Malformed %s payload: %s", resource, exc)
            raise UpstreamFetchFailure({resource: exc}) from exc

    # ── ForecastDataSource ────────────────────────────────────────────────────

    async def fetch_report_config(self, graph_id: int) -> ReportConfig:
        payload = await self._get_json("report", self.GRAPHS_PATH, {"id": graph_id})
        return self._parse("report", parse_report_config, payload, graph_id)

    async def fetch_questions(self, graph_id: int) -> list[DriverQuestion]:
        payload = await self._get_json("questions", self.QUESTIONS_PATH, {"graphId": graph_id})
        return self._parse("questions", parse_questions, payload)

    async def fetch_score_settings(
        self,
        key: str,
        base_month: str,
        horizon: int,
    ) -> ScoreSettings:
        params = {"key": key, "baseMonth": base_month, "horizon": horizon}
        payload = await self._get_json("score_settings", self.SCORE_SETTINGS_PATH, params)
        return self._parse("score_settings", parse_score_settings, payload, key)

    async def fetch_submissions(
        self,
        graph_id: int,
        base_period: str,
        user_email: Optional[str] = None,
    ) -> list[Submission]:
        resource = "user_submissions" if user_email else "submissions"
        params: dict[str, Any] = {"graphId": graph_id, "basePeriod": base_period}
        if user_email:
            params["email"] = user_email
        payload = await self._get_json(resource, self.SUBMISSIONS_PATH, params)
        return self._parse(resource, parse_submissions, payload)

    async def fetch_historical_series(
        self,
        category: str,
        base_month: str,
        horizon: int,
    ) -> HistoricalSeries:
        params = {"month": base_month, "horizon": horizon}
        payload = await self._get_json("series", self.SERIES_PATH, params)
        return self._parse("series", parse_historical_series, payload, category)
