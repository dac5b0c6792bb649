"""
Data-source contract for the forecast stack.

The orchestrator never talks to HTTP or files directly; it awaits the five
fetches below on a ``ForecastDataSource``.  Implementations:

  RaceApiClient     — the RACE HTTP API (``race_api_client``)
  StaticDataSource  — in-memory payloads or a JSON fixture file (``static_source``)

Sources are async context managers so a client can hold one connection pool
for the duration of an orchestration::

    async with source:
        report = await source.fetch_report_config(graph_id)

Every fetch failure (transport, status, malformed payload) is raised as
``UpstreamFetchFailure`` naming the resource that failed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Optional

from race_forecaster.models.report import ReportConfig, ScoreSettings
from race_forecaster.models.series import HistoricalSeries
from race_forecaster.models.survey import DriverQuestion, Submission


class UpstreamFetchFailure(RuntimeError):
    """Raised when one or more collaborator fetches fail.

    Attributes:
        failures: Resource name → underlying exception, e.g.
            ``{"questions": httpx.ConnectError(...)}``.
    """

    def __init__(self, failures: Mapping[str, BaseException]) -> None:
        self.failures: dict[str, BaseException] = dict(failures)
        detail = "; ".join(f"{name}: {exc}" for name, exc in self.failures.items())
        super().__init__(
            f"Upstream fetch failed for {len(self.failures)} resource(s): {detail}"
        )


class ForecastDataSource(ABC):
    """Abstract provider of everything the forecast stack consumes."""

    async def __aenter__(self) -> "ForecastDataSource":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    @abstractmethod
    async def fetch_report_config(self, graph_id: int) -> ReportConfig:
        """Enabled methods and pass-through AI / curated values for a report."""
        ...

    @abstractmethod
    async def fetch_questions(self, graph_id: int) -> list[DriverQuestion]:
        """Driver and barrier questions configured for a report."""
        ...

    @abstractmethod
    async def fetch_score_settings(
        self,
        key: str,
        base_month: str,
        horizon: int,
    ) -> ScoreSettings:
        """Label axis (``year_names``) and score labels for score forecasting."""
        ...

    @abstractmethod
    async def fetch_submissions(
        self,
        graph_id: int,
        base_period: str,
        user_email: Optional[str] = None,
    ) -> list[Submission]:
        """Submissions for a report and base period, optionally for one analyst."""
        ...

    @abstractmethod
    async def fetch_historical_series(
        self,
        category: str,
        base_month: str,
        horizon: int,
    ) -> HistoricalSeries:
        """Monthly actuals (and future months) for one vehicle category."""
        ...
