"""
Forecast stack orchestration.

``ForecastStackOrchestrator`` turns one ``ForecastRequest`` into one
``ForecastResult`` per enabled forecast method:

  Step 1 — Fetch:      Report config, questions, all submissions, the user's
                       submissions and (when not supplied) the historical
                       series are fetched concurrently.  Score settings are
                       chained after the report config because the report
                       names the settings key.
  Step 2 — Partition:  Split the series around the base month into
                       historical actuals and future months (``PeriodWindow``).
  Step 3 — Gate:       Read enabled methods from the report config.  ``linear``
                       is force-disabled for the forecast stack whatever the
                       report says (product rule, see FORCE_DISABLED_METHODS).
  Step 4 — Compute:    Per enabled method:
                         linear → OLS trend over the future months
                         score  → all submissions aggregated on the label
                                  axis, compounded onto the last actual
                         byof   → same over the requesting user's submissions
                         ai / race → report values passed through
  Step 5 — Merge:      One result per enabled method in ``ForecastMethod``
                       order; methods with nothing to show keep an empty map.

Failure semantics
-----------------
- Any fetch failure:       Every failed fetch is collected and raised as one
                           ``UpstreamFetchFailure``; nothing is computed.
- Too little history:      Not an error; growth curves come back empty and a
                           warning is logged.
- No submissions:          Not an error; the score curves come back empty.

No retries are performed.  Callers retry the whole orchestration.

``build_forecast_stack()`` is the pure part (steps 2–5) and can be driven
directly with already-fetched ``ForecastInputs``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional, Sequence

from race_forecaster.config import ForecastConfig
from race_forecaster.forecasting.growth import forecast_from_scores
from race_forecaster.forecasting.linear import forecast_linear
from race_forecaster.forecasting.scores import aggregate, is_contributing
from race_forecaster.forecasting.window import partition_series
from race_forecaster.ingestion.base import ForecastDataSource, UpstreamFetchFailure
from race_forecaster.models.forecast import ForecastMethod, ForecastRequest, ForecastResult
from race_forecaster.models.report import ReportConfig, ScoreSettings
from race_forecaster.models.series import HistoricalPoint, PeriodWindow
from race_forecaster.models.survey import DriverQuestion, Submission
from race_forecaster.utils.month_keys import future_month_labels

logger = logging.getLogger(__name__)

# The forecast stack never shows the linear trend, even when a report enables
# it.  The trend is still computed by forecast_linear() for other callers.
FORCE_DISABLED_METHODS: frozenset[ForecastMethod] = frozenset({ForecastMethod.LINEAR})


def resolve_enabled_methods(configured: frozenset[ForecastMethod]) -> frozenset[ForecastMethod]:
    """Return the configured methods minus the force-disabled ones."""
    return frozenset(configured) - FORCE_DISABLED_METHODS


# ── Data containers ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ForecastInputs:
    """Everything fetched for one orchestration.

    Attributes:
        report:           Report configuration (methods, pass-through values).
        questions:        The report's driver/barrier questions.
        score_settings:   Label axis for score-based curves.
        all_submissions:  Every analyst's submissions for the base period.
        user_submissions: The requesting user's submissions (empty if no user).
        series_points:    Historical series for the requested category.
    """

    report:           ReportConfig
    questions:        list[DriverQuestion]
    score_settings:   ScoreSettings
    all_submissions:  list[Submission]
    user_submissions: list[Submission]
    series_points:    list[HistoricalPoint]


@dataclass(frozen=True)
class ForecastStack:
    """Complete output of one orchestration.

    ``results`` is what ``compute_forecast_stack()`` returns; the other fields
    are kept for display and export.

    Attributes:
        request:         The request that was computed.
        window:          Historical/future partition of the series.
        period_labels:   Label axis the score curves are plotted on.
        survey_scores:   Aggregated scores over all submissions, per label.
        byof_scores:     Aggregated scores over the user's submissions, per label.
        enabled_methods: Methods shown after force-disabling.
        results:         One result per enabled method, in ``ForecastMethod`` order.
        score_labels:    Ordered score labels from the score settings.
    """

    request:         ForecastRequest
    window:          PeriodWindow
    period_labels:   list[str]
    survey_scores:   list[float]
    byof_scores:     list[float]
    enabled_methods: frozenset[ForecastMethod]
    results:         list[ForecastResult] = field(default_factory=list)
    score_labels:    list[str] = field(default_factory=list)

    def result_for(self, method: ForecastMethod) -> Optional[ForecastResult]:
        """Return the result for ``method``, or None if it is not enabled."""
        for result in self.results:
            if result.method == method:
                return result
        return None


# ── Pure computation ──────────────────────────────────────────────────────────

def score_axis(settings: ScoreSettings, base_month: str, horizon: int) -> list[str]:
    """Label axis for score curves.

    Uses the settings' ``year_names``; when the provider returned none, falls
    back to the months after ``base_month`` (none for a zero horizon).
    """
    if settings.year_names:
        return list(settings.year_names)
    if horizon <= 0:
        return []
    return future_month_labels(base_month, horizon)


def growth_curve(
    historical: Sequence[float],
    labels: Sequence[str],
    scores: Sequence[float],
) -> dict[str, float]:
    """Compound ``scores`` onto ``historical`` and key the forecasts by label."""
    points = forecast_from_scores(historical, scores)
    return {label: point.forecast_value for label, point in zip(labels, points)}


def compute_method(
    method: ForecastMethod,
    window: PeriodWindow,
    labels: Sequence[str],
    survey_scores: Sequence[float],
    byof_scores: Sequence[float],
    report: ReportConfig,
) -> dict[str, float]:
    """Compute one method's ``{period: value}`` map.

    Empty score sequences mean nobody contributed and yield an empty map.
    """
    if method == ForecastMethod.LINEAR:
        return forecast_linear(window.historical, window.future)
    if method == ForecastMethod.SCORE:
        return growth_curve(window.historical, labels, survey_scores) if survey_scores else {}
    if method == ForecastMethod.BUILD_YOUR_OWN:
        return growth_curve(window.historical, labels, byof_scores) if byof_scores else {}
    if method == ForecastMethod.AI:
        return dict(report.ai_forecast)
    if method == ForecastMethod.CURATED_INSIGHT:
        return dict(report.curated_forecast)
    raise ValueError(f"Unknown forecast method: {method!r}")


def _contributing_scores(
    submissions: Sequence[Submission],
    questions: Sequence[DriverQuestion],
    labels: Sequence[str],
) -> list[float]:
    """Aggregate scores, or [] when no submission contributes."""
    by_id = {q.id: q for q in questions}
    if not any(is_contributing(s, by_id) for s in submissions):
        return []
    return aggregate(submissions, questions, labels)


def build_forecast_stack(request: ForecastRequest, inputs: ForecastInputs) -> ForecastStack:
    """Compute the forecast stack from already-fetched inputs.

    Args:
        request: The forecast request.
        inputs:  Fetched collaborator data.

    Returns:
        A ``ForecastStack`` with one result per enabled method.
    """
    window = partition_series(inputs.series_points, request.base_month, request.horizon)
    if not window.has_sufficient_history:
        logger.warning(
            "Insufficient history for graph %d / %s at %s: %d actual(s); "
            "growth curves will be empty",
            request.graph_id, request.category, request.base_month, len(window.historical),
        )

    enabled = resolve_enabled_methods(inputs.report.enabled_methods)
    dropped = inputs.report.enabled_methods & FORCE_DISABLED_METHODS
    if dropped:
        logger.info("Force-disabled method(s) ignored: %s", sorted(m.value for m in dropped))

    labels = score_axis(inputs.score_settings, request.base_month, request.horizon)
    survey_scores = _contributing_scores(inputs.all_submissions, inputs.questions, labels)
    byof_scores = (
        _contributing_scores(inputs.user_submissions, inputs.questions, labels)
        if request.user_email else []
    )

    results = [
        ForecastResult(
            method=method,
            by_period=compute_method(
                method, window, labels, survey_scores, byof_scores, inputs.report
            ),
        )
        for method in ForecastMethod
        if method in enabled
    ]

    return ForecastStack(
        request=request,
        window=window,
        period_labels=list(labels),
        survey_scores=survey_scores,
        byof_scores=byof_scores,
        enabled_methods=enabled,
        results=results,
        score_labels=list(inputs.score_settings.score_labels),
    )


# ── Orchestrator ──────────────────────────────────────────────────────────────

class ForecastStackOrchestrator:
    """Fetches inputs from a data source and builds the forecast stack.

    Usage::

        orchestrator = ForecastStackOrchestrator(RaceApiClient(config.api), config.forecast)
        stack = orchestrator.run(request)

    Attributes:
        source: Collaborator data source (HTTP client or static fixture).
        config: Forecast settings; supplies the default score-settings key.
    """

    def __init__(
        self,
        source: ForecastDataSource,
        config: Optional[ForecastConfig] = None,
    ) -> None:
        self.source = source
        self.config = config or ForecastConfig()

    async def _fetch_report_and_settings(
        self, request: ForecastRequest
    ) -> tuple[ReportConfig, ScoreSettings]:
        report = await self.source.fetch_report_config(request.graph_id)
        key = report.score_settings_key or self.config.score_settings_key
        settings = await self.source.fetch_score_settings(key, request.base_month, request.horizon)
        return report, settings

    async def _fetch_series(self, request: ForecastRequest) -> list[HistoricalPoint]:
        series = await self.source.fetch_historical_series(
            request.category, request.base_month, request.horizon
        )
        return list(series.points)

    async def _supplied_series(self, request: ForecastRequest) -> list[HistoricalPoint]:
        return list(request.historical_series or [])

    async def _no_user_submissions(self) -> list[Submission]:
        return []

    async def fetch_inputs(self, request: ForecastRequest) -> ForecastInputs:
        """Fetch every collaborator concurrently.

        Raises:
            UpstreamFetchFailure: If any fetch failed, carrying all failures.
        """
        async with self.source:
            fetches: dict[str, Awaitable[Any]] = {
                "report": self._fetch_report_and_settings(request),
                "questions": self.source.fetch_questions(request.graph_id),
                "submissions": self.source.fetch_submissions(request.graph_id, request.base_month),
                "user_submissions": (
                    self.source.fetch_submissions(
                        request.graph_id, request.base_month, request.user_email
                    )
                    if request.user_email else self._no_user_submissions()
                ),
                "series": (
                    self._supplied_series(request)
                    if request.historical_series is not None else self._fetch_series(request)
                ),
            }
            outcomes = await asyncio.gather(*fetches.values(), return_exceptions=True)

        failures: dict[str, BaseException] = {}
        values: dict[str, Any] = {}
        for name, outcome in zip(fetches, outcomes):
            if isinstance(outcome, UpstreamFetchFailure):
                failures.update(outcome.failures)
            elif isinstance(outcome, Exception):
                failures[name] = outcome
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                values[name] = outcome

        if failures:
            logger.error(
                "Forecast stack for graph %d aborted: %d fetch failure(s) (%s)",
                request.graph_id, len(failures), ", ".join(sorted(failures)),
            )
            raise UpstreamFetchFailure(failures)

        report, settings = values["report"]
        return ForecastInputs(
            report=report,
            questions=values["questions"],
            score_settings=settings,
            all_submissions=values["submissions"],
            user_submissions=values["user_submissions"],
            series_points=values["series"],
        )

    async def run_async(self, request: ForecastRequest) -> ForecastStack:
        """Fetch inputs and compute the stack."""
        logger.info(
            "Forecast stack start: graph=%d category=%s base=%s horizon=%d user=%s",
            request.graph_id, request.category, request.base_month,
            request.horizon, request.user_email or "-",
        )
        inputs = await self.fetch_inputs(request)
        stack = build_forecast_stack(request, inputs)
        logger.info(
            "Forecast stack done: graph=%d methods=%s",
            request.graph_id,
            {r.method.value: len(r.by_period) for r in stack.results},
        )
        return stack

    def run(self, request: ForecastRequest) -> ForecastStack:
        """Synchronous entry point; runs the async fetches on a fresh event loop."""
        return asyncio.run(self.run_async(request))


def compute_forecast_stack(
    request: ForecastRequest,
    source: ForecastDataSource,
    config: Optional[ForecastConfig] = None,
) -> list[ForecastResult]:
    """Compute one ``ForecastResult`` per enabled method for ``request``.

    Raises:
        UpstreamFetchFailure: If any collaborator fetch failed.
    """
    return ForecastStackOrchestrator(source, config).run(request).results
