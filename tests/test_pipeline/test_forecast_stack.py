"""Tests for race_forecaster.pipeline.forecast_stack."""

from __future__ import annotations

import pytest

from race_forecaster.config import ForecastConfig
from race_forecaster.forecasting.window import partition_series
from race_forecaster.ingestion.base import UpstreamFetchFailure
from race_forecaster.ingestion.static_source import StaticDataSource
from race_forecaster.models.forecast import ForecastMethod
from race_forecaster.models.report import ScoreSettings
from race_forecaster.models.series import HistoricalPoint, HistoricalSeries
from race_forecaster.pipeline.forecast_stack import (
    FORCE_DISABLED_METHODS,
    ForecastInputs,
    ForecastStackOrchestrator,
    build_forecast_stack,
    compute_forecast_stack,
    compute_method,
    resolve_enabled_methods,
    score_axis,
)


def _by_method(results) -> dict:
    return {r.method: r.by_period for r in results}


# ── Method gating ─────────────────────────────────────────────────────────────

class TestMethodGating:
    def test_linear_always_force_disabled(self):
        assert ForecastMethod.LINEAR in FORCE_DISABLED_METHODS
        assert resolve_enabled_methods(frozenset(ForecastMethod)) == frozenset(
            {ForecastMethod.SCORE, ForecastMethod.BUILD_YOUR_OWN, ForecastMethod.AI, ForecastMethod.CURATED_INSIGHT}
        )

    def test_linear_never_in_results(self, static_source, sample_request):
        results = compute_forecast_stack(sample_request, static_source)
        assert ForecastMethod.LINEAR not in {r.method for r in results}

    def test_results_follow_method_order(self, static_source, sample_request):
        results = compute_forecast_stack(sample_request, static_source)
        assert [r.method for r in results] == [
            ForecastMethod.SCORE,
            ForecastMethod.BUILD_YOUR_OWN,
            ForecastMethod.AI,
            ForecastMethod.CURATED_INSIGHT,
        ]

    def test_disabled_methods_absent(self, static_source, sample_request, sample_report):
        static_source.report = sample_report.model_copy(
            update={"enabled_methods": frozenset({ForecastMethod.AI})}
        )
        results = compute_forecast_stack(sample_request, static_source)
        assert [r.method for r in results] == [ForecastMethod.AI]

    def test_no_methods_enabled(self, static_source, sample_request, sample_report):
        static_source.report = sample_report.model_copy(update={"enabled_methods": frozenset()})
        assert compute_forecast_stack(sample_request, static_source) == []


# ── Computed curves ───────────────────────────────────────────────────────────

class TestCurves:
    def test_full_stack(self, static_source, sample_request):
        by_method = _by_method(compute_forecast_stack(sample_request, static_source))

        score = by_method[ForecastMethod.SCORE]
        assert list(score) == ["2024-07", "2024-08"]
        assert score["2024-07"] == pytest.approx(129.47)
        assert score["2024-08"] == pytest.approx(137.24)

        byof = by_method[ForecastMethod.BUILD_YOUR_OWN]
        assert byof["2024-07"] == pytest.approx(133.1)
        assert byof["2024-08"] == pytest.approx(146.41)

        assert by_method[ForecastMethod.AI] == {"2024-07": 125.0, "2024-08": 131.0}
        assert by_method[ForecastMethod.CURATED_INSIGHT] == {"2024-07": 130.0}

    def test_byof_empty_without_user(self, static_source, sample_request):
        request = sample_request.model_copy(update={"user_email": None})
        by_method = _by_method(compute_forecast_stack(request, static_source))
        assert by_method[ForecastMethod.BUILD_YOUR_OWN] == {}
        assert by_method[ForecastMethod.SCORE] != {}

    def test_byof_empty_for_user_without_submissions(self, static_source, sample_request):
        request = sample_request.model_copy(update={"user_email": "dave@race.example"})
        by_method = _by_method(compute_forecast_stack(request, static_source))
        assert by_method[ForecastMethod.BUILD_YOUR_OWN] == {}

    def test_byof_empty_when_user_skipped_everything(self, static_source, sample_request):
        request = sample_request.model_copy(update={"user_email": "carol@race.example"})
        by_method = _by_method(compute_forecast_stack(request, static_source))
        assert by_method[ForecastMethod.BUILD_YOUR_OWN] == {}

    def test_no_submissions_gives_empty_score_maps(self, static_source, sample_request):
        static_source.submissions = []
        by_method = _by_method(compute_forecast_stack(sample_request, static_source))
        assert by_method[ForecastMethod.SCORE] == {}
        assert by_method[ForecastMethod.BUILD_YOUR_OWN] == {}
        assert by_method[ForecastMethod.AI] != {}

    def test_insufficient_history_degrades_to_empty(self, static_source, sample_request, caplog):
        static_source.series = HistoricalSeries(
            category="Total",
            points=[HistoricalPoint(period="2024-06", value=121.0), HistoricalPoint(period="2024-07")],
        )
        with caplog.at_level("WARNING"):
            by_method = _by_method(compute_forecast_stack(sample_request, static_source))
        assert by_method[ForecastMethod.SCORE] == {}
        assert by_method[ForecastMethod.CURATED_INSIGHT] == {"2024-07": 130.0}
        assert "Insufficient history" in caplog.text

    def test_supplied_series_is_not_fetched(self, static_source, sample_request, sample_points):
        static_source.series = None  # fetching would fail
        request = sample_request.model_copy(update={"historical_series": sample_points})
        by_method = _by_method(compute_forecast_stack(request, static_source))
        assert by_method[ForecastMethod.SCORE]["2024-07"] == pytest.approx(129.47)

    def test_linear_branch_still_computes(self, sample_points, sample_report):
        window = partition_series(sample_points, "2024-06", 2)
        values = compute_method(ForecastMethod.LINEAR, window, [], [], [], sample_report)
        assert values["2024-07"] == pytest.approx(131.3333, rel=1e-4)
        assert values["2024-08"] == pytest.approx(141.8333, rel=1e-4)


# ── Label axis ────────────────────────────────────────────────────────────────

class TestScoreAxis:
    def test_uses_year_names(self, sample_score_settings):
        assert score_axis(sample_score_settings, "2024-06", 6) == ["2024-07", "2024-08"]

    def test_falls_back_to_months_after_base(self):
        assert score_axis(ScoreSettings(), "2024-11", 3) == ["2024-12", "2025-01", "2025-02"]

    def test_zero_horizon_without_names_is_empty(self):
        assert score_axis(ScoreSettings(), "2024-11", 0) == []


# ── Pure build ────────────────────────────────────────────────────────────────

def test_build_forecast_stack_from_inputs(
    sample_request, sample_report, sample_questions, sample_score_settings,
    sample_submissions, alice_submission, sample_points,
):
    inputs = ForecastInputs(
        report=sample_report,
        questions=sample_questions,
        score_settings=sample_score_settings,
        all_submissions=sample_submissions,
        user_submissions=[alice_submission],
        series_points=sample_points,
    )
    stack = build_forecast_stack(sample_request, inputs)
    assert stack.survey_scores == [7.0, 6.0]
    assert stack.byof_scores == [10.0, 10.0]
    assert stack.period_labels == ["2024-07", "2024-08"]
    assert stack.score_labels == sample_score_settings.score_labels
    assert stack.window.future == ["2024-07", "2024-08"]
    assert stack.result_for(ForecastMethod.LINEAR) is None
    assert stack.result_for(ForecastMethod.AI).by_period["2024-07"] == 125.0


# ── Fetching and failure semantics ────────────────────────────────────────────

class RecordingSource(StaticDataSource):
    """Static source that records the score-settings key it was asked for."""

    settings_keys: list[str]

    async def fetch_score_settings(self, key, base_month, horizon):
        self.settings_keys = [*getattr(self, "settings_keys", []), key]
        return await super().fetch_score_settings(key, base_month, horizon)


class FailingSource(StaticDataSource):
    """Static source whose questions and series fetches fail."""

    async def fetch_questions(self, graph_id):
        raise UpstreamFetchFailure({"questions": ConnectionError("refused")})

    async def fetch_historical_series(self, category, base_month, horizon):
        raise RuntimeError("series backend crashed")


def _source(cls, static_source):
    return cls(
        report=static_source.report,
        questions=static_source.questions,
        score_settings=static_source.score_settings,
        submissions=static_source.submissions,
        series=static_source.series,
    )


class TestFetching:
    def test_settings_key_from_report(self, static_source, sample_request):
        source = _source(RecordingSource, static_source)
        ForecastStackOrchestrator(source).run(sample_request)
        assert source.settings_keys == ["scoreSettings"]

    def test_settings_key_falls_back_to_config(self, static_source, sample_request, sample_report):
        source = _source(RecordingSource, static_source)
        source.report = sample_report.model_copy(update={"score_settings_key": None})
        ForecastStackOrchestrator(source, ForecastConfig(score_settings_key="flashScores")).run(sample_request)
        assert source.settings_keys == ["flashScores"]

    def test_all_failures_aggregated(self, static_source, sample_request):
        source = _source(FailingSource, static_source)
        with pytest.raises(UpstreamFetchFailure) as exc_info:
            compute_forecast_stack(sample_request, source)
        failures = exc_info.value.failures
        assert set(failures) == {"questions", "series"}
        assert isinstance(failures["series"], RuntimeError)
        assert "2 resource(s)" in str(exc_info.value)

    def test_report_failure_aborts_whole_stack(self, static_source, sample_request):
        static_source.report = None
        with pytest.raises(UpstreamFetchFailure) as exc_info:
            compute_forecast_stack(sample_request, static_source)
        assert list(exc_info.value.failures) == ["report"]

    def test_missing_user_submissions_reported(self, static_source, sample_request):
        static_source.submissions = None
        with pytest.raises(UpstreamFetchFailure) as exc_info:
            compute_forecast_stack(sample_request, static_source)
        assert set(exc_info.value.failures) == {"submissions", "user_submissions"}

    def test_fresh_computation_per_request(self, static_source, sample_request):
        orchestrator = ForecastStackOrchestrator(static_source)
        first = orchestrator.run(sample_request)
        second = orchestrator.run(sample_request)
        assert first.results == second.results
        assert first is not second
