"""
Shared pytest fixtures for the RACE forecaster test suite.

Provides:
  - Sample domain objects for one report (graph 12, base month 2024-06):
    three questions, three submissions (one fully skipped), a five-label
    score scale and a monthly ``Total`` series growing 10% per month.
  - ``static_source``: a ``StaticDataSource`` serving all of the above.
  - ``fixture_path``: the same data as raw API payloads on disk.

Numbers used across tests:
  actuals 100 → 110 → 121   (average growth 10%)
  alice scores [10, 10]     bob scores [4, 2]     carol skipped everything
  survey aggregate [7, 6]   → forecasts 129.47, 137.24
  alice's own curve         → forecasts 133.1, 146.41
"""

from __future__ import annotations

from pathlib import Path

import pytest

from race_forecaster.ingestion.static_source import StaticDataSource
from race_forecaster.models.forecast import ForecastMethod, ForecastRequest
from race_forecaster.models.report import ReportConfig, ScoreSettings
from race_forecaster.models.series import HistoricalPoint, HistoricalSeries
from race_forecaster.models.survey import DriverQuestion, QuestionResponse, Submission

FIXTURES_DIR = Path(__file__).parent / "fixtures"

GRAPH_ID = 12
BASE_MONTH = "2024-06"
ALICE = "alice@race.example"
BOB = "bob@race.example"
CAROL = "carol@race.example"


# ── Survey ────────────────────────────────────────────────────────────────────

@pytest.fixture
def sample_questions() -> list[DriverQuestion]:
    """Two drivers (one half-weighted) and one barrier."""
    return [
        DriverQuestion(id=1, text="Rural demand", weight=1.0, polarity="positive", graph_id=GRAPH_ID),
        DriverQuestion(id=2, text="Credit availability", weight=0.5, polarity="positive", graph_id=GRAPH_ID),
        DriverQuestion(id=3, text="Fuel prices", weight=1.0, polarity="negative", graph_id=GRAPH_ID),
    ]


@pytest.fixture
def alice_submission() -> Submission:
    """Scores 10 on the first driver, skipped the barrier → [10, 10]."""
    return Submission(
        submission_id=1,
        user_email=ALICE,
        graph_id=GRAPH_ID,
        base_period=BASE_MONTH,
        responses=[
            QuestionResponse(question_id=1, scores=[10, 10]),
            QuestionResponse(question_id=3, scores=[], skipped=True),
        ],
    )


@pytest.fixture
def bob_submission() -> Submission:
    """6/4 on the first driver, 2/2 on the barrier → [4, 2]."""
    return Submission(
        submission_id=2,
        user_email=BOB,
        graph_id=GRAPH_ID,
        base_period=BASE_MONTH,
        responses=[
            QuestionResponse(question_id=1, scores=[6, 4]),
            QuestionResponse(question_id=3, scores=[2, 2]),
        ],
    )


@pytest.fixture
def carol_submission() -> Submission:
    """Skipped every question."""
    return Submission(
        submission_id=3,
        user_email=CAROL,
        graph_id=GRAPH_ID,
        base_period=BASE_MONTH,
        responses=[
            QuestionResponse(question_id=1, skipped=True),
            QuestionResponse(question_id=2, skipped=True),
            QuestionResponse(question_id=3, skipped=True),
        ],
    )


@pytest.fixture
def sample_submissions(alice_submission, bob_submission, carol_submission) -> list[Submission]:
    return [alice_submission, bob_submission, carol_submission]


# ── Report configuration ──────────────────────────────────────────────────────

@pytest.fixture
def sample_report() -> ReportConfig:
    """A report with every method switched on, linear included."""
    return ReportConfig(
        graph_id=GRAPH_ID,
        name="Flash report",
        score_settings_key="scoreSettings",
        enabled_methods=frozenset(ForecastMethod),
        ai_forecast={"2024-07": 125.0, "2024-08": 131.0},
        curated_forecast={"2024-07": 130.0},
    )


@pytest.fixture
def sample_score_settings() -> ScoreSettings:
    return ScoreSettings(
        key="scoreSettings",
        year_names=["2024-07", "2024-08"],
        score_labels=["Very Low", "Low", "Neutral", "High", "Very High"],
    )


# ── Series ────────────────────────────────────────────────────────────────────

@pytest.fixture
def sample_points() -> list[HistoricalPoint]:
    """Three actuals up to the base month, then two future months."""
    return [
        HistoricalPoint(period="2024-04", value=100.0),
        HistoricalPoint(period="2024-05", value=110.0),
        HistoricalPoint(period="2024-06", value=121.0),
        HistoricalPoint(period="2024-07", value=None),
        HistoricalPoint(period="2024-08", value=None),
    ]


@pytest.fixture
def sample_series(sample_points) -> HistoricalSeries:
    return HistoricalSeries(category="Total", points=sample_points, base_month=BASE_MONTH)


# ── Sources and requests ──────────────────────────────────────────────────────

@pytest.fixture
def static_source(
    sample_report, sample_questions, sample_score_settings, sample_submissions, sample_series
) -> StaticDataSource:
    return StaticDataSource(
        report=sample_report,
        questions=sample_questions,
        score_settings=sample_score_settings,
        submissions=sample_submissions,
        series=sample_series,
    )


@pytest.fixture
def sample_request() -> ForecastRequest:
    return ForecastRequest(graph_id=GRAPH_ID, base_month=BASE_MONTH, horizon=2, user_email=ALICE)


@pytest.fixture
def fixture_path() -> Path:
    """Raw API payloads for the same report, as consumed by ``forecast-file``."""
    return FIXTURES_DIR / "forecast_fixture.json"
