"""
Wire-format parsers for RACE API payloads.

The RACE endpoints have accumulated several response shapes over time; these
parsers accept all of them and return validated models:

  /api/graphs        ``{"graph": {...}}`` or the row at top level.  JSON
                     columns (``forecast_types``, ``ai_forecast``,
                     ``race_forecast``) may be strings or decoded values, and
                     camelCase aliases may be present.
  /api/questions     a bare list or ``{"questions": [...]}``.
  /api/scoreSettings ``{"key", "yearNames", "scoreLabels", "updatedAt"}``.
  /api/saveScores    a bare list or ``{"submissions": [...]}``; each
                     submission carries flat score rows
                     ``{"questionId", "yearIndex", "score", "skipped"}`` (or
                     the legacy ``results`` list of per-question arrays).
  overall-chart-data ``{"data": [{"month", "data": {category: value}}], "meta": {...}}``.

Malformed payloads raise ``ValueError`` (``pydantic.ValidationError`` is a
subclass); the client turns those into ``UpstreamFetchFailure``.
Any payload that is a dict with a non-empty ``"error"`` field is treated as
an upstream failure, since some endpoints report errors with HTTP 200.
"""

from __future__ import annotations

import json
import logging
import math
from collections import OrderedDict
from typing import Any, Optional

from race_forecaster.models.forecast import ForecastMethod
from race_forecaster.models.report import ReportConfig, ScoreSettings
from race_forecaster.models.series import HistoricalPoint, HistoricalSeries
from race_forecaster.models.survey import DriverQuestion, QuestionResponse, Submission
from race_forecaster.taxonomy.vehicle_category import normalize_category
from race_forecaster.utils.month_keys import MAX_LABEL_HORIZON, validate_month_key

logger = logging.getLogger(__name__)

_METHODS_BY_NAME: dict[str, ForecastMethod] = {m.value: m for m in ForecastMethod}


# ── Generic helpers ───────────────────────────────────────────────────────────


def safe_json(value: Any) -> Any:
    """Decode ``value`` if it is a JSON string; return it unchanged otherwise."""
    if isinstance(value, (str, bytes)):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def to_float(value: Any) -> Optional[float]:
    """Coerce a numeric-ish value (``"12.5"``, ``12``) to float; ``None`` if not finite."""
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def _check_error(payload: Any, resource: str) -> None:
    if isinstance(payload, dict) and payload.get("error"):
        raise ValueError(f"{resource} endpoint reported an error: {payload['error']}")


def _unwrap_list(payload: Any, key: str, resource: str) -> list[Any]:
    _check_error(payload, resource)
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get(key), list):
        return payload[key]
    raise ValueError(f"Unexpected {resource} payload: expected a list or {{'{key}': [...]}}.")


def _first(row: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return None


def _require_object(row: Any, resource: str, index: int) -> dict[str, Any]:
    if not isinstance(row, dict):
        raise ValueError(
            f"{resource} row {index}: expected an object, got {type(row).__name__}."
        )
    return row


def _to_int(value: Any, field: str, resource: str) -> int:
    if value is None or isinstance(value, bool):
        raise ValueError(f"{resource}: {field} must be an integer, got {value!r}.")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"{resource}: {field} must be an integer, got {value!r}.") from None


def _optional_list(value: Any, field: str, resource: str) -> list[Any]:
    if value is None or value == "":
        return []
    if not isinstance(value, list):
        raise ValueError(f"{resource}: {field} must be a list, got {type(value).__name__}.")
    return value


# ── Report configuration ──────────────────────────────────────────────────────


def normalize_forecast_types(raw: Any) -> frozenset[ForecastMethod]:
    """Parse ``forecast_types`` into known methods (case/whitespace-insensitive).

    Unknown names are ignored and logged.
    """
    decoded = safe_json(raw)
    if not isinstance(decoded, list):
        return frozenset()
    methods: set[ForecastMethod] = set()
    for item in decoded:
        name = str(item or "").strip().lower()
        if not name:
            continue
        method = _METHODS_BY_NAME.get(name)
        if method is None:
            logger.warning("Ignoring unknown forecast type %r", item)
            continue
        methods.add(method)
    return frozenset(methods)


def parse_period_values(raw: Any, label: str = "forecast") -> dict[str, float]:
    """Parse an opaque ``{period: value}`` blob, dropping non-numeric entries."""
    decoded = safe_json(raw)
    if not isinstance(decoded, dict):
        return {}
    values: dict[str, float] = {}
    for period, value in decoded.items():
        number = to_float(value)
        if number is None:
            logger.debug("Dropping non-numeric %s value for %s: %r", label, period, value)
            continue
        values[str(period)] = number
    return values


def parse_report_config(payload: Any, graph_id: Optional[int] = None) -> ReportConfig:
    """Parse a ``/api/graphs?id=`` response.

    The row's own ``id`` wins; ``graph_id`` is the fallback when it is absent.
    """
    _check_error(payload, "graphs")
    if not isinstance(payload, dict):
        raise ValueError("Unexpected graphs payload: expected an object.")
    row = payload.get("graph") if isinstance(payload.get("graph"), dict) else payload

    return ReportConfig(
        graph_id=_to_int(_first(row, "id") or graph_id, "id", "graphs"),
        name=row.get("name"),
        score_settings_key=row.get("score_settings_key"),
        enabled_methods=normalize_forecast_types(_first(row, "forecast_types", "forecastTypes")),
        ai_forecast=parse_period_values(_first(row, "ai_forecast", "aiForecast"), "ai"),
        curated_forecast=parse_period_values(_first(row, "race_forecast", "raceForecast"), "race"),
    )


# ── Questions and score settings ─────────────────────────────────────────────


def parse_questions(payload: Any) -> list[DriverQuestion]:
    """Parse a ``/api/questions?graphId=`` response.

    Raises:
        ValueError: If a row is not an object or has no integer ``id``.
    """
    rows = _unwrap_list(payload, "questions", "questions")
    questions: list[DriverQuestion] = []
    for index, row in enumerate(rows):
        row = _require_object(row, "questions", index)
        weight = to_float(row.get("weight"))
        questions.append(
            DriverQuestion(
                id=_to_int(row.get("id"), f"row {index} id", "questions"),
                text=str(row.get("text") or ""),
                weight=1.0 if weight is None else weight,
                polarity=str(_first(row, "type", "polarity") or "positive"),
                graph_id=_first(row, "graph_id", "graphId"),
            )
        )
    return questions


def parse_score_settings(payload: Any, key: str) -> ScoreSettings:
    """Parse a ``/api/scoreSettings`` response."""
    _check_error(payload, "scoreSettings")
    if not isinstance(payload, dict):
        raise ValueError("Unexpected scoreSettings payload: expected an object.")
    year_names = _optional_list(payload.get("yearNames"), "yearNames", "scoreSettings")
    score_labels = _optional_list(payload.get("scoreLabels"), "scoreLabels", "scoreSettings")
    return ScoreSettings(
        key=str(payload.get("key") or key),
        year_names=[str(y) for y in year_names],
        score_labels=[str(s) for s in score_labels],
    )


# ── Submissions ───────────────────────────────────────────────────────────────


def _responses_from_rows(rows: list[Any]) -> list[QuestionResponse]:
    """Group flat ``{questionId, yearIndex, score, skipped}`` rows per question.

    ``yearIndex`` must fall on the label axis (``0 .. MAX_LABEL_HORIZON - 1``).
    """
    grouped: "OrderedDict[int, dict[str, Any]]" = OrderedDict()
    for position, row in enumerate(rows):
        row = _require_object(row, "saveScores score", position)
        qid = _first(row, "questionId", "question_id")
        if qid is None:
            continue
        entry = grouped.setdefault(
            _to_int(qid, "questionId", "saveScores"), {"scores": {}, "skipped": False}
        )
        if row.get("skipped"):
            entry["skipped"] = True
        index = _first(row, "yearIndex", "year_index")
        if index is None:
            continue
        index = _to_int(index, "yearIndex", "saveScores")
        if not 0 <= index < MAX_LABEL_HORIZON:
            raise ValueError(
                f"saveScores: yearIndex {index} outside 0..{MAX_LABEL_HORIZON - 1}."
            )
        entry["scores"][index] = to_float(row.get("score"))

    responses: list[QuestionResponse] = []
    for qid, entry in grouped.items():
        by_index: dict[int, Optional[float]] = entry["scores"]
        size = max(by_index) + 1 if by_index else 0
        scores = [by_index.get(i) for i in range(size)]
        responses.append(
            QuestionResponse(question_id=qid, scores=scores, skipped=entry["skipped"])
        )
    return responses


def _responses_from_results(results: list[Any]) -> list[QuestionResponse]:
    """Parse the legacy ``results`` list of per-question score arrays."""
    responses: list[QuestionResponse] = []
    for position, result in enumerate(results):
        result = _require_object(result, "saveScores result", position)
        qid = result.get("questionId")
        if qid is None:
            continue
        skipped = bool(result.get("skipped"))
        raw_scores = _optional_list(result.get("scores"), "scores", "saveScores")
        scores = [] if skipped else [to_float(s) for s in raw_scores]
        responses.append(
            QuestionResponse(
                question_id=_to_int(qid, "questionId", "saveScores"),
                scores=scores,
                skipped=skipped,
            )
        )
    return responses


def parse_submission(row: Any) -> Submission:
    """Parse a single submission object in either flat or legacy shape.

    Raises:
        ValueError: If the submission or any of its score rows is malformed.
    """
    if not isinstance(row, dict):
        raise ValueError(f"saveScores: submission must be an object, got {type(row).__name__}.")
    if isinstance(row.get("scores"), list):
        responses = _responses_from_rows(row["scores"])
    else:
        responses = _responses_from_results(
            _optional_list(row.get("results"), "results", "saveScores")
        )

    graph_id = _first(row, "graphId", "graph_id")
    return Submission(
        submission_id=_first(row, "id", "submissionId", "submission_id"),
        user_email=_first(row, "userEmail", "user_email", "user"),
        graph_id=None if graph_id is None else _to_int(graph_id, "graphId", "saveScores"),
        base_period=_first(row, "basePeriod", "base_period"),
        responses=responses,
    )


def parse_submissions(payload: Any) -> list[Submission]:
    """Parse a ``/api/saveScores`` GET response."""
    return [parse_submission(row) for row in _unwrap_list(payload, "submissions", "saveScores")]


# ── Historical series ─────────────────────────────────────────────────────────


def parse_historical_series(payload: Any, category: str) -> HistoricalSeries:
    """Parse an overall-chart-data response into one category's series.

    ``category`` may be any known alias; the canonical key is looked up in
    each point's ``data`` dict (falling back to a top-level field).

    Raises:
        InvalidPeriodKey: If a point's month is not ``YYYY-MM``.
        ValueError: If a point is not an object.
    """
    _check_error(payload, "overall-chart-data")
    if isinstance(payload, list):
        rows, meta = payload, {}
    elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
        rows = payload["data"]
        meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}
    else:
        raise ValueError("Unexpected overall-chart-data payload: expected {'data': [...]}.")

    canonical = normalize_category(category)
    key = canonical.value if canonical is not None else category

    points: list[HistoricalPoint] = []
    for index, row in enumerate(rows):
        row = _require_object(row, "overall-chart-data", index)
        period = validate_month_key(str(row.get("month") or ""))
        data = row.get("data") if isinstance(row.get("data"), dict) else {}
        raw_value = data.get(key) if data.get(key) is not None else row.get(key)
        points.append(HistoricalPoint(period=period, value=to_float(raw_value)))

    base_month = meta.get("baseMonth")
    return HistoricalSeries(
        category=key,
        points=points,
        base_month=validate_month_key(base_month) if base_month else None,
    )
