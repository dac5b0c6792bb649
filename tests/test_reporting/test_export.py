"""Tests for race_forecaster.reporting.export."""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from race_forecaster.pipeline.forecast_stack import ForecastStackOrchestrator
from race_forecaster.reporting.export import (
    CSV_FIELDNAMES,
    export_forecast_stack,
    export_to_csv,
    export_to_json,
    flatten_forecast_stack_for_export,
    forecast_stack_to_dict,
)


@pytest.fixture
def stack(static_source, sample_request):
    return ForecastStackOrchestrator(static_source).run(sample_request)


# ── Generic writers ───────────────────────────────────────────────────────────


def test_export_to_csv_custom_fieldnames(tmp_path: Path) -> None:
    """Custom fieldnames control column order; extra keys are ignored."""
    out = tmp_path / "cols.csv"
    export_to_csv([{"a": 1, "b": 2, "c": 3}], out, fieldnames=["c", "a"])
    with out.open(encoding="utf-8") as f:
        assert f.readline().strip() == "c,a"


def test_export_to_csv_empty_records_without_fieldnames(tmp_path: Path) -> None:
    out = tmp_path / "empty.csv"
    assert export_to_csv([], out) == out
    assert out.read_text(encoding="utf-8") == ""


def test_export_to_csv_empty_records_keeps_header(tmp_path: Path) -> None:
    out = tmp_path / "header.csv"
    export_to_csv([], out, fieldnames=CSV_FIELDNAMES)
    assert out.read_text(encoding="utf-8").strip() == ",".join(CSV_FIELDNAMES)


def test_export_to_json_creates_parent_dirs(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "deep" / "data.json"
    export_to_json({"k": [1, 2]}, out)
    assert json.loads(out.read_text(encoding="utf-8")) == {"k": [1, 2]}


# ── Stack adapters ────────────────────────────────────────────────────────────


def test_stack_to_dict(stack) -> None:
    data = forecast_stack_to_dict(stack)
    assert data["graph_id"] == 12
    assert data["enabled_methods"] == ["score", "byof", "ai", "race"]
    assert data["historical"] == {"2024-04": 100.0, "2024-05": 110.0, "2024-06": 121.0}
    assert data["survey_scores"] == [7.0, 6.0]
    assert data["results"][2] == {"method": "ai", "by_period": {"2024-07": 125.0, "2024-08": 131.0}}
    json.dumps(data)  # must be serialisable as-is


def test_flatten_one_row_per_method_period(stack) -> None:
    rows = flatten_forecast_stack_for_export(stack)
    assert len(rows) == 7  # score 2 + byof 2 + ai 2 + race 1
    assert {r["method"] for r in rows} == {"score", "byof", "ai", "race"}
    assert all(set(r) == set(CSV_FIELDNAMES) for r in rows)
    race = [r for r in rows if r["method"] == "race"]
    assert race == [
        {
            "graph_id": 12, "category": "Total", "base_month": "2024-06", "horizon": 2,
            "user_email": "alice@race.example", "method": "race", "period": "2024-07",
            "forecast_value": 130.0,
        }
    ]


def test_export_stack_by_suffix(stack, tmp_path: Path) -> None:
    csv_path = export_forecast_stack(stack, tmp_path / "stack.csv")
    with csv_path.open(encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 7
    assert rows[0]["method"] == "score"

    json_path = export_forecast_stack(stack, tmp_path / "stack.json")
    assert json.loads(json_path.read_text(encoding="utf-8"))["base_month"] == "2024-06"
