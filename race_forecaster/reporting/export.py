"""
Export helpers for forecast stacks.

All writers create parent directories and return the written ``Path``.
They accept generic ``list[dict]`` / ``dict`` data to stay decoupled from
the stack's shape; the adapters below produce that data.

CSV exports are flat (one row per method/period) so they load directly in
Excel or a BI tool without any unpivoting.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path

from race_forecaster.pipeline.forecast_stack import ForecastStack

CSV_FIELDNAMES = [
    "graph_id",
    "category",
    "base_month",
    "horizon",
    "user_email",
    "method",
    "period",
    "forecast_value",
]


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    cols = fieldnames or (list(records[0].keys()) if records else [])
    if not cols:
        path.write_text("", encoding="utf-8")
        return path
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(
    data: dict | list,
    path: Path,
) -> Path:
    """Write ``data`` to a pretty-printed JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def forecast_stack_to_dict(stack: ForecastStack) -> dict:
    """Serialise a stack to a JSON-ready dict.

    ``results`` keeps every enabled method, including empty ones, so readers
    can tell "disabled" (absent) from "no data" (empty ``by_period``).
    """
    req = stack.request
    return {
        "graph_id":        req.graph_id,
        "category":        req.category,
        "base_month":      req.base_month,
        "horizon":         req.horizon,
        "user_email":      req.user_email,
        "historical":      dict(zip(stack.window.historical_periods, stack.window.historical)),
        "future_periods":  list(stack.window.future),
        "period_labels":   list(stack.period_labels),
        "survey_scores":   list(stack.survey_scores),
        "byof_scores":     list(stack.byof_scores),
        "enabled_methods": [r.method.value for r in stack.results],
        "results": [
            {"method": r.method.value, "by_period": dict(r.by_period)}
            for r in stack.results
        ],
    }


def flatten_forecast_stack_for_export(stack: ForecastStack) -> list[dict]:
    """Flatten a stack into one row per (method, period).

    Enabled methods with no values contribute no rows.

    Returns:
        List of flat row dicts keyed by ``CSV_FIELDNAMES``.
    """
    req = stack.request
    rows: list[dict] = []
    for result in stack.results:
        for period in sorted(result.by_period):
            rows.append(
                {
                    "graph_id":       req.graph_id,
                    "category":       req.category,
                    "base_month":     req.base_month,
                    "horizon":        req.horizon,
                    "user_email":     req.user_email or "",
                    "method":         result.method.value,
                    "period":         period,
                    "forecast_value": result.by_period[period],
                }
            )
    return rows


def export_forecast_stack(stack: ForecastStack, path: Path) -> Path:
    """Export ``stack`` by file suffix: ``.csv`` flat rows, anything else JSON."""
    if path.suffix.lower() == ".csv":
        return export_to_csv(flatten_forecast_stack_for_export(stack), path, CSV_FIELDNAMES)
    return export_to_json(forecast_stack_to_dict(stack), path)
