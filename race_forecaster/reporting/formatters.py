"""
ASCII terminal formatters for CLI forecast commands.

All formatters return plain multi-line strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).

Layout
------
``format_forecast_stack()`` prints a header, the historical actuals window,
the aggregated score rows (with the nearest configured score label) and one
column per enabled method::

  Period     score      byof        ai      race
  ------------------------------------------------
  2024-07   1331.0         -    1320.0    1350.0

A method that is enabled but computed nothing shows ``-`` in every row and
is listed under "No data".
"""

from __future__ import annotations

from typing import Sequence

from race_forecaster.forecasting.scale import nearest_label
from race_forecaster.pipeline.forecast_stack import ForecastStack


def _fmt(value: float | None) -> str:
    return "-" if value is None else f"{value:,.2f}"


def _score_line(name: str, scores: Sequence[float], labels: Sequence[str], score_labels: Sequence[str]) -> list[str]:
    if not scores:
        return [f"  {name}: (no contributing submissions)"]
    lines = [f"  {name}:"]
    for period, score in zip(labels, scores):
        label = nearest_label(score, score_labels) if score_labels else None
        suffix = f"  ({label})" if label else ""
        lines.append(f"    {period:<10} {score:>7.2f}{suffix}")
    return lines


def format_forecast_stack(
    stack: ForecastStack,
    score_labels: Sequence[str] | None = None,
) -> str:
    """Format a forecast stack as an ASCII table.

    Args:
        stack:        Computed forecast stack.
        score_labels: Ordered score labels (lowest first) shown beside the
                      aggregated scores.  Defaults to the stack's own labels;
                      omitted when empty.

    Returns:
        Multi-line string.
    """
    req = stack.request
    window = stack.window
    if score_labels is None:
        score_labels = stack.score_labels
    lines: list[str] = []
    lines.append("")
    lines.append("=== Forecast Stack ===")
    lines.append(f"  Graph:      {req.graph_id}")
    lines.append(f"  Category:   {req.category}")
    lines.append(f"  Base month: {req.base_month}  (horizon {req.horizon})")
    if req.user_email:
        lines.append(f"  User:       {req.user_email}")

    lines.append("")
    if window.historical:
        lines.append(
            f"  Actuals: {len(window.historical)} month(s) "
            f"{window.historical_periods[0]} .. {window.historical_periods[-1]}, "
            f"last {_fmt(window.historical[-1])}"
        )
    else:
        lines.append("  Actuals: none")
    if not window.has_sufficient_history:
        lines.append("  [WARN] Fewer than 2 actuals -- growth curves are empty")

    if not stack.results:
        lines.append("")
        lines.append("  (no forecast methods enabled for this report)")
        return "\n".join(lines)

    lines.append("")
    lines.append("  Aggregated scores")
    lines.extend(_score_line("survey", stack.survey_scores, stack.period_labels, score_labels))
    if req.user_email:
        lines.extend(_score_line("yours", stack.byof_scores, stack.period_labels, score_labels))

    periods = sorted({p for r in stack.results for p in r.by_period})
    methods = [r.method.value for r in stack.results]
    lines.append("")
    header = f"  {'Period':<10}" + "".join(f"{m:>12}" for m in methods)
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for period in periods:
        cells = "".join(f"{_fmt(r.by_period.get(period)):>12}" for r in stack.results)
        lines.append(f"  {period:<10}{cells}")

    empty = [r.method.value for r in stack.results if r.is_empty]
    if empty:
        lines.append("")
        lines.append(f"  No data: {', '.join(empty)}")
    return "\n".join(lines)
