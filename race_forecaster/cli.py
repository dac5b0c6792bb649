"""
RACE Forecaster — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action (fetch + compute the forecast stack).
  5. Report result to stdout (logs go to stderr).

Install and run::

    pip install -e .
    race-forecaster --help
    race-forecaster validate-config
    race-forecaster forecast-stack --graph-id 12 --base-month 2024-06 --horizon 6
    race-forecaster forecast-file tests/fixtures/forecast_fixture.json --graph-id 12 --json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="race-forecaster",
    help="RACE Analytics forecast stack — survey-driven vehicle sales forecasts.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from race_forecaster.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from race_forecaster.utils.logging import configure_logging
    configure_logging(config.logging)


def _build_request_or_exit(
    graph_id: int,
    base_month: Optional[str],
    horizon: Optional[int],
    category: str,
    user_email: Optional[str],
    default_horizon: int,
):
    """Validate CLI inputs into a ForecastRequest, exiting on bad input."""
    from pydantic import ValidationError

    from race_forecaster.models.forecast import ForecastRequest
    from race_forecaster.taxonomy.vehicle_category import normalize_category
    from race_forecaster.utils.month_keys import (
        InvalidPeriodKey,
        previous_calendar_month_ist,
        validate_month_key,
    )

    try:
        month = validate_month_key(base_month) if base_month else previous_calendar_month_ist()
    except InvalidPeriodKey as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    canonical = normalize_category(category)
    if canonical is None:
        typer.echo(f"[ERROR] Unknown vehicle category: {category!r}", err=True)
        raise typer.Exit(code=1)

    try:
        return ForecastRequest(
            graph_id=graph_id,
            base_month=month,
            horizon=default_horizon if horizon is None else horizon,
            category=canonical.value,
            user_email=user_email,
        )
    except ValidationError as exc:
        typer.echo(f"[ERROR] Invalid request: {exc}", err=True)
        raise typer.Exit(code=1)


def _run_and_report(orchestrator, request, as_json: bool, out_path: Optional[str]) -> None:
    """Run the orchestrator and print/export the stack."""
    from race_forecaster.ingestion.base import UpstreamFetchFailure
    from race_forecaster.reporting.export import export_forecast_stack, forecast_stack_to_dict
    from race_forecaster.reporting.formatters import format_forecast_stack

    try:
        stack = orchestrator.run(request)
    except UpstreamFetchFailure as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(forecast_stack_to_dict(stack), indent=2, default=str))
    else:
        typer.echo(format_forecast_stack(stack))

    if out_path:
        written = export_forecast_stack(stack, Path(out_path))
        typer.echo(f"[OK] Exported to {written}", err=as_json)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  API base URL:     {config.api.base_url}")
    typer.echo(f"  API token:        {'set' if config.api.api_token else 'not set'}")
    typer.echo(f"  HTTP timeout:     {config.api.timeout_seconds}s")
    typer.echo(f"  Default horizon:  {config.forecast.default_horizon}")
    typer.echo(f"  Score settings:   {config.forecast.score_settings_key}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        dumped = config.model_dump()
        if dumped["api"].get("api_token"):
            dumped["api"]["api_token"] = "***"
        typer.echo(json.dumps(dumped, indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("forecast-stack")
def forecast_stack(
    graph_id: int = typer.Option(..., "--graph-id", help="Report (graph) id."),
    base_month: Optional[str] = typer.Option(
        None,
        "--base-month",
        help="Last actual month, YYYY-MM (default: previous calendar month, IST).",
    ),
    horizon: Optional[int] = typer.Option(
        None,
        "--horizon",
        help="Future months to project (default: forecast.default_horizon).",
    ),
    category: str = typer.Option("Total", "--category", help="Vehicle category or alias."),
    user_email: Optional[str] = typer.Option(
        None,
        "--user-email",
        help="Analyst whose own submissions drive the build-your-own curve.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the stack as JSON."),
    out_path: Optional[str] = typer.Option(
        None,
        "--out",
        help="Also export to this path (.csv for flat rows, otherwise JSON).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Fetch everything from the RACE API and print the forecast stack."""
    from race_forecaster.ingestion.race_api_client import RaceApiClient
    from race_forecaster.pipeline.forecast_stack import ForecastStackOrchestrator

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    request = _build_request_or_exit(
        graph_id, base_month, horizon, category, user_email, config.forecast.default_horizon
    )
    orchestrator = ForecastStackOrchestrator(RaceApiClient(config.api), config.forecast)
    _run_and_report(orchestrator, request, as_json, out_path)


@app.command("forecast-file")
def forecast_file(
    fixture_path: str = typer.Argument(..., help="JSON file with captured API payloads."),
    graph_id: int = typer.Option(..., "--graph-id", help="Report (graph) id."),
    base_month: Optional[str] = typer.Option(
        None,
        "--base-month",
        help="Last actual month, YYYY-MM (default: previous calendar month, IST).",
    ),
    horizon: Optional[int] = typer.Option(
        None,
        "--horizon",
        help="Future months to project (default: forecast.default_horizon).",
    ),
    category: str = typer.Option("Total", "--category", help="Vehicle category or alias."),
    user_email: Optional[str] = typer.Option(None, "--user-email", help="Requesting analyst."),
    as_json: bool = typer.Option(False, "--json", help="Print the stack as JSON."),
    out_path: Optional[str] = typer.Option(
        None,
        "--out",
        help="Also export to this path (.csv for flat rows, otherwise JSON).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Compute the forecast stack offline from a JSON fixture file.

    The fixture holds the raw API responses under ``graph``, ``questions``,
    ``scoreSettings``, ``submissions`` and ``series``.
    """
    from race_forecaster.ingestion.static_source import StaticDataSource
    from race_forecaster.pipeline.forecast_stack import ForecastStackOrchestrator

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    request = _build_request_or_exit(
        graph_id, base_month, horizon, category, user_email, config.forecast.default_horizon
    )

    path = Path(fixture_path)
    if not path.exists():
        typer.echo(f"[ERROR] Fixture file not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        source = StaticDataSource.from_fixture_file(path, category=request.category)
    except ValueError as exc:
        typer.echo(f"[ERROR] Could not load fixture {path}: {exc}", err=True)
        raise typer.Exit(code=1)

    orchestrator = ForecastStackOrchestrator(source, config.forecast)
    _run_and_report(orchestrator, request, as_json, out_path)


if __name__ == "__main__":
    app()
