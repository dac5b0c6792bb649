"""
race_forecaster.reporting — Display and export of computed forecast stacks.

It does NOT compute anything — every function takes an already-built
``ForecastStack``.

Modules:
  formatters — ASCII terminal tables for Typer CLI commands.
  export     — JSON/CSV flat-file export helpers.
"""
