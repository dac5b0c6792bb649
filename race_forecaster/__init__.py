"""
RACE Analytics forecast stack.

Blends analyst driver/barrier scores with historical vehicle-category volumes
into competing monthly forecast curves (trend-linear, survey-score, build your
own forecast, plus pass-through AI and curated values).

Subpackages:
  forecasting — linear trend, growth compounding, score aggregation, label scale
  ingestion   — data-source contract, RACE HTTP API client, static fixtures
  pipeline    — forecast stack orchestrator (composition root)
  reporting   — ASCII formatters and JSON/CSV export
"""

__version__ = "0.1.0"
