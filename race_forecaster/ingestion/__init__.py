"""
Ingestion layer — the data-source contract and its implementations.

Submodules:
  base             — ForecastDataSource ABC and UpstreamFetchFailure
  payloads         — tolerant parsers for RACE API response shapes
  race_api_client  — httpx-based client for the RACE HTTP API
  static_source    — in-memory / fixture-file source for offline runs

Credential placement (.env, gitignored):
  RACE_FORECASTER_API_BASE_URL  — API root URL
  RACE_FORECASTER_API_TOKEN     — Bearer token for the API
"""
