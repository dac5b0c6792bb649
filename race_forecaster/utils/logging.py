"""
Logging setup for the race-forecaster CLI.

``configure_logging(config)`` is called once per CLI command.  Library modules
only ever call ``logging.getLogger(__name__)``.

Log lines go to stderr (stdout carries the forecast table or ``--json``
output), and optionally to ``[logging] log_file`` as well.  With
``json_format = true`` each line is one object::

    {"ts": "2024-07-01T09:30:00Z", "level": "WARNING",
     "logger": "race_forecaster.pipeline.forecast_stack", "msg": "..."}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from race_forecaster.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class _JsonFormatter(logging.Formatter):
    """One JSON object per record: ``ts``, ``level``, ``logger``, ``msg`` (and ``exc``)."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(config: "LoggingConfig") -> None:
    """Point the root logger at stderr (plus ``config.log_file`` if set).

    httpx and httpcore are held at WARNING so per-request lines do not drown
    out fetch failures.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    if config.json_format:
        formatter: logging.Formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
