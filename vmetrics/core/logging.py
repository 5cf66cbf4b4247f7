"""VMetrics — Structured JSON Logging.

One JSON object per line on stdout. Boundary code passes context through
``extra`` (endpoint, period, duration_ms, status_code).
"""

import json
import logging
import sys
from datetime import datetime, timezone

from vmetrics.config import settings

EXTRA_FIELDS = ("endpoint", "period", "duration_ms", "status_code")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            {key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)}
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


_handler = logging.StreamHandler(sys.stdout)
_handler.setFormatter(JSONFormatter())


def get_logger(name: str) -> logging.Logger:
    """Logger named ``vmetrics.<name>`` writing JSON lines."""
    logger = logging.getLogger(f"vmetrics.{name}")
    if _handler not in logger.handlers:
        logger.addHandler(_handler)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger
