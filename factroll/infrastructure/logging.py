"""
Centralized Logging

Architectural Intent:
- One handler on the "factroll" logger; modules log through
  logging.getLogger(__name__) and never print()
- JSON output for CI log collectors, a plain format for terminals
- Rollout context (rollout_id, batch) passed through `extra=` is kept as
  top-level JSON fields so a collector can filter on one rollout
- Fabric's SSH stack (paramiko, invoke) is capped at WARNING unless debugging
"""

import json
import logging
import sys
from datetime import datetime, UTC

CONTEXT_FIELDS = ("rollout_id", "batch")
NOISY_LOGGERS = ("paramiko", "invoke", "fabric")


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: int = logging.INFO, json_format: bool = False) -> None:
    """Configure logging for factroll.

    Args:
        level: Logging level for factroll's own loggers.
        json_format: Emit one JSON object per line instead of plain text.
    """
    root = logging.getLogger("factroll")
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.DEBUG if level <= logging.DEBUG else logging.WARNING
        )
