"""
Logging configuration for the rulesync process.

Library modules only call ``logging.getLogger(__name__)``; the CLI calls
:func:`configure_logging` once at startup.  JSON output is one object per
line for Loki ingestion; text output is for interactive use.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Optional

ROOT_LOGGER = "rulesync"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(
    level: str = "info",
    log_format: str = "json",
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Install a single handler on the ``rulesync`` logger.

    Logs go to stdout (container/Loki pickup) unless ``stream`` is given.
    Calling it again replaces the handler rather than stacking another.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    if log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
