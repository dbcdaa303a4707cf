"""
Diagnostic logging setup.

Diagnostics are JSON lines on stderr so they never mix with the export
statements written to stdout.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional

LOGGER_NAME = "secure_environment"

# LogRecord attributes that are not user supplied `extra` fields
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record: level, msg, time plus any extra fields."""

    def format(self, record: logging.LogRecord) -> str:
        doc: Dict[str, Any] = {
            "level": record.levelname.lower(),
            "msg": record.getMessage(),
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
        }
        for name, value in vars(record).items():
            if name not in _RESERVED and not name.startswith("_"):
                doc[name] = value
        if record.exc_info:
            doc["error"] = self.formatException(record.exc_info)
        return json.dumps(doc, default=str)


def configure_logging(debug: bool = False, stream: Optional[IO[str]] = None) -> logging.Logger:
    """
    Configure the package logger. Safe to call more than once.

    Args:
        debug: Log at DEBUG instead of WARNING
        stream: Destination (defaults to sys.stderr)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False

    if debug:
        logger.debug("secure-environment debug logging is on.")
    return logger
