"""
Core Module - Logging Setup.

Installs a single stdout handler on the root logger. Every module
logs through logging.getLogger(__name__).

Text lines:
    2024-01-01 00:00:00,000 | WARNING  | consensus.fanout | cycle-7 | ...

JSON lines carry one object per record. When the record holds an
AggregationException in exc_info, its to_dict() is attached under
"error".
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .exceptions import AggregationException


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        super().__init__()
        self.correlation_id = correlation_id or ""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": self.correlation_id,
        }

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            if isinstance(exc, AggregationException):
                payload["error"] = exc.to_dict()
            else:
                payload["error"] = {"type": type(exc).__name__, "message": str(exc)}
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    correlation_id: Optional[str] = None,
) -> logging.Logger:
    """
    Set up process logging.

    Args:
        level: Log level name
        log_format: Output format (json or text)
        correlation_id: Identifier stamped on every record (e.g. cycle id)

    Returns:
        The engine's top-level logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter: logging.Formatter = JsonFormatter(correlation_id)
    else:
        formatter = logging.Formatter(
            f"%(asctime)s | %(levelname)-8s | %(name)s | {correlation_id or '-'} | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("consensus")


__all__ = ["JsonFormatter", "setup_logging"]
