"""Structured logging for the page service.

In JSON mode every line is one object. Whitelisted `extra=` fields are
lifted into it, so a conversion can be followed by `version_id` and
`page_number` from fetch to persist. The plain-text mode is for local runs.
"""

import json
import logging
from datetime import datetime, timezone

# Identify the request and the page being converted
CONTEXT_FIELDS = ("trace_id", "team_id", "version_id", "page_number")

# Describe what happened
EVENT_FIELDS = (
    "error_code",
    "error_kind",
    "http_status",
    "status_code",
    "attempt",
    "max_attempts",
    "delay_seconds",
    "scale_factor",
    "duration_ms",
    "stage_timings",
    "pool_min",
    "pool_max",
)

EXTRA_FIELDS = CONTEXT_FIELDS + EVENT_FIELDS

QUIET_LOGGERS = ("urllib3", "httpx", "httpcore", "asyncio", "PIL")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def _utc_timestamp(created: float) -> str:
    moment = datetime.fromtimestamp(created, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


class StructuredFormatter(logging.Formatter):
    """One JSON object per record.

    Example:
        >>> logger.info("Page stored", extra={"version_id": "v1", "page_number": 3})
        {"timestamp": "2025-12-05T17:52:00.000Z", "level": "INFO", ...,
         "version_id": "v1", "page_number": 3}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _utc_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "process_id": record.process,
        }
        payload.update(
            {key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)}
        )

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_structured_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Replace root handlers with a single stderr handler.

    Args:
        level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: JSON lines (True) or human-readable text (False)
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter() if json_format else logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
