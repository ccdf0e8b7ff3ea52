"""
Structured JSON logging for access decisions.

Every decision the gate makes is logged as one JSON object per line on
stdout, so a log pipeline can filter by path, decision, or denied token
without parsing free text. Example line:

    {"timestamp": "2026-10-18 10:30:00,123", "level": "WARNING", "logger": "route-acl",
     "message": "Request denied", "request_id": "3f2a9c1b", "path": "/cars",
     "required": ["cars:create"], "denied": ["cars:create"], "decision": "denied"}
"""

import json
import logging
import sys

LOGGER_NAME = "route-acl"


class JSONLogFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Structured fields are passed with logger.info("msg", extra={"acl_data": {...}})
    and merged into the top level of the JSON line. The gate stamps every
    record of one request with the same request_id; a failing resolver logs
    its traceback under that id:

        {"level": "ERROR", "message": "Permission resolver failed",
         "request_id": "3f2a9c1b", "decision": "resolver_failed", "exception": "..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "acl_data"):
            log_entry.update(record.acl_data)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(level: str = "info") -> logging.Logger:
    """Install the JSON formatter on the root logger and return the gate's logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONLogFormatter())

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=[handler],
        force=True,
    )
    return logging.getLogger(LOGGER_NAME)
