"""Logging configuration for the exporter.

The exporter runs as a long-lived container process, so everything goes
to stdout and the container runtime collects it.  Two output styles:

  _ContainerFormatter  one human-readable line per record, for local runs
                       and plain ``docker logs`` reading.
  _JsonFormatter       JSON Lines, for log pipelines that index fields.
                       Enabled with LOG_JSON=true.

REQUEST CONTEXT
-----------------
middleware.request_context stores the current request ID in
request_id_var.  The filter installed on the handler copies it onto every
record, so a "Traewelling request failed" line can be matched to the
scrape that triggered it.  The access line additionally carries method,
path, status_code and duration_ms as record attributes.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime

# Libraries that are chatty at DEBUG; clamped to WARNING or above.
_NOISY_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "httpcore", "httpx")

# Value of request_id_var outside of a request.
NO_REQUEST = "-"

request_id_var: ContextVar[str] = ContextVar("request_id", default=NO_REQUEST)

# Attributes the access log line attaches through ``extra=``.
_HTTP_FIELDS = ("method", "path", "status_code", "duration_ms")


class _RequestContextFilter(logging.Filter):
    """Copy the current request_id onto every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()  # type: ignore[attr-defined]
        return True


def _timestamp(record: logging.LogRecord) -> str:
    # Local time with offset, e.g. 2024-05-01T09:01:12.345+02:00
    created = datetime.fromtimestamp(record.created).astimezone()
    return created.isoformat(timespec="milliseconds")


def _request_id(record: logging.LogRecord) -> str | None:
    request_id = getattr(record, "request_id", NO_REQUEST)
    return None if request_id == NO_REQUEST else request_id


def _location(record: logging.LogRecord) -> str | None:
    if record.levelno < logging.WARNING:
        return None
    return f"{record.filename}:{record.lineno}"


class _ContainerFormatter(logging.Formatter):
    """``<time> <LEVEL> <logger>  <message>[  req=<id>][  [file:line]]``"""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-8s %(name)s  %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return _timestamp(record)

    def formatMessage(self, record: logging.LogRecord) -> str:
        # Runs before the traceback is appended, so suffixes stay on line one.
        line = super().formatMessage(record)
        request_id = _request_id(record)
        if request_id is not None:
            line += f"  req={request_id}"
        location = _location(record)
        if location is not None:
            line += f"  [{location}]"
        return line


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = _request_id(record)
        if request_id is not None:
            entry["request_id"] = request_id
        for key in _HTTP_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)

        location = _location(record)
        if location is not None:
            entry["location"] = location
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Configure the root logger.

    Args:
        level_name: debug/info/warning/error; anything else means INFO.
        json_format: emit JSON Lines instead of the single-line text format.
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())
    # On the handler, not the root logger: logger filters skip records
    # propagated from child loggers.
    handler.addFilter(_RequestContextFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
