from __future__ import annotations

import json
import re
import logging
import sys

from traewelling_exporter.core.logging import (
    _ContainerFormatter,
    _JsonFormatter,
    request_id_var,
    setup_logging,
)


def _record(level: int = logging.INFO, msg: str = "hello", **kwargs) -> logging.LogRecord:
    return logging.LogRecord(
        name=kwargs.pop("name", "test"),
        level=level,
        pathname=kwargs.pop("pathname", "test.py"),
        lineno=kwargs.pop("lineno", 1),
        msg=msg,
        args=kwargs.pop("args", ()),
        exc_info=kwargs.pop("exc_info", None),
    )


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_httpx_and_uvicorn_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("uvicorn").level == logging.WARNING


def test_setup_logging_allows_uvicorn_at_error() -> None:
    setup_logging("error")
    assert logging.getLogger("uvicorn").level == logging.ERROR


def test_setup_logging_installs_single_handler() -> None:
    setup_logging("info")
    setup_logging("info", json_format=True)
    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, _JsonFormatter)


def test_handler_attaches_request_id() -> None:
    setup_logging("info")
    (handler,) = logging.getLogger().handlers
    record = _record()

    token = request_id_var.set("req-42")
    try:
        handler.filter(record)
    finally:
        request_id_var.reset(token)

    assert record.request_id == "req-42"  # type: ignore[attr-defined]


def test_formatter_excludes_location_for_info() -> None:
    output = _ContainerFormatter().format(_record(msg="hello"))
    assert "hello" in output
    assert "[test.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    output = _ContainerFormatter().format(
        _record(logging.WARNING, "bad thing", lineno=42)
    )
    assert "bad thing" in output
    assert "[test.py:42]" in output


def test_json_formatter_produces_valid_json() -> None:
    output = _JsonFormatter().format(
        _record(msg="Observing %d checkins", args=(3,), name="traewelling_exporter.services.scrape")
    )
    parsed = json.loads(output)
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "traewelling_exporter.services.scrape"
    assert parsed["message"] == "Observing 3 checkins"
    assert "timestamp" in parsed


def test_json_formatter_includes_request_fields() -> None:
    record = _record(msg="GET /metrics -> 200")
    record.request_id = "abc-123"  # type: ignore[attr-defined]
    record.method = "GET"  # type: ignore[attr-defined]
    record.path = "/metrics"  # type: ignore[attr-defined]
    record.status_code = 200  # type: ignore[attr-defined]
    record.duration_ms = 12.5  # type: ignore[attr-defined]

    parsed = json.loads(_JsonFormatter().format(record))

    assert parsed["request_id"] == "abc-123"
    assert parsed["path"] == "/metrics"
    assert parsed["status_code"] == 200
    assert parsed["duration_ms"] == 12.5


def test_json_formatter_skips_placeholder_request_id() -> None:
    record = _record()
    record.request_id = "-"  # type: ignore[attr-defined]
    assert "request_id" not in json.loads(_JsonFormatter().format(record))


def test_json_formatter_includes_exception_info() -> None:
    try:
        raise ValueError("test error")
    except ValueError:
        record = _record(logging.ERROR, "Something failed", exc_info=sys.exc_info())
        output = _JsonFormatter().format(record)

    parsed = json.loads(output)
    assert "ValueError: test error" in parsed["exception"]


def test_formatter_appends_request_id_inside_a_request() -> None:
    record = _record(msg="Traewelling request failed")
    record.request_id = "scrape-7"  # type: ignore[attr-defined]

    first_line = _ContainerFormatter().format(record).splitlines()[0]

    assert first_line.endswith("Traewelling request failed  req=scrape-7")


def test_formatter_omits_placeholder_request_id() -> None:
    record = _record()
    record.request_id = "-"  # type: ignore[attr-defined]
    assert "req=" not in _ContainerFormatter().format(record)


def test_formatter_keeps_suffixes_above_traceback() -> None:
    try:
        raise ValueError("test error")
    except ValueError:
        record = _record(logging.ERROR, "boom", lineno=9, exc_info=sys.exc_info())
        output = _ContainerFormatter().format(record)

    first_line, *rest = output.splitlines()
    assert first_line.endswith("boom  [test.py:9]")
    assert "ValueError: test error" in rest[-1]


def test_formatter_timestamp_has_milliseconds_and_offset() -> None:
    record = _record()
    record.created = 1714546872.5

    stamp = _ContainerFormatter().format(record).split(" ", 1)[0]

    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.500[+-]\d\d:\d\d", stamp)


def test_json_formatter_adds_location_for_warning() -> None:
    parsed = json.loads(_JsonFormatter().format(_record(logging.WARNING, lineno=5)))
    assert parsed["location"] == "test.py:5"
    assert "location" not in json.loads(_JsonFormatter().format(_record()))
