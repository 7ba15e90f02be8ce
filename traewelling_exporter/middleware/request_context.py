"""Request context middleware: request IDs and one log line per request.

Scrapes from several Prometheus servers interleave in the log.  Every
request gets an ID stored in core.logging.request_id_var; the handler
filter installed by setup_logging() copies it onto each LogRecord, so
every line logged while serving the request carries the same request_id.

A client-supplied X-Request-ID is reused only when it is a short token of
URL-safe characters.  Anything else is replaced by a fresh UUID, since the
value ends up verbatim in log lines and in the response header.
"""

from __future__ import annotations

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from traewelling_exporter.core.logging import request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")


def resolve_request_id(supplied: str | None) -> str:
    if supplied and _VALID_REQUEST_ID.fullmatch(supplied):
        return supplied
    return str(uuid.uuid4())


def _log_request(request: Request, status_code: int, started: float) -> None:
    duration_ms = round((time.monotonic() - started) * 1000, 1)
    logger.info(
        "%s %s -> %d (%.1fms)",
        request.method,
        request.url.path,
        status_code,
        duration_ms,
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": duration_ms,
        },
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = request_id_var.set(request_id)
        started = time.monotonic()
        try:
            try:
                response = await call_next(request)
            except Exception:
                # Starlette turns this into a 500 further out
                _log_request(request, 500, started)
                raise
            _log_request(request, response.status_code, started)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
