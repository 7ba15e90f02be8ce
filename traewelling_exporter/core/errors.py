"""Exception types raised by the exporter.

Per-scrape failures derive from UpstreamError and end as an HTTP 500 on
/metrics.  MetricsRegistrationError only happens at startup and is fatal.
"""

from __future__ import annotations

# Upstream error bodies can be whole HTML error pages.
_BODY_PREVIEW_CHARS = 200


class UpstreamError(Exception):
    """A fetch of the active statuses did not produce a snapshot."""


class TransportError(UpstreamError):
    """Connection, TLS, timeout or unreadable response bytes."""


class HttpStatusError(UpstreamError):
    """Traewelling answered with a non-2xx status."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        preview = body[:_BODY_PREVIEW_CHARS]
        if len(body) > _BODY_PREVIEW_CHARS:
            preview += "..."
        super().__init__(f"Traewelling responded with HTTP {status}: {preview!r}")


class DecodeError(UpstreamError):
    """A 2xx body did not match the active statuses schema."""


class MetricsRegistrationError(Exception):
    """A metric family could not be registered."""
