"""Client for the Traewelling REST API.

The exporter needs exactly one resource: ``GET {base}/statuses``, the
list of check-ins that are in progress right now.  Without a bearer
token Traewelling answers with whatever it exposes publicly (or an
authentication error, which is passed on as HttpStatusError).

ONE CLIENT PER PROCESS
------------------------
httpx.AsyncClient keeps a connection pool.  Creating one per scrape would
pay a TCP + TLS handshake every time, so the exporter builds a single
TraewellingClient at startup and shares it between all scrapes.  Nothing
about it changes after construction.

TIMEOUTS
----------
A stuck upstream must not pin a scrape forever: every request carries a
finite timeout (UPSTREAM_TIMEOUT_SECONDS, 10s by default).  Hitting it
surfaces as TransportError.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from pydantic import ValidationError

from traewelling_exporter import USER_AGENT
from traewelling_exporter.core.config import DEFAULT_TRAEWELLING_API, Settings
from traewelling_exporter.core.errors import DecodeError, HttpStatusError, TransportError
from traewelling_exporter.models.status import ActiveStatusesResponse, UpstreamStatus

logger = logging.getLogger(__name__)


class RequestCounter(Protocol):
    """What the client needs from the ``traewelling_requests`` counter."""

    def inc(self, amount: float = 1) -> None: ...


class TraewellingClient:
    def __init__(
        self,
        base_url: str = DEFAULT_TRAEWELLING_API,
        *,
        token: str | None = None,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
        request_counter: RequestCounter | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._request_counter = request_counter
        self._owns_http_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(
                headers={"User-Agent": USER_AGENT},
                timeout=httpx.Timeout(timeout),
            )
        self._http = http_client

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        http_client: httpx.AsyncClient | None = None,
        request_counter: RequestCounter | None = None,
    ) -> TraewellingClient:
        return cls(
            settings.traewelling_api,
            token=settings.traewelling_token,
            timeout=settings.upstream_timeout_seconds,
            http_client=http_client,
            request_counter=request_counter,
        )

    @property
    def statuses_url(self) -> str:
        return f"{self.base_url}/statuses"

    def _headers(self) -> dict[str, str]:
        # Injected clients don't carry our default headers, so always send the UA.
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if self._token is not None:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def fetch_active(self) -> list[UpstreamStatus]:
        """Fetch the currently active statuses.

        Raises:
            TransportError: the request did not complete.
            HttpStatusError: Traewelling answered with a non-2xx status.
            DecodeError: the 2xx body is not a valid statuses document.

        Every call counts as one request, however it ends.
        """
        try:
            return await self._fetch_active()
        finally:
            if self._request_counter is not None:
                self._request_counter.inc()

    async def _fetch_active(self) -> list[UpstreamStatus]:
        try:
            response = await self._http.get(self.statuses_url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise TransportError(
                f"GET {self.statuses_url} failed: {exc.__class__.__name__}: {exc}"
            ) from exc

        if not response.is_success:
            raise HttpStatusError(response.status_code, response.text)

        try:
            payload = ActiveStatusesResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise DecodeError(
                f"Unexpected statuses payload ({exc.error_count()} errors): {exc}"
            ) from exc

        logger.debug("Fetched %d active statuses", len(payload.data))
        return payload.data

    async def aclose(self) -> None:
        """Close the connection pool if this client created it."""
        if self._owns_http_client:
            await self._http.aclose()
