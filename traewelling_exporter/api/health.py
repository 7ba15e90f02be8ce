"""Liveness probe.

/healthz only says the process can answer HTTP.  It deliberately does not
call Traewelling: an upstream outage shows up as 500s on /metrics, and
restarting the exporter would not fix it.
"""

from __future__ import annotations

from fastapi import APIRouter, Response

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> Response:
    return Response(status_code=200)
