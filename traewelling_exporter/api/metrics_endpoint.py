"""Prometheus scrape endpoint.

Example output:
  # HELP journeys Current Journeys
  # TYPE journeys gauge
  journeys{category="regional",distance="120000",line_name="RE5",...} 1.0
  # HELP traewelling_requests_total HTTP Requests sent to Traewelling API
  # TYPE traewelling_requests_total counter
  traewelling_requests_total 3.0

Each GET may trigger a Traewelling request (on a cache miss).  A failed
upstream request answers 500 with a short message and no metrics at all.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response

from traewelling_exporter.api.dependencies import get_orchestrator
from traewelling_exporter.core.metrics import EXPOSITION_CONTENT_TYPE
from traewelling_exporter.services.scrape import ScrapeOrchestrator

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics(
    orchestrator: Annotated[ScrapeOrchestrator, Depends(get_orchestrator)],
) -> Response:
    """Expose the journeys gauge and request counter."""
    result = await orchestrator.handle_scrape()
    if not result.ok:
        return PlainTextResponse(result.body, status_code=result.status_code)
    return Response(content=result.body, media_type=EXPOSITION_CONTENT_TYPE)
