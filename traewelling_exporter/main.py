from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from traewelling_exporter import __version__
from traewelling_exporter.api.health import router as health_router
from traewelling_exporter.api.index import load_index_html
from traewelling_exporter.api.index import router as index_router
from traewelling_exporter.api.metrics_endpoint import router as metrics_router
from traewelling_exporter.core.config import Settings, load_settings
from traewelling_exporter.core.metrics import ExporterMetrics
from traewelling_exporter.middleware.request_context import RequestContextMiddleware
from traewelling_exporter.models.checkin import Aggregate
from traewelling_exporter.services.cache import SnapshotCache
from traewelling_exporter.services.scrape import ScrapeOrchestrator
from traewelling_exporter.services.traewelling_client import TraewellingClient

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    metrics: ExporterMetrics | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> FastAPI:
    """Build the exporter app.

    Metrics, upstream client, cache and orchestrator are all constructed
    here, before any listener binds, so a registration failure
    (MetricsRegistrationError) stops startup instead of the first scrape.
    """
    if settings is None:
        settings = load_settings()

    if metrics is None:
        metrics = ExporterMetrics()
    client = TraewellingClient.from_settings(
        settings,
        http_client=http_client,
        request_counter=metrics.traewelling_requests,
    )
    cache: SnapshotCache[Aggregate] = SnapshotCache(settings.cache_ttl_seconds, clock=clock)
    orchestrator = ScrapeOrchestrator(client, cache, metrics)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "traewelling-exporter %s starting on %s:%d  upstream=%s token=%s cache_ttl=%ss",
            __version__,
            settings.host,
            settings.port,
            client.base_url,
            "configured" if settings.has_token else "none",
            settings.cache_ttl_seconds,
        )
        try:
            yield
        finally:
            await client.aclose()
            logger.info("Upstream client closed")

    app = FastAPI(
        title="traewelling-exporter",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_dev else None,
        redoc_url="/redoc" if settings.is_dev else None,
        openapi_url="/openapi.json" if settings.is_dev else None,
    )

    app.state.settings = settings
    app.state.metrics = metrics
    app.state.client = client
    app.state.cache = cache
    app.state.orchestrator = orchestrator
    app.state.index_html = load_index_html(__version__)

    app.add_middleware(RequestContextMiddleware)

    app.include_router(metrics_router)
    app.include_router(health_router)
    app.include_router(index_router)

    return app
