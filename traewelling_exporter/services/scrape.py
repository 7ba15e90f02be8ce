"""Scrape orchestration: cache -> fetch -> aggregate -> gauges -> text.

One call to handle_scrape() serves one GET /metrics:

  1. Ask the snapshot cache for the current aggregate.  On a miss the
     cache runs _fill(): fetch active statuses, then aggregate them.
  2. If that failed, answer 500.  The gauges keep whatever the last
     successful scrape wrote; nothing is served from a stale snapshot.
  3. Otherwise write the aggregate into the gauge family and render the
     registry.  Both steps are synchronous, so no other scrape can slip
     in between them on the event loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from traewelling_exporter.core.errors import UpstreamError
from traewelling_exporter.core.metrics import ExporterMetrics
from traewelling_exporter.models.checkin import Aggregate
from traewelling_exporter.services.aggregator import aggregate
from traewelling_exporter.services.cache import SNAPSHOT_KEY, SnapshotCache
from traewelling_exporter.services.traewelling_client import TraewellingClient

logger = logging.getLogger(__name__)

SCRAPE_FAILED_MESSAGE = "Failed to fetch journeys"


@dataclass(frozen=True, slots=True)
class ScrapeResult:
    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class ScrapeOrchestrator:
    def __init__(
        self,
        client: TraewellingClient,
        cache: SnapshotCache[Aggregate],
        metrics: ExporterMetrics,
    ) -> None:
        self._client = client
        self._cache = cache
        self._metrics = metrics

    async def _fill(self) -> Aggregate:
        statuses = await self._client.fetch_active()
        logger.debug("Observing %d checkins", len(statuses))
        return aggregate(statuses)

    async def handle_scrape(self) -> ScrapeResult:
        try:
            journeys = await self._cache.get_or_fill(SNAPSHOT_KEY, self._fill)
        except UpstreamError as exc:
            logger.error("Traewelling request failed: %s", exc)
            return ScrapeResult(status_code=500, body=SCRAPE_FAILED_MESSAGE)

        self._metrics.apply(journeys)
        return ScrapeResult(status_code=200, body=self._metrics.render())
