"""Metric inventory of the exporter and the code that writes it.

Everything the exporter publishes lives in one ExporterMetrics instance:

  journeys              GAUGE, one sample per distinct label tuple of the
                        currently active check-ins.  The value is how many
                        check-ins share that tuple.
  traewelling_requests  COUNTER of calls made to the Traewelling API,
                        successful or not.  It keeps moving while the
                        upstream is down, which tells operators that the
                        exporter itself is alive.

WHY A DEDICATED REGISTRY
--------------------------
prometheus_client's global REGISTRY is shared by the whole process and
refuses duplicate names.  Owning a CollectorRegistry per exporter keeps
/metrics limited to the two families above and lets tests build as many
apps as they like without name clashes.

WHY RESET BEFORE WRITE
------------------------
A gauge child created for a label tuple stays in the family until it is
removed.  A train that has arrived would otherwise keep reporting its last
count forever, so apply() clears the family and rebuilds it from the
aggregate on every scrape.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    disable_created_metrics,
    generate_latest,
)

from traewelling_exporter.core.errors import MetricsRegistrationError
from traewelling_exporter.models.checkin import LABEL_NAMES, LabelTuple

# The ``_created`` companion series would only add noise for scrapers.
disable_created_metrics()

EXPOSITION_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


class ExporterMetrics:
    """Owns the ``journeys`` gauge family and the request counter."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        try:
            self.journeys = Gauge(
                "journeys",
                "Current Journeys",
                LABEL_NAMES,
                registry=self.registry,
            )
            self.traewelling_requests = Counter(
                "traewelling_requests",
                "HTTP Requests sent to Traewelling API",
                registry=self.registry,
            )
        except ValueError as exc:
            raise MetricsRegistrationError(str(exc)) from exc
        # Guards the clear-then-set sequence against a concurrent render.
        self._lock = threading.Lock()

    def apply(self, aggregate: Mapping[LabelTuple, int]) -> None:
        """Replace every ``journeys`` sample with the given aggregate."""
        with self._lock:
            self.journeys.clear()
            for labels, count in aggregate.items():
                self.journeys.labels(**labels.as_labels()).set(count)

    def render(self) -> str:
        """Prometheus text exposition of the registry."""
        with self._lock:
            return generate_latest(self.registry).decode("utf-8")
