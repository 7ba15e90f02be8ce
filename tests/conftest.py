from __future__ import annotations

import asyncio
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import traewelling_exporter` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from traewelling_exporter.core.config import Settings  # noqa: E402
from traewelling_exporter.core.metrics import ExporterMetrics  # noqa: E402
from traewelling_exporter.main import create_app  # noqa: E402

BASE_URL = "https://trwl.test/api/v1"


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "app_env": "test",
        "log_level": "info",
        "log_json": False,
        "host": "127.0.0.1",
        "port": 3000,
        "traewelling_api": BASE_URL,
        "traewelling_token": None,
        "cache_ttl_seconds": 30.0,
        "upstream_timeout_seconds": 10.0,
        "root_redirect": False,
    }
    values.update(overrides)
    return Settings(**values)


def _stopover(name: str, stop_id: int) -> dict[str, Any]:
    return {
        "id": stop_id,
        "name": name,
        "rilIdentifier": None,
        "evaIdentifier": 8000000 + stop_id,
        "arrival": "2024-05-01T10:40:00+02:00",
        "arrivalPlanned": "2024-05-01T10:38:00+02:00",
        "arrivalReal": "2024-05-01T10:40:00+02:00",
        "arrivalPlatformPlanned": "3",
        "arrivalPlatformReal": "3",
        "departure": "2024-05-01T09:05:00+02:00",
        "departurePlanned": "2024-05-01T09:05:00+02:00",
        "departureReal": None,
        "departurePlatformPlanned": "7",
        "departurePlatformReal": None,
        "platform": "7",
        "isArrivalDelayed": True,
        "isDepartureDelayed": False,
        "cancelled": False,
    }


def make_status(
    *,
    status_id: int = 1,
    user_id: int = 7,
    username: str = "alice",
    category: str = "regional",
    line_name: str = "RE5",
    number: str = "4512",
    distance: int = 120000,
    duration: int = 95,
    speed: float = 84.3,
    origin: str = "Hamburg Hbf",
    destination: str = "Kiel Hbf",
    event: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """One active status as Traewelling sends it (camelCase, extra fields included)."""
    return {
        "id": status_id,
        "body": "",
        "userId": user_id,
        "username": username,
        "profilePicture": f"https://traewelling.de/@{username}/picture",
        "preventIndex": False,
        "business": 0,
        "businessId": 0,
        "visibility": 0,
        "likes": 0,
        "liked": False,
        "isLikable": True,
        "createdAt": "2024-05-01T09:01:12+02:00",
        "train": {
            "trip": 4242,
            "tripId": 4242,
            "hafasId": "1|12345|0|80|1052024",
            "category": category,
            "number": number,
            "lineName": line_name,
            "journeyNumber": 4512,
            "distance": distance,
            "points": 12,
            "duration": duration,
            "speed": speed,
            "origin": _stopover(origin, 1),
            "destination": _stopover(destination, 2),
            "operator": None,
        },
        "event": event,
    }


class FakeTraewelling:
    """Scriptable Traewelling API served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.statuses: list[dict[str, Any]] = []
        self.status_code = 200
        self.body: str | None = None
        self.delay = 0.0
        self.requests: list[httpx.Request] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.body is not None:
            return httpx.Response(self.status_code, text=self.body)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"message": "Unauthenticated."})
        return httpx.Response(200, json={"data": self.statuses})

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def upstream() -> FakeTraewelling:
    return FakeTraewelling()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def metrics() -> ExporterMetrics:
    return ExporterMetrics()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def client(
    settings: Settings,
    upstream: FakeTraewelling,
    metrics: ExporterMetrics,
    clock: FakeClock,
) -> Iterator[TestClient]:
    app = create_app(
        settings,
        http_client=upstream.http_client(),
        metrics=metrics,
        clock=clock,
    )
    with TestClient(app) as c:
        yield c


def requests_total(metrics: ExporterMetrics) -> float:
    value = metrics.registry.get_sample_value("traewelling_requests_total")
    return value if value is not None else 0.0


def journeys_samples(metrics: ExporterMetrics) -> dict[tuple[str, ...], float]:
    """Current ``journeys`` samples keyed by label values in label order."""
    samples: dict[tuple[str, ...], float] = {}
    for family in metrics.registry.collect():
        if family.name != "journeys":
            continue
        for sample in family.samples:
            samples[tuple(sample.labels.values())] = sample.value
    return samples
