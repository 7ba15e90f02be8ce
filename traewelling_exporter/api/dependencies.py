"""FastAPI dependencies that hand out the process-wide singletons.

create_app() builds the singletons once and parks them on ``app.state``;
handlers receive them through Depends() so tests can build independent
apps side by side.
"""

from __future__ import annotations

from fastapi import Request

from traewelling_exporter.core.config import Settings
from traewelling_exporter.services.scrape import ScrapeOrchestrator


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_orchestrator(request: Request) -> ScrapeOrchestrator:
    return request.app.state.orchestrator


def get_index_html(request: Request) -> str:
    return request.app.state.index_html
