from __future__ import annotations

from importlib import resources
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from traewelling_exporter import __version__
from traewelling_exporter.api.dependencies import get_index_html, get_settings
from traewelling_exporter.core.config import Settings

router = APIRouter(tags=["index"])

VERSION_MARKER = "%VERSION%"


def load_index_html(version: str = __version__) -> str:
    """Read the bundled landing page and stamp the build version into it."""
    template = (
        resources.files("traewelling_exporter")
        .joinpath("static").joinpath("index.html")
        .read_text(encoding="utf-8")
    )
    return template.replace(VERSION_MARKER, version)


@router.get("/", include_in_schema=False)
async def root(
    settings: Annotated[Settings, Depends(get_settings)],
    index_html: Annotated[str, Depends(get_index_html)],
) -> Response:
    if settings.root_redirect:
        return RedirectResponse("/metrics", status_code=308)
    return HTMLResponse(index_html)


@router.get("/index.html", include_in_schema=False)
async def index(index_html: Annotated[str, Depends(get_index_html)]) -> HTMLResponse:
    return HTMLResponse(index_html)
