"""Run the exporter: ``python -m traewelling_exporter``.

Exit status is 0 after a normal shutdown (SIGINT/SIGTERM, handled by
uvicorn, which drains in-flight scrapes) and 1 when the configuration is
invalid or the metrics cannot be registered.  If the listen address
cannot be bound, uvicorn exits with its own non-zero status.
"""

from __future__ import annotations

import logging
import sys

import uvicorn

from traewelling_exporter.core.config import load_settings
from traewelling_exporter.core.errors import MetricsRegistrationError
from traewelling_exporter.core.logging import setup_logging
from traewelling_exporter.main import create_app

logger = logging.getLogger("traewelling_exporter")


def main() -> int:
    try:
        settings = load_settings()
    except ValueError as exc:
        setup_logging("info")
        logger.error("Invalid configuration: %s", exc)
        return 1

    setup_logging(settings.log_level, json_format=settings.log_json)

    try:
        app = create_app(settings)
    except MetricsRegistrationError:
        logger.exception("Failed to register metrics")
        return 1

    # log_config=None keeps the handlers installed by setup_logging()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
