from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from dotenv import load_dotenv

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

DEFAULT_TRAEWELLING_API = "https://traewelling.de/api/v1"

_TRUTHY = ("1", "true", "yes", "on")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it's easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _positive_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number (got {raw!r})") from None
    if not value > 0:
        raise ValueError(f"{name} must be greater than zero (got {raw!r})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    host: str
    port: int
    traewelling_api: str
    traewelling_token: str | None
    cache_ttl_seconds: float
    upstream_timeout_seconds: float
    root_redirect: bool

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def has_token(self) -> bool:
        return self.traewelling_token is not None

    def __repr__(self) -> str:
        # The bearer token must never end up in logs or tracebacks.
        token = "<set>" if self.has_token else None
        return (
            f"Settings(app_env={self.app_env!r}, log_level={self.log_level!r}, "
            f"log_json={self.log_json!r}, host={self.host!r}, port={self.port!r}, "
            f"traewelling_api={self.traewelling_api!r}, traewelling_token={token!r}, "
            f"cache_ttl_seconds={self.cache_ttl_seconds!r}, "
            f"upstream_timeout_seconds={self.upstream_timeout_seconds!r}, "
            f"root_redirect={self.root_redirect!r})"
        )


def load_settings(env_file: str | Path | None = ".env") -> Settings:
    """Build Settings from the environment.

    A ``.env`` file is read first when present.  Variables that are
    already set in the real environment win over the file.
    """
    if env_file is not None and Path(env_file).is_file():
        load_dotenv(env_file, override=False)

    app_env_raw = _getenv("APP_ENV", "prod").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    host = _getenv("HOST", "0.0.0.0")
    port_raw = _getenv("PORT", "3000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if not host:
        raise ValueError("HOST must not be empty")

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None
    if not 0 < port < 65536:
        raise ValueError(f"PORT must be between 1 and 65535 (got {port})")

    api_raw = _getenv("TRAEWELLING_API", "") or DEFAULT_TRAEWELLING_API
    parsed = urlparse(api_raw)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(
            f"TRAEWELLING_API must be an absolute http(s) URL (got {api_raw!r})"
        )

    token = _getenv("TRAEWELLING_TOKEN", "") or None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in _TRUTHY,
        host=host,
        port=port,
        traewelling_api=api_raw.rstrip("/"),
        traewelling_token=token,
        cache_ttl_seconds=_positive_float(
            "CACHE_TTL_SECONDS", _getenv("CACHE_TTL_SECONDS", "30")
        ),
        upstream_timeout_seconds=_positive_float(
            "UPSTREAM_TIMEOUT_SECONDS", _getenv("UPSTREAM_TIMEOUT_SECONDS", "10")
        ),
        root_redirect=_getenv("ROOT_REDIRECT", "false").lower() in _TRUTHY,
    )
