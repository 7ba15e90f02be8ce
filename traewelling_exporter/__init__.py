"""Prometheus exporter for the Traewelling active check-ins feed."""

__all__ = ["__version__", "PROJECT_NAME", "USER_AGENT"]

PROJECT_NAME = "traewelling-exporter"
__version__ = "0.1.0"

USER_AGENT = f"{PROJECT_NAME}/{__version__}"
