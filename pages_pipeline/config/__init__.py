"""Configuration package."""

from pages_pipeline.config.logging import configure_logging, get_logger
from pages_pipeline.config.settings import Settings, settings

__all__ = ["settings", "Settings", "configure_logging", "get_logger"]
