"""Core infrastructure modules."""

from .config import (
    DetectionConfig,
    EngineConfig,
    LoggingConfig,
    ScoringConfig,
    Settings,
    get_settings,
    reload_settings,
)
from .logging import configure_logging, get_logger

__all__ = [
    "DetectionConfig",
    "EngineConfig",
    "LoggingConfig",
    "ScoringConfig",
    "Settings",
    "configure_logging",
    "get_logger",
    "get_settings",
    "reload_settings",
]
