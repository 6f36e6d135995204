"""Configuration models and loader for pipewatch."""

from pipewatch.kernel.config.loader import ConfigLoader, load_config
from pipewatch.kernel.config.models import DashboardConfig, LoggingConfig, PipewatchConfig

__all__ = [
    "ConfigLoader",
    "DashboardConfig",
    "LoggingConfig",
    "PipewatchConfig",
    "load_config",
]
