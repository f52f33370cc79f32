"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository, apply_env_overrides
from .models import BrowserConfig, DatabaseConfig, ScheduleConfig, ScheduleType, Settings

__all__ = [
    "BrowserConfig",
    "ConfigLocator",
    "ConfigRepository",
    "DatabaseConfig",
    "ScheduleConfig",
    "ScheduleType",
    "Settings",
    "apply_env_overrides",
]
