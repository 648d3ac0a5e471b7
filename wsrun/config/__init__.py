"""Configuration models and loading."""

from wsrun.config.loader import ConfigLoader, load_settings
from wsrun.config.models import LoggingConfig, RunSettings, detect_cpu_count, parse_jobs

__all__ = [
    "ConfigLoader",
    "LoggingConfig",
    "RunSettings",
    "detect_cpu_count",
    "load_settings",
    "parse_jobs",
]
