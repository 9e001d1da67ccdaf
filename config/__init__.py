"""Application configuration utilities."""

from .settings import DEFAULT_HORIZON_DAYS, DEFAULT_MAX_EXPANSION_ITERATIONS, ForecastSettings, get_settings

__all__ = [
    "DEFAULT_HORIZON_DAYS",
    "DEFAULT_MAX_EXPANSION_ITERATIONS",
    "ForecastSettings",
    "get_settings",
]
