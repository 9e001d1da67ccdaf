"""Centralised configuration handling for the forecasting engine."""

from __future__ import annotations

from datetime import date, timedelta
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.models import BucketWidth, Sensitivity

DEFAULT_HORIZON_DAYS = 90
DEFAULT_MAX_EXPANSION_ITERATIONS = 1000


class ForecastSettings(BaseSettings):
    """Engine defaults sourced from ``CASHFLOW_*`` environment variables."""

    warning_threshold: float = 0.0
    sensitivity: Sensitivity = "normal"
    bucket_width: BucketWidth = "1w"
    horizon_days: int = Field(default=DEFAULT_HORIZON_DAYS, ge=1)
    max_expansion_iterations: int = Field(default=DEFAULT_MAX_EXPANSION_ITERATIONS, ge=1)

    model_config = SettingsConfigDict(env_prefix="CASHFLOW_", extra="ignore")

    def horizon_for(self, today: date) -> date:
        return today + timedelta(days=self.horizon_days)


@lru_cache
def get_settings() -> ForecastSettings:
    """Load and cache engine settings."""

    return ForecastSettings()
