"""Exception types raised by the cash-flow forecasting engine."""

from __future__ import annotations

__all__ = ["ForecastError", "RecurrenceRuleError"]


class ForecastError(RuntimeError):
    """Base class for errors raised by the forecasting engine."""


class RecurrenceRuleError(ForecastError, ValueError):
    """Raised when a recurrence rule violates its own invariants."""
