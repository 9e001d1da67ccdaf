"""Core domain package for the cash-flow forecasting engine."""

from .errors import ForecastError, RecurrenceRuleError
from .formatting import format_recurrence, format_recurrence_short
from .frames import cash_points_to_frame, series_to_frame, transactions_to_frame
from .models import (
    AccountsProjection,
    BalanceCheckpoint,
    CashPoint,
    ProjectionParams,
    ProjectionResult,
    ProjectionSummary,
    ProjectionWarning,
    RecurrenceRule,
    RecurringSeries,
    RecurringTemplate,
    Transaction,
)

__all__ = [
    "ForecastError",
    "RecurrenceRuleError",
    "format_recurrence",
    "format_recurrence_short",
    "cash_points_to_frame",
    "series_to_frame",
    "transactions_to_frame",
    "AccountsProjection",
    "BalanceCheckpoint",
    "CashPoint",
    "ProjectionParams",
    "ProjectionResult",
    "ProjectionSummary",
    "ProjectionWarning",
    "RecurrenceRule",
    "RecurringSeries",
    "RecurringTemplate",
    "Transaction",
]
