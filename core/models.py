"""Shared value types for the cash-flow forecasting engine."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import TYPE_CHECKING, Literal, get_args

from core.errors import RecurrenceRuleError

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from config.settings import ForecastSettings

Frequency = Literal["daily", "weekly", "biweekly", "monthly", "yearly"]
Sensitivity = Literal["strict", "normal", "loose"]
BucketWidth = Literal["1d", "3d", "1w", "2w", "1m"]
FlowSign = Literal["inflow", "outflow"]
MonthlyMode = Literal["days", "last_day", "weekday"]

FREQUENCIES: tuple[str, ...] = get_args(Frequency)
SENSITIVITIES: tuple[str, ...] = get_args(Sensitivity)
BUCKET_WIDTHS: tuple[str, ...] = get_args(BucketWidth)

SignatureKey = tuple[str, FlowSign, float]


def flow_sign(amount: float) -> FlowSign:
    """Classify an amount as ``inflow`` (zero included) or ``outflow``."""

    return "inflow" if amount >= 0 else "outflow"


@dataclass(frozen=True, slots=True)
class Transaction:
    id: str
    date: date
    description: str
    amount: float
    account_id: str | None = None
    is_projected: bool = False
    source_id: str | None = None


@dataclass(frozen=True, slots=True)
class RecurrenceRule:
    """Calendar rule describing when a recurring transaction repeats.

    ``weekday`` counts from Sunday (0) to Saturday (6). ``week_of_month`` is
    1-4, or -1 for the last matching weekday of the month. The three monthly
    fields are mutually exclusive and exactly one of them must be set when
    ``frequency`` is ``monthly``.
    """

    frequency: Frequency
    interval: int = 1
    days_of_month: tuple[int, ...] = ()
    last_day_of_month: bool = False
    weekday: int | None = None
    week_of_month: int | None = None

    def __post_init__(self) -> None:
        if self.frequency not in FREQUENCIES:
            raise RecurrenceRuleError(f"Unknown frequency: {self.frequency!r}")
        if self.interval < 1:
            raise RecurrenceRuleError(f"Interval must be at least 1, got {self.interval}")

        object.__setattr__(self, "days_of_month", tuple(sorted(set(self.days_of_month))))
        for day in self.days_of_month:
            if not 1 <= day <= 31:
                raise RecurrenceRuleError(f"Day of month out of range: {day}")
        if self.weekday is not None and not 0 <= self.weekday <= 6:
            raise RecurrenceRuleError(f"Weekday out of range: {self.weekday}")
        if self.week_of_month is not None and self.week_of_month not in (1, 2, 3, 4, -1):
            raise RecurrenceRuleError(f"Week of month must be 1-4 or -1, got {self.week_of_month}")

        has_weekday = self.weekday is not None or self.week_of_month is not None
        if has_weekday and (self.weekday is None or self.week_of_month is None):
            raise RecurrenceRuleError("weekday and week_of_month must be set together")

        modes = sum((bool(self.days_of_month), self.last_day_of_month, has_weekday))
        if self.frequency == "monthly":
            if modes != 1:
                raise RecurrenceRuleError(
                    "Monthly rules need exactly one of days_of_month, last_day_of_month "
                    "or weekday with week_of_month"
                )
        elif modes:
            raise RecurrenceRuleError(f"Monthly options are not valid for {self.frequency} rules")

    @property
    def mode(self) -> MonthlyMode | None:
        if self.frequency != "monthly":
            return None
        if self.last_day_of_month:
            return "last_day"
        if self.days_of_month:
            return "days"
        return "weekday"


@dataclass(frozen=True, slots=True)
class RecurringTemplate:
    """A user-authored recurring transaction anchored on its first occurrence."""

    id: str
    date: date
    description: str
    amount: float
    rule: RecurrenceRule
    account_id: str | None = None
    end_date: date | None = None


@dataclass(frozen=True, slots=True)
class RecurringSeries:
    signature_key: SignatureKey
    normalized_description: str
    amount: float
    observed_dates: tuple[date, ...]
    average_interval_days: int
    enabled: bool = True
    account_id: str | None = None

    @property
    def sign(self) -> FlowSign:
        return self.signature_key[1]

    @property
    def last_date(self) -> date:
        return self.observed_dates[-1]

    @property
    def occurrences(self) -> int:
        return len(self.observed_dates)

    @property
    def key(self) -> str:
        description, sign, magnitude = self.signature_key
        return f"{description}|{sign}|{magnitude:.2f}"

    def toggled(self, enabled: bool) -> "RecurringSeries":
        """Return a copy with ``enabled`` set, as done during user review."""

        return replace(self, enabled=enabled)


@dataclass(frozen=True, slots=True)
class BalanceCheckpoint:
    account_id: str | None
    date: date
    amount: float


@dataclass(frozen=True, slots=True)
class ProjectionParams:
    start_date: date
    end_date: date
    bucket_width: BucketWidth
    starting_balance: float
    sensitivity: Sensitivity = "normal"
    warning_threshold: float = 0.0

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        if self.bucket_width not in BUCKET_WIDTHS:
            raise ValueError(f"Unknown bucket width: {self.bucket_width!r}")
        if self.sensitivity not in SENSITIVITIES:
            raise ValueError(f"Unknown sensitivity: {self.sensitivity!r}")

    @classmethod
    def from_settings(
        cls,
        start_date: date,
        end_date: date,
        starting_balance: float,
        settings: "ForecastSettings | None" = None,
    ) -> "ProjectionParams":
        """Build params using configured defaults for width, sensitivity and threshold."""

        if settings is None:
            from config.settings import get_settings

            settings = get_settings()
        return cls(
            start_date=start_date,
            end_date=end_date,
            bucket_width=settings.bucket_width,
            starting_balance=starting_balance,
            sensitivity=settings.sensitivity,
            warning_threshold=settings.warning_threshold,
        )


@dataclass(frozen=True, slots=True)
class CashPoint:
    bucket_date: date
    balance: float
    is_projected: bool


@dataclass(frozen=True, slots=True)
class ProjectionWarning:
    date: date
    account_id: str | None
    balance: float
    threshold: float


@dataclass(frozen=True)
class ProjectionResult:
    data_points: list[CashPoint] = field(default_factory=list)
    warnings: list[ProjectionWarning] = field(default_factory=list)


@dataclass(frozen=True)
class AccountsProjection:
    accounts: dict[str, ProjectionResult]
    total: list[CashPoint]
    warnings: list[ProjectionWarning]


@dataclass(frozen=True)
class ProjectionSummary:
    starting_balance: float
    ending_balance: float
    lowest_balance: float
    lowest_date: date | None
    highest_balance: float
    highest_date: date | None
    warning_count: int
    accounts_with_warnings: list[str]


__all__ = [
    "Frequency",
    "Sensitivity",
    "BucketWidth",
    "FlowSign",
    "MonthlyMode",
    "FREQUENCIES",
    "SENSITIVITIES",
    "BUCKET_WIDTHS",
    "SignatureKey",
    "flow_sign",
    "Transaction",
    "RecurrenceRule",
    "RecurringTemplate",
    "RecurringSeries",
    "BalanceCheckpoint",
    "ProjectionParams",
    "CashPoint",
    "ProjectionWarning",
    "ProjectionResult",
    "AccountsProjection",
    "ProjectionSummary",
]
