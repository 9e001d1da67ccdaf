"""Expansion of recurring series and calendar rules into projected transactions."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Final, Iterable, Union

from config.settings import DEFAULT_MAX_EXPANSION_ITERATIONS, get_settings
from core.dates import add_months, day_of_month, iter_months, last_day_of_month, nth_weekday_of_month
from core.models import RecurrenceRule, RecurringSeries, RecurringTemplate, Transaction

__all__ = [
    "MAX_EXPANSION_ITERATIONS",
    "RecurrenceSource",
    "expand_series",
    "rule_occurrences",
    "expand_template",
    "expand_recurrence",
    "next_occurrence",
]

logger = logging.getLogger(__name__)

MAX_EXPANSION_ITERATIONS: Final[int] = DEFAULT_MAX_EXPANSION_ITERATIONS
NEXT_OCCURRENCE_LOOKAHEAD_MONTHS: Final[int] = 24

RecurrenceSource = Union[RecurringSeries, RecurringTemplate]

_FIXED_STEP_DAYS = {"daily": 1, "weekly": 7}


def _iteration_cap(max_iterations: int | None) -> int:
    if max_iterations is not None:
        return max_iterations
    return get_settings().max_expansion_iterations


def expand_series(
    series: RecurringSeries,
    horizon: date,
    *,
    max_iterations: int | None = None,
) -> list[Transaction]:
    """Project a detected series forward by its average interval.

    Occurrences start one interval after the latest observed date and stop at
    ``horizon`` (inclusive). Disabled series and series with an interval below
    one day yield nothing.
    """

    max_iterations = _iteration_cap(max_iterations)
    if not series.enabled:
        return []
    if series.average_interval_days < 1:
        logger.warning(
            "Skipping series %r with non-positive interval %d",
            series.key,
            series.average_interval_days,
        )
        return []

    step = timedelta(days=series.average_interval_days)
    projected: list[Transaction] = []
    current = series.last_date + step
    iterations = 0
    while current <= horizon and iterations < max_iterations:
        projected.append(
            Transaction(
                id=f"proj-{series.key}-{current.isoformat()}",
                date=current,
                description=series.normalized_description,
                amount=series.amount,
                account_id=series.account_id,
                is_projected=True,
                source_id=series.key,
            )
        )
        current += step
        iterations += 1

    if iterations >= max_iterations:
        logger.warning("Expansion of series %r stopped at %d iterations", series.key, max_iterations)
    return projected


def rule_occurrences(
    rule: RecurrenceRule,
    anchor: date,
    horizon: date,
    *,
    end_date: date | None = None,
    max_iterations: int | None = None,
) -> list[date]:
    """Return the dates ``rule`` produces strictly after ``anchor``.

    Dates never exceed ``horizon``, or ``end_date`` when that is earlier.
    """

    max_iterations = _iteration_cap(max_iterations)
    limit = horizon if end_date is None else min(horizon, end_date)
    if limit <= anchor:
        return []

    if rule.frequency == "monthly":
        dates = _monthly_occurrences(rule, anchor, limit, max_iterations)
    elif rule.frequency == "yearly":
        dates = _yearly_occurrences(rule, anchor, limit, max_iterations)
    else:
        if rule.frequency == "biweekly":
            step_days = 14
        else:
            step_days = _FIXED_STEP_DAYS[rule.frequency] * rule.interval
        dates = _fixed_step_occurrences(anchor, limit, step_days, max_iterations)
    return dates


def _fixed_step_occurrences(anchor: date, limit: date, step_days: int, max_iterations: int) -> list[date]:
    step = timedelta(days=step_days)
    dates: list[date] = []
    current = anchor + step
    while current <= limit and len(dates) < max_iterations:
        dates.append(current)
        current += step
    if len(dates) >= max_iterations:
        logger.warning("Fixed-step expansion stopped at %d iterations", max_iterations)
    return dates


def _yearly_occurrences(rule: RecurrenceRule, anchor: date, limit: date, max_iterations: int) -> list[date]:
    # each step is measured from the anchor so Feb 29 returns in leap years
    dates: list[date] = []
    for k in range(1, max_iterations + 1):
        current = add_months(anchor, 12 * rule.interval * k)
        if current > limit:
            break
        dates.append(current)
    return dates


def _monthly_occurrences(rule: RecurrenceRule, anchor: date, limit: date, max_iterations: int) -> list[date]:
    dates: list[date] = []
    months = iter_months(anchor, rule.interval)
    for _ in range(max_iterations):
        year, month = next(months)
        if date(year, month, 1) > limit:
            break
        for candidate in _month_candidates(rule, year, month):
            if anchor < candidate <= limit:
                dates.append(candidate)
    else:
        logger.warning("Monthly expansion stopped at %d iterations", max_iterations)
    return dates


def _month_candidates(rule: RecurrenceRule, year: int, month: int) -> list[date]:
    if rule.mode == "last_day":
        return [last_day_of_month(year, month)]
    if rule.mode == "weekday":
        found = nth_weekday_of_month(year, month, rule.weekday, rule.week_of_month)
        return [found] if found is not None else []
    candidates = (day_of_month(year, month, day) for day in rule.days_of_month)
    return [d for d in candidates if d is not None]


def expand_template(
    template: RecurringTemplate,
    horizon: date,
    *,
    max_iterations: int | None = None,
) -> list[Transaction]:
    """Expand a user-authored recurring transaction after its anchor date."""

    occurrences = rule_occurrences(
        template.rule,
        template.date,
        horizon,
        end_date=template.end_date,
        max_iterations=max_iterations,
    )
    return [
        Transaction(
            id=f"proj-{template.id}-{day.isoformat()}",
            date=day,
            description=template.description,
            amount=template.amount,
            account_id=template.account_id,
            is_projected=True,
            source_id=template.id,
        )
        for day in occurrences
    ]


def expand_recurrence(
    source: RecurrenceSource | Iterable[RecurrenceSource],
    horizon: date,
    *,
    max_iterations: int | None = None,
) -> list[Transaction]:
    """Turn detected series or recurring templates into projected transactions.

    A single source keeps its natural date order. An iterable of sources is
    merged and ordered by date, then by id. ``max_iterations`` defaults to
    the configured ``max_expansion_iterations``
    (``CASHFLOW_MAX_EXPANSION_ITERATIONS``).
    """

    max_iterations = _iteration_cap(max_iterations)
    if isinstance(source, RecurringSeries):
        return expand_series(source, horizon, max_iterations=max_iterations)
    if isinstance(source, RecurringTemplate):
        return expand_template(source, horizon, max_iterations=max_iterations)

    projected: list[Transaction] = []
    for item in source:
        projected.extend(expand_recurrence(item, horizon, max_iterations=max_iterations))
    projected.sort(key=lambda tx: (tx.date, tx.id))
    return projected


def next_occurrence(template: RecurringTemplate, after: date) -> date | None:
    """Return the first occurrence of ``template`` strictly after ``after``.

    The search looks two years ahead; ``None`` means the template has ended or
    produces nothing in that window.
    """

    if template.date > after:
        if template.end_date is not None and template.date > template.end_date:
            return None
        return template.date

    horizon = add_months(after, NEXT_OCCURRENCE_LOOKAHEAD_MONTHS)
    for occurrence in rule_occurrences(template.rule, template.date, horizon, end_date=template.end_date):
        if occurrence > after:
            return occurrence
    return None
