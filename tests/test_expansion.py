"""Unit tests for recurrence expansion."""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import get_settings
from core.errors import RecurrenceRuleError
from core.models import RecurrenceRule, RecurringSeries, RecurringTemplate
from forecasting.expansion import (
    MAX_EXPANSION_ITERATIONS,
    expand_recurrence,
    expand_series,
    next_occurrence,
    rule_occurrences,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _series(interval: int, *, enabled: bool = True, account: str | None = None) -> RecurringSeries:
    return RecurringSeries(
        signature_key=("rent", "outflow", 1500.0),
        normalized_description="rent",
        amount=-1500.0,
        observed_dates=(date(2025, 1, 2), date(2025, 2, 2), date(2025, 3, 2)),
        average_interval_days=interval,
        enabled=enabled,
        account_id=account,
    )


def _template(rule: RecurrenceRule, anchor: date, **kwargs) -> RecurringTemplate:
    return RecurringTemplate(
        id="tpl-1",
        date=anchor,
        description="Phone bill",
        amount=-45.0,
        rule=rule,
        account_id="checking",
        **kwargs,
    )


def test_expand_series_steps_from_last_observed_date():
    projected = expand_series(_series(30), date(2025, 5, 1))

    assert [tx.date for tx in projected] == [date(2025, 4, 1), date(2025, 5, 1)]
    assert all(tx.is_projected for tx in projected)
    assert all(tx.amount == pytest.approx(-1500.0) for tx in projected)
    assert projected[0].id == "proj-rent|outflow|1500.00-2025-04-01"
    assert projected[0].description == "rent"


def test_expand_series_stays_inside_bounds():
    series = _series(7)
    horizon = date(2025, 6, 30)
    projected = expand_series(series, horizon)

    assert projected
    assert all(series.last_date < tx.date <= horizon for tx in projected)


def test_expand_series_skips_disabled_and_zero_interval():
    assert expand_series(_series(30, enabled=False), date(2026, 1, 1)) == []
    assert expand_series(_series(0), date(2026, 1, 1)) == []


def test_expand_series_iteration_cap():
    projected = expand_series(_series(1), date(2035, 1, 1))
    assert len(projected) == MAX_EXPANSION_ITERATIONS


def test_iteration_cap_follows_settings(monkeypatch):
    monkeypatch.setenv("CASHFLOW_MAX_EXPANSION_ITERATIONS", "5")
    get_settings.cache_clear()
    horizon = date(2035, 1, 1)

    assert len(expand_series(_series(1), horizon)) == 5
    assert len(rule_occurrences(RecurrenceRule("daily"), date(2025, 1, 1), horizon)) == 5
    assert len(expand_recurrence([_series(1)], horizon)) == 5
    assert len(expand_series(_series(1), horizon, max_iterations=7)) == 7


def test_expand_series_keeps_account():
    projected = expand_series(_series(30, account="checking"), date(2025, 5, 1))

    assert [tx.account_id for tx in projected] == ["checking", "checking"]
    assert expand_series(_series(30), date(2025, 5, 1))[0].account_id is None


def test_daily_and_weekly_rules_step_by_interval():
    anchor = date(2025, 1, 1)
    daily = rule_occurrences(RecurrenceRule("daily", interval=3), anchor, date(2025, 1, 10))
    weekly = rule_occurrences(RecurrenceRule("weekly", interval=2), anchor, date(2025, 2, 15))
    biweekly = rule_occurrences(RecurrenceRule("biweekly", interval=5), anchor, date(2025, 2, 15))

    assert daily == [date(2025, 1, 4), date(2025, 1, 7), date(2025, 1, 10)]
    assert weekly == [date(2025, 1, 15), date(2025, 1, 29), date(2025, 2, 12)]
    assert biweekly == weekly


def test_monthly_day_31_skips_short_months():
    rule = RecurrenceRule("monthly", days_of_month=(31,))
    dates = rule_occurrences(rule, date(2025, 1, 1), date(2025, 5, 31))

    assert dates == [date(2025, 1, 31), date(2025, 3, 31), date(2025, 5, 31)]


def test_monthly_multiple_days_in_order():
    rule = RecurrenceRule("monthly", days_of_month=(15, 1))
    dates = rule_occurrences(rule, date(2025, 1, 10), date(2025, 2, 28))

    assert dates == [date(2025, 1, 15), date(2025, 2, 1), date(2025, 2, 15)]


def test_monthly_last_day_handles_leap_february():
    rule = RecurrenceRule("monthly", last_day_of_month=True)
    dates = rule_occurrences(rule, date(2024, 1, 31), date(2024, 4, 30))

    assert dates == [date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30)]


def test_monthly_nth_weekday():
    # second Tuesday; weekday counts from Sunday = 0
    rule = RecurrenceRule("monthly", weekday=2, week_of_month=2)
    dates = rule_occurrences(rule, date(2025, 1, 1), date(2025, 3, 31))

    assert dates == [date(2025, 1, 14), date(2025, 2, 11), date(2025, 3, 11)]


def test_monthly_last_weekday():
    # last Friday
    rule = RecurrenceRule("monthly", weekday=5, week_of_month=-1)
    dates = rule_occurrences(rule, date(2025, 1, 1), date(2025, 3, 31))

    assert dates == [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 28)]


def test_monthly_interval_multiplies_month_step():
    rule = RecurrenceRule("monthly", interval=3, days_of_month=(10,))
    dates = rule_occurrences(rule, date(2025, 1, 10), date(2025, 12, 31))

    assert dates == [date(2025, 4, 10), date(2025, 7, 10), date(2025, 10, 10)]


def test_yearly_leap_day_anchor_degrades_to_feb_28():
    rule = RecurrenceRule("yearly")
    dates = rule_occurrences(rule, date(2024, 2, 29), date(2028, 12, 31))

    assert dates == [date(2025, 2, 28), date(2026, 2, 28), date(2027, 2, 28), date(2028, 2, 29)]


def test_yearly_interval_multiplies_year_step():
    rule = RecurrenceRule("yearly", interval=2)
    dates = rule_occurrences(rule, date(2024, 2, 29), date(2032, 12, 31))

    assert dates == [date(2026, 2, 28), date(2028, 2, 29), date(2030, 2, 28), date(2032, 2, 29)]


def test_rule_end_date_takes_precedence_over_horizon():
    rule = RecurrenceRule("monthly", days_of_month=(1,))
    dates = rule_occurrences(rule, date(2025, 1, 1), date(2025, 12, 31), end_date=date(2025, 3, 15))

    assert dates == [date(2025, 2, 1), date(2025, 3, 1)]


def test_expand_recurrence_merges_sources_by_date():
    template = _template(RecurrenceRule("monthly", days_of_month=(20,)), date(2025, 3, 20))
    projected = expand_recurrence([_series(30), template], date(2025, 5, 31))

    assert [tx.date for tx in projected] == [
        date(2025, 4, 1),
        date(2025, 4, 20),
        date(2025, 5, 1),
        date(2025, 5, 20),
        date(2025, 5, 31),
    ]
    phone = [tx for tx in projected if tx.source_id == "tpl-1"]
    assert all(tx.account_id == "checking" for tx in phone)


def test_next_occurrence():
    template = _template(RecurrenceRule("monthly", last_day_of_month=True), date(2025, 1, 31))

    assert next_occurrence(template, date(2025, 1, 1)) == date(2025, 1, 31)
    assert next_occurrence(template, date(2025, 2, 10)) == date(2025, 2, 28)
    ended = _template(template.rule, template.date, end_date=date(2025, 2, 28))
    assert next_occurrence(ended, date(2025, 3, 1)) is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"frequency": "monthly"},
        {"frequency": "monthly", "days_of_month": (1,), "last_day_of_month": True},
        {"frequency": "monthly", "weekday": 1},
        {"frequency": "monthly", "weekday": 1, "week_of_month": 5},
        {"frequency": "weekly", "days_of_month": (3,)},
        {"frequency": "daily", "interval": 0},
        {"frequency": "hourly"},
    ],
)
def test_invalid_rules_are_rejected(kwargs):
    with pytest.raises(RecurrenceRuleError):
        RecurrenceRule(**kwargs)
