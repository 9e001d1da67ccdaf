"""Formatting helpers for recurrence rules."""

from __future__ import annotations

from core.models import RecurrenceRule

__all__ = ["format_recurrence", "format_recurrence_short", "ordinal"]

WEEKDAY_LABELS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
WEEK_OF_MONTH_LABELS = {1: "first", 2: "second", 3: "third", 4: "fourth", -1: "last"}
FREQUENCY_LABELS = {
    "daily": "Daily",
    "weekly": "Weekly",
    "biweekly": "Bi-weekly",
    "monthly": "Monthly",
    "yearly": "Yearly",
}
_PERIOD_NOUNS = {"daily": "days", "weekly": "weeks", "monthly": "months", "yearly": "years"}


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def format_recurrence(rule: RecurrenceRule | None) -> str:
    """Describe a rule for display, e.g. ``"Monthly on the 1st and 15th"``."""

    if rule is None:
        return "One-time"

    if rule.frequency == "biweekly":
        return "Bi-weekly"

    if rule.interval == 1:
        prefix = FREQUENCY_LABELS[rule.frequency]
    else:
        prefix = f"Every {rule.interval} {_PERIOD_NOUNS[rule.frequency]}"

    if rule.mode == "last_day":
        return f"{prefix} on the last day"
    if rule.mode == "days":
        labels = [ordinal(day) for day in rule.days_of_month]
        if len(labels) == 1:
            return f"{prefix} on the {labels[0]}"
        return f"{prefix} on the {', '.join(labels[:-1])} and {labels[-1]}"
    if rule.mode == "weekday":
        week_label = WEEK_OF_MONTH_LABELS[rule.week_of_month]
        return f"{prefix} on the {week_label} {WEEKDAY_LABELS[rule.weekday]}"
    return prefix


def format_recurrence_short(rule: RecurrenceRule | None) -> str:
    if rule is None:
        return "Once"
    label = FREQUENCY_LABELS[rule.frequency]
    if rule.frequency != "biweekly" and rule.interval > 1:
        return f"{rule.interval}x {label}"
    return label
