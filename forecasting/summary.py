"""Projection summaries and point-in-time balances."""

from __future__ import annotations

from datetime import date
from typing import Iterable

from core.models import BalanceCheckpoint, ProjectionResult, ProjectionSummary, RecurringTemplate, Transaction
from core.money import round_money
from forecasting.expansion import expand_template
from forecasting.projection import latest_checkpoint

__all__ = ["balance_as_of", "summarize_projection"]


def balance_as_of(
    account_id: str,
    checkpoints: Iterable[BalanceCheckpoint],
    transactions: Iterable[Transaction],
    as_of: date,
    templates: Iterable[RecurringTemplate] = (),
) -> float:
    """Return an account's balance at the end of ``as_of``.

    Starts from the latest checkpoint on or before ``as_of`` (or zero) and
    replays the account's transactions from the checkpoint day onward, including
    occurrences expanded from recurring templates. A checkpoint is the balance
    at the start of its day.
    """

    checkpoint = latest_checkpoint(checkpoints, as_of, account_id)
    balance = checkpoint.amount if checkpoint is not None else 0.0
    since = checkpoint.date if checkpoint is not None else date.min

    for tx in transactions:
        if tx.account_id == account_id and since <= tx.date <= as_of:
            balance += tx.amount

    for template in templates:
        if template.account_id != account_id:
            continue
        occurrences = [template.date, *(tx.date for tx in expand_template(template, as_of))]
        for day in occurrences:
            if since <= day <= as_of and (template.end_date is None or day <= template.end_date):
                balance += template.amount

    return round_money(balance)


def summarize_projection(result: ProjectionResult) -> ProjectionSummary:
    """Condense a projection curve into headline figures for display."""

    accounts_with_warnings = sorted({w.account_id for w in result.warnings if w.account_id is not None})
    points = result.data_points
    if not points:
        return ProjectionSummary(
            starting_balance=0.0,
            ending_balance=0.0,
            lowest_balance=0.0,
            lowest_date=None,
            highest_balance=0.0,
            highest_date=None,
            warning_count=len(result.warnings),
            accounts_with_warnings=accounts_with_warnings,
        )

    lowest = min(points, key=lambda point: point.balance)
    highest = max(points, key=lambda point: point.balance)
    return ProjectionSummary(
        starting_balance=points[0].balance,
        ending_balance=points[-1].balance,
        lowest_balance=lowest.balance,
        lowest_date=lowest.bucket_date,
        highest_balance=highest.balance,
        highest_date=highest.bucket_date,
        warning_count=len(result.warnings),
        accounts_with_warnings=accounts_with_warnings,
    )
