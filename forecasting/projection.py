"""Running-balance projection over bucketed transactions."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Mapping

import pandas as pd

from core.frames import transactions_to_frame
from core.models import (
    AccountsProjection,
    BalanceCheckpoint,
    CashPoint,
    ProjectionParams,
    ProjectionResult,
    ProjectionWarning,
    Transaction,
)
from core.money import round_money, sum_money
from forecasting.buckets import bucket_start

__all__ = [
    "latest_checkpoint",
    "aggregate_buckets",
    "project",
    "project_accounts",
]

logger = logging.getLogger(__name__)


def latest_checkpoint(
    checkpoints: Iterable[BalanceCheckpoint],
    as_of: date,
    account_id: str | None = None,
) -> BalanceCheckpoint | None:
    """Return the most recent checkpoint dated on or before ``as_of``.

    When ``account_id`` is given only that account's checkpoints are
    considered. Ties on the same date keep the last one supplied.
    """

    found: BalanceCheckpoint | None = None
    for checkpoint in checkpoints:
        if account_id is not None and checkpoint.account_id != account_id:
            continue
        if checkpoint.date > as_of:
            continue
        if found is None or checkpoint.date >= found.date:
            found = checkpoint
    return found


def _window_frame(transactions: Iterable[Transaction], params: ProjectionParams) -> pd.DataFrame:
    frame = transactions_to_frame(transactions)
    start = pd.Timestamp(params.start_date)
    end = pd.Timestamp(params.end_date)
    frame = frame[(frame["date"] >= start) & (frame["date"] <= end)]
    return frame.sort_values(["date", "id"], kind="stable")


def aggregate_buckets(frame: pd.DataFrame, width: str) -> pd.DataFrame:
    """Sum inflows and outflows per bucket start.

    Returns a frame indexed by bucket start date (ascending) with ``inflow``,
    ``outflow`` and ``any_projected`` columns.
    """

    if frame.empty:
        return pd.DataFrame(columns=["inflow", "outflow", "any_projected"])

    frame = frame.copy()
    frame["bucket"] = [bucket_start(ts.date(), width) for ts in frame["date"]]
    frame["inflow"] = frame["amount"].clip(lower=0.0)
    frame["outflow"] = frame["amount"].clip(upper=0.0)
    return frame.groupby("bucket", sort=True).agg(
        inflow=("inflow", "sum"),
        outflow=("outflow", "sum"),
        any_projected=("is_projected", "any"),
    )


def _walk_buckets(
    buckets: pd.DataFrame,
    opening_balance: float,
    threshold: float,
    account_id: str | None,
    resets: Mapping[date, float] | None = None,
) -> ProjectionResult:
    resets = resets or {}
    flows = {
        row.Index: (float(row.inflow) + float(row.outflow), bool(row.any_projected))
        for row in buckets.itertuples()
    }

    points: list[CashPoint] = []
    warnings: list[ProjectionWarning] = []

    # the running total stays unrounded; only emitted balances are rounded
    balance = opening_balance
    for bucket in sorted(set(flows) | set(resets)):
        net, any_projected = flows.get(bucket, (0.0, False))
        if bucket in resets:
            balance = resets[bucket]
        balance += net
        shown = round_money(balance)
        points.append(CashPoint(bucket_date=bucket, balance=shown, is_projected=any_projected))
        if shown < threshold:
            warnings.append(
                ProjectionWarning(date=bucket, account_id=account_id, balance=shown, threshold=threshold)
            )

    return ProjectionResult(data_points=points, warnings=warnings)


def _shared_account(frame: pd.DataFrame) -> str | None:
    accounts = frame["account_id"]
    if accounts.empty or accounts.isna().any():
        return None
    unique = accounts.unique()
    return str(unique[0]) if len(unique) == 1 else None


def _opening_balance(
    checkpoint: BalanceCheckpoint,
    transactions: Iterable[Transaction],
    start_date: date,
    account_id: str | None = None,
) -> float:
    """Roll ``checkpoint`` forward to the start of ``start_date``.

    A checkpoint is the balance at the start of its day, so flows dated on the
    checkpoint day up to the day before ``start_date`` are replayed on top.
    """

    balance = checkpoint.amount
    for tx in transactions:
        if account_id is not None and tx.account_id != account_id:
            continue
        if checkpoint.date <= tx.date < start_date:
            balance += tx.amount
    return balance


def _window_resets(
    checkpoints: Iterable[BalanceCheckpoint],
    params: ProjectionParams,
    account_id: str,
) -> dict[date, BalanceCheckpoint]:
    # latest checkpoint per bucket wins; ties keep the last one supplied
    resets: dict[date, BalanceCheckpoint] = {}
    for checkpoint in checkpoints:
        if checkpoint.account_id != account_id:
            continue
        if not params.start_date < checkpoint.date <= params.end_date:
            continue
        bucket = bucket_start(checkpoint.date, params.bucket_width)
        current = resets.get(bucket)
        if current is None or checkpoint.date >= current.date:
            resets[bucket] = checkpoint
    return resets


def _drop_superseded(frame: pd.DataFrame, resets: Mapping[date, BalanceCheckpoint], width: str) -> pd.DataFrame:
    """Remove flows that a later checkpoint in the same bucket already accounts for."""

    if frame.empty or not resets:
        return frame
    buckets = [bucket_start(ts.date(), width) for ts in frame["date"]]
    keep = [
        bucket not in resets or ts.date() >= resets[bucket].date
        for bucket, ts in zip(buckets, frame["date"])
    ]
    return frame[keep]


def project(
    transactions: Iterable[Transaction],
    params: ProjectionParams,
    checkpoint: BalanceCheckpoint | None = None,
) -> ProjectionResult:
    """Project a single running balance across ``params``' date window.

    Parameters
    ----------
    transactions:
        Actual and projected transactions; only those inside
        ``[start_date, end_date]`` become buckets.
    params:
        Window, bucket width, starting balance and warning threshold.
    checkpoint:
        Known balance at the start of its day. When dated on or before
        ``start_date`` it replaces ``starting_balance``, and the flows between
        the checkpoint and ``start_date`` are replayed onto it. Later
        checkpoints are ignored.

    Returns
    -------
    ProjectionResult
        One :class:`CashPoint` per non-empty bucket in ascending order, plus a
        warning for every bucket whose balance falls below the threshold.
    """

    transactions = list(transactions)
    frame = _window_frame(transactions, params)
    if frame.empty:
        return ProjectionResult(data_points=[], warnings=[])

    opening_balance = params.starting_balance
    account_id = _shared_account(frame)
    if checkpoint is not None and checkpoint.date <= params.start_date:
        opening_balance = _opening_balance(checkpoint, transactions, params.start_date)
        account_id = checkpoint.account_id

    buckets = aggregate_buckets(frame, params.bucket_width)
    logger.debug("Projecting %d transactions over %d buckets", len(frame), len(buckets))
    return _walk_buckets(buckets, opening_balance, params.warning_threshold, account_id)


def project_accounts(
    transactions: Iterable[Transaction],
    params: ProjectionParams,
    checkpoints: Iterable[BalanceCheckpoint] = (),
    *,
    starting_balances: Mapping[str, float] | None = None,
    thresholds: Mapping[str, float] | None = None,
) -> AccountsProjection:
    """Project each account independently and sum them into a total series.

    Each account opens at its latest checkpoint on or before ``start_date``,
    rolled forward over the flows dated before ``start_date``, falling back to
    ``starting_balances`` and then to zero. A checkpoint dated inside the
    window resets its account in the bucket that contains it, before that
    bucket's later flows. ``thresholds`` overrides ``params.warning_threshold``
    per account.
    """

    starting_balances = dict(starting_balances or {})
    thresholds = dict(thresholds or {})
    transactions = list(transactions)
    checkpoints = list(checkpoints)

    if any(tx.account_id is None for tx in transactions):
        raise ValueError("Multi-account projection requires an account_id on every transaction")

    account_ids = sorted(
        {tx.account_id for tx in transactions}
        | {cp.account_id for cp in checkpoints if cp.account_id is not None}
        | set(starting_balances)
    )

    frame = _window_frame(transactions, params)
    results: dict[str, ProjectionResult] = {}
    openings: dict[str, float] = {}
    for account_id in account_ids:
        checkpoint = latest_checkpoint(checkpoints, params.start_date, account_id)
        if checkpoint is not None:
            openings[account_id] = _opening_balance(checkpoint, transactions, params.start_date, account_id)
        else:
            openings[account_id] = starting_balances.get(account_id, 0.0)

        resets = _window_resets(checkpoints, params, account_id)
        account_frame = _drop_superseded(frame[frame["account_id"] == account_id], resets, params.bucket_width)
        buckets = aggregate_buckets(account_frame, params.bucket_width)
        results[account_id] = _walk_buckets(
            buckets,
            openings[account_id],
            thresholds.get(account_id, params.warning_threshold),
            account_id,
            {bucket: cp.amount for bucket, cp in resets.items()},
        )

    total = _total_series(results, openings)
    warnings = sorted(
        (warning for result in results.values() for warning in result.warnings),
        key=lambda warning: (warning.date, warning.account_id or ""),
    )
    return AccountsProjection(accounts=results, total=total, warnings=warnings)


def _total_series(results: Mapping[str, ProjectionResult], openings: Mapping[str, float]) -> list[CashPoint]:
    by_account = {
        account_id: {point.bucket_date: point for point in result.data_points}
        for account_id, result in results.items()
    }
    bucket_dates = sorted({day for points in by_account.values() for day in points})

    carried = dict(openings)
    total: list[CashPoint] = []
    for day in bucket_dates:
        any_projected = False
        for account_id, points in by_account.items():
            point = points.get(day)
            if point is None:
                continue
            carried[account_id] = point.balance
            any_projected = any_projected or point.is_projected
        total.append(CashPoint(bucket_date=day, balance=sum_money(carried.values()), is_projected=any_projected))
    return total
