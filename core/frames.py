"""Conversions between engine value types and pandas DataFrames."""

from __future__ import annotations

from dataclasses import asdict
from typing import Final, Iterable

import pandas as pd

from core.models import CashPoint, RecurringSeries, Transaction

__all__ = [
    "TRANSACTION_COLUMNS",
    "transactions_to_frame",
    "series_to_frame",
    "cash_points_to_frame",
]

TRANSACTION_COLUMNS: Final[list[str]] = [
    "id",
    "date",
    "description",
    "amount",
    "account_id",
    "is_projected",
    "source_id",
]


def transactions_to_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Return transactions as a DataFrame with ``date`` as a datetime column.

    Input order is preserved so that stable sorts downstream keep ties in the
    order the caller supplied them.
    """

    records = [asdict(tx) for tx in transactions]
    frame = pd.DataFrame.from_records(records, columns=TRANSACTION_COLUMNS)
    frame["date"] = pd.to_datetime(frame["date"])
    frame["amount"] = frame["amount"].astype(float)
    frame["is_projected"] = frame["is_projected"].astype(bool)
    return frame


def series_to_frame(series: Iterable[RecurringSeries]) -> pd.DataFrame:
    """Return detected series as rows suitable for a review table."""

    rows = [
        {
            "key": item.key,
            "description": item.normalized_description,
            "sign": item.sign,
            "amount": item.amount,
            "occurrences": item.occurrences,
            "last_date": pd.Timestamp(item.last_date),
            "interval_days": item.average_interval_days,
            "enabled": item.enabled,
            "account_id": item.account_id,
        }
        for item in series
    ]
    return pd.DataFrame(
        rows,
        columns=["key", "description", "sign", "amount", "occurrences", "last_date", "interval_days", "enabled", "account_id"],
    )


def cash_points_to_frame(points: Iterable[CashPoint]) -> pd.DataFrame:
    rows = [
        {"Day": pd.Timestamp(p.bucket_date), "Balance": p.balance, "Series": "Projected" if p.is_projected else "Actual"}
        for p in points
    ]
    return pd.DataFrame(rows, columns=["Day", "Balance", "Series"])
