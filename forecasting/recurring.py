"""Recurring payment and income detection."""

from __future__ import annotations

import logging
import re
from datetime import date
from functools import lru_cache
from typing import Final, Iterable, Mapping

import numpy as np
import pandas as pd

from core.frames import transactions_to_frame
from core.models import SENSITIVITIES, RecurringSeries, Sensitivity, SignatureKey, Transaction, flow_sign

__all__ = [
    "MIN_OCCURRENCES",
    "SENSITIVITY_THRESHOLDS",
    "normalize_description",
    "signature_key",
    "detect_recurring",
]

logger = logging.getLogger(__name__)

MIN_OCCURRENCES: Final[int] = 3

SENSITIVITY_THRESHOLDS: Final[Mapping[str, float]] = {
    "strict": 4.0,
    "normal": 8.0,
    "loose": 12.0,
}

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")


@lru_cache(maxsize=512)
def normalize_description(raw: str) -> str:
    """Lowercase ``raw`` and collapse every non-alphanumeric run to one space."""

    return _NON_ALPHANUMERIC.sub(" ", raw.lower()).strip()


def signature_key(tx: Transaction) -> SignatureKey:
    """Return the ``(description, sign, magnitude)`` tuple used for grouping."""

    return (normalize_description(tx.description), flow_sign(tx.amount), round(abs(tx.amount), 2))


def detect_recurring(
    transactions: Iterable[Transaction],
    sensitivity: Sensitivity = "normal",
) -> list[RecurringSeries]:
    """Identify transaction groups that repeat at a regular cadence.

    Parameters
    ----------
    transactions:
        Historical transactions, in any order.
    sensitivity:
        ``strict``, ``normal`` or ``loose``. Selects the maximum population
        standard deviation, in days, allowed between consecutive occurrences.

    Returns
    -------
    list[RecurringSeries]
        One enabled series per accepted group, in order of the group's first
        appearance in ``transactions``.
    """

    if sensitivity not in SENSITIVITIES:
        raise ValueError(f"Unknown sensitivity: {sensitivity!r}")
    threshold = SENSITIVITY_THRESHOLDS[sensitivity]

    transactions = list(transactions)
    frame = transactions_to_frame(transactions)
    if frame.empty:
        return []

    frame["signature"] = [signature_key(tx) for tx in transactions]

    detected: list[RecurringSeries] = []
    grouped = frame.groupby("signature", sort=False)
    logger.debug("Scanning %d transaction groups for recurrence", grouped.ngroups)

    for key, group_df in grouped:
        if len(group_df) < MIN_OCCURRENCES:
            continue

        dates = group_df["date"].sort_values(kind="stable")
        gaps = dates.diff().dt.days.dropna().to_numpy(dtype=float)
        mean_gap = float(np.mean(gaps))
        std_gap = float(np.std(gaps, ddof=0))
        if std_gap > threshold:
            continue

        description, sign, _ = key
        first_amount = float(group_df["amount"].iat[0])
        amount = abs(first_amount) if sign == "inflow" else -abs(first_amount)
        detected.append(
            RecurringSeries(
                signature_key=key,
                normalized_description=description,
                amount=amount,
                observed_dates=tuple(_as_dates(dates)),
                average_interval_days=int(np.floor(mean_gap + 0.5)),
                account_id=_group_account(group_df),
            )
        )

    logger.debug("Detected %d recurring series (sensitivity=%s)", len(detected), sensitivity)
    return detected


def _group_account(group_df: pd.DataFrame) -> str | None:
    # only attributed when every member was booked to the same account
    accounts = group_df["account_id"]
    if accounts.isna().any():
        return None
    unique = accounts.unique()
    return str(unique[0]) if len(unique) == 1 else None


def _as_dates(values: pd.Series) -> list[date]:
    return [pd.Timestamp(value).date() for value in values]
