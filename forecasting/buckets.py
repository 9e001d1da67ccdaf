"""Time bucketing for balance aggregation."""

from __future__ import annotations

from datetime import date
from typing import Final, Mapping

from core.dates import days_since_epoch, from_epoch_days, month_start
from core.models import BUCKET_WIDTHS, BucketWidth

__all__ = ["FIXED_WIDTH_DAYS", "bucket_start"]

FIXED_WIDTH_DAYS: Final[Mapping[str, int]] = {"3d": 3, "1w": 7, "2w": 14}


def bucket_start(day: date, width: BucketWidth) -> date:
    """Return the first date of the bucket that contains ``day``.

    Fixed-width buckets are aligned to 1970-01-01 so that a given date always
    lands in the same bucket whatever the query window.
    """

    if width == "1d":
        return day
    if width == "1m":
        return month_start(day)
    if width not in FIXED_WIDTH_DAYS:
        raise ValueError(f"Unknown bucket width: {width!r}; expected one of {BUCKET_WIDTHS}")

    step = FIXED_WIDTH_DAYS[width]
    return from_epoch_days(days_since_epoch(day) // step * step)
