"""Money rounding helpers."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

__all__ = ["round_money", "sum_money"]

_CENT = Decimal("0.01")


def round_money(value: float) -> float:
    """Round ``value`` to cents using half-up rounding.

    The float is routed through its shortest ``repr`` so that values such as
    ``2.675`` round to ``2.68`` instead of inheriting binary noise.
    """

    return float(Decimal(repr(float(value))).quantize(_CENT, rounding=ROUND_HALF_UP))


def sum_money(values: Iterable[float]) -> float:
    total = sum((Decimal(repr(float(v))) for v in values), Decimal("0"))
    return float(total.quantize(_CENT, rounding=ROUND_HALF_UP))
