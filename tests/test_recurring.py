"""Unit tests for recurring transaction detection."""

from __future__ import annotations

import sys
from datetime import date, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.models import Transaction
from forecasting.recurring import detect_recurring, normalize_description, signature_key


def _tx(txn_id: str, day: str, description: str, amount: float, account: str | None = None) -> Transaction:
    return Transaction(
        id=txn_id,
        date=date.fromisoformat(day),
        description=description,
        amount=amount,
        account_id=account,
    )


@pytest.fixture()
def quarter_of_bills() -> list[Transaction]:
    return [
        _tx("jan-1", "2025-01-01", "Salary", 3000.0),
        _tx("jan-2", "2025-01-02", "Rent", -1500.0),
        _tx("jan-3", "2025-01-15", "Internet", -60.0),
        _tx("feb-1", "2025-02-01", "Salary", 3000.0),
        _tx("feb-2", "2025-02-02", "Rent", -1500.0),
        _tx("feb-3", "2025-02-15", "Internet", -60.0),
        _tx("mar-1", "2025-03-01", "Salary", 3000.0),
        _tx("mar-2", "2025-03-02", "Rent", -1500.0),
        _tx("mar-3", "2025-03-15", "Internet", -60.0),
    ]


def test_normalize_description_collapses_punctuation_and_case():
    assert normalize_description("  NETFLIX.com *Subscription  ") == "netflix com subscription"
    assert normalize_description("Rent -- Flat 2") == "rent flat 2"


def test_signature_key_classifies_zero_as_inflow():
    key = signature_key(_tx("a", "2025-01-01", "Refund", 0.0))
    assert key == ("refund", "inflow", 0.0)


def test_detect_recurring_empty_input():
    assert detect_recurring([], "normal") == []


def test_detect_recurring_finds_monthly_bills(quarter_of_bills):
    series = detect_recurring(quarter_of_bills, "normal")

    assert [s.normalized_description for s in series] == ["salary", "rent", "internet"]
    for item in series:
        assert item.enabled is True
        assert item.occurrences == 3
        assert item.average_interval_days == pytest.approx(30, abs=1)

    salary, rent, internet = series
    assert salary.amount == pytest.approx(3000.0)
    assert salary.sign == "inflow"
    assert rent.amount == pytest.approx(-1500.0)
    assert rent.sign == "outflow"
    assert internet.last_date == date(2025, 3, 15)
    assert internet.signature_key == ("internet", "outflow", 60.0)


def test_detect_recurring_ignores_groups_below_three(quarter_of_bills):
    two_months = [tx for tx in quarter_of_bills if tx.date < date(2025, 3, 1)]
    assert detect_recurring(two_months, "loose") == []


def test_detect_recurring_groups_description_variants():
    transactions = [
        _tx("1", "2025-01-05", "Gym Membership", -25.0),
        _tx("2", "2025-02-05", "GYM  membership", -25.0),
        _tx("3", "2025-03-05", "gym-membership!", -25.0),
    ]
    series = detect_recurring(transactions)
    assert len(series) == 1
    assert series[0].observed_dates == (date(2025, 1, 5), date(2025, 2, 5), date(2025, 3, 5))


def test_detect_recurring_splits_on_sign_and_amount():
    transactions = [
        _tx("1", "2025-01-05", "Transfer", -25.0),
        _tx("2", "2025-02-05", "Transfer", 25.0),
        _tx("3", "2025-03-05", "Transfer", -25.5),
    ]
    assert detect_recurring(transactions, "loose") == []


def test_detect_recurring_respects_sensitivity():
    start = date(2025, 1, 1)
    # gaps of 20 and 30 days: population std of 5
    offsets = [0, 20, 50]
    transactions = [
        Transaction(id=str(i), date=start + timedelta(days=offset), description="Coffee club", amount=-9.99)
        for i, offset in enumerate(offsets)
    ]

    assert detect_recurring(transactions, "strict") == []
    normal = detect_recurring(transactions, "normal")
    assert len(normal) == 1
    assert normal[0].average_interval_days == 25


def test_detect_recurring_same_day_repeats_pull_interval_down():
    transactions = [
        _tx("1", "2025-01-01", "Parking", -2.0),
        _tx("2", "2025-01-01", "Parking", -2.0),
        _tx("3", "2025-01-01", "Parking", -2.0),
    ]
    series = detect_recurring(transactions, "strict")
    assert len(series) == 1
    assert series[0].average_interval_days == 0


def test_detect_recurring_rejects_unknown_sensitivity(quarter_of_bills):
    with pytest.raises(ValueError):
        detect_recurring(quarter_of_bills, "paranoid")  # type: ignore[arg-type]


def test_toggled_returns_disabled_copy(quarter_of_bills):
    series = detect_recurring(quarter_of_bills)[0]
    disabled = series.toggled(False)
    assert disabled.enabled is False
    assert series.enabled is True
    assert disabled.signature_key == series.signature_key


def test_detected_series_use_signature_key(quarter_of_bills):
    series = detect_recurring(quarter_of_bills)
    assert {item.signature_key for item in series} == {signature_key(tx) for tx in quarter_of_bills}


def test_detect_recurring_groups_on_rounded_magnitude():
    transactions = [
        _tx("1", "2025-01-07", "Phone", -19.999),
        _tx("2", "2025-02-07", "Phone", -20.0),
        _tx("3", "2025-03-07", "Phone", -20.001),
    ]
    series = detect_recurring(transactions)

    assert len(series) == 1
    assert series[0].signature_key == signature_key(transactions[0]) == ("phone", "outflow", 20.0)
    assert series[0].amount == pytest.approx(-19.999)


def test_detect_recurring_carries_shared_account():
    gym = [_tx(f"g{m}", f"2025-0{m}-05", "Gym", -25.0, account="checking") for m in (1, 2, 3)]
    fees = [
        _tx(f"f{m}", f"2025-0{m}-10", "Fee", -3.0, account=account)
        for m, account in ((1, "checking"), (2, "savings"), (3, "checking"))
    ]
    gym_series, fee_series = detect_recurring(gym + fees)

    assert gym_series.account_id == "checking"
    assert fee_series.account_id is None
