from datetime import date
from decimal import Decimal

import pytest

from pharmadist.derivation import (
    compute_due_date,
    compute_invoice_financials,
    compute_item_total,
    compute_order_total,
    parse_payment_terms_days,
)


def test_item_total_is_quantity_times_price():
    assert compute_item_total(10, Decimal("2.50")) == Decimal("25.00")
    assert compute_item_total("3", "0.85") == Decimal("2.55")


def test_item_total_treats_missing_input_as_zero():
    assert compute_item_total(None, "2.50") == Decimal("0")
    assert compute_item_total(4, "") == Decimal("0")


def test_item_total_is_not_rounded():
    assert compute_item_total(3, Decimal("0.3333")) == Decimal("0.9999")


def test_order_total_sums_item_totals():
    items = [{"total_price": Decimal("25.00")}, {"total_price": Decimal("0.12")}, {"total_price": "10"}]
    assert compute_order_total(items) == Decimal("35.12")


def test_order_total_of_no_items_is_zero():
    assert compute_order_total([]) == Decimal("0")


def test_invoice_financials_default_rate():
    result = compute_invoice_financials(Decimal("25.00"))
    assert result == {
        "subtotal": Decimal("25.00"),
        "tax_amount": Decimal("2.5000"),
        "total_amount": Decimal("27.5000"),
    }


def test_invoice_financials_custom_rate():
    result = compute_invoice_financials(Decimal("200"), Decimal("0.05"))
    assert result["tax_amount"] == Decimal("10")
    assert result["total_amount"] == result["subtotal"] + result["tax_amount"]


@pytest.mark.parametrize(
    "terms, expected",
    [
        ("Net 15", 15),
        ("Net 45", 45),
        ("net60", 60),
        ("NET 30 EOM", 30),
        ("45", 45),
        ("COD", 30),
        ("", 30),
        (None, 30),
        ("garbage", 30),
        ("Net 0", 30),
    ],
)
def test_payment_terms_days(terms, expected):
    assert parse_payment_terms_days(terms) == expected


def test_payment_terms_fallback_is_configurable():
    assert parse_payment_terms_days("COD", default_days=7) == 7


def test_due_date_adds_calendar_days():
    assert compute_due_date("2024-01-01", "Net 30") == date(2024, 1, 31)
    # 2024 is a leap year
    assert compute_due_date("2024-01-15", "Net 45") == date(2024, 2, 29)
    assert compute_due_date(date(2023, 1, 15), "Net 45") == date(2023, 3, 1)


def test_due_date_garbage_terms_fall_back_to_30_days():
    assert compute_due_date("2024-01-15", "garbage") == date(2024, 2, 14)


def test_due_date_without_invoice_date():
    assert compute_due_date("", "Net 30") is None
    assert compute_due_date("not-a-date", "Net 30") is None
