"""
Derived financial and date fields for orders and invoices.

Pure functions, no I/O. The workflows call them on every mutation so that derived fields are always consistent
with their inputs:

- OrderItem.total_price = quantity * unit_price
- Order.total_amount    = sum(item.total_price)
- Invoice.subtotal      = order total, tax_amount = subtotal * rate, total_amount = subtotal + tax_amount
- Invoice.due_date      = invoice_date + days(payment_terms)

IMPORTANT:
- Nothing is rounded here. Values are kept exact and only formatted with 2 decimals for display.
"""

from __future__ import annotations

import re
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping

from .parsing import parse_date, parse_decimal, parse_int

DEFAULT_TAX_RATE = Decimal("0.10")
DEFAULT_PAYMENT_TERMS_DAYS = 30

# "Net 30", "net30", "30 days", "NET 45 EOM" -> leading digits after an optional "Net"
_TERMS_RE = re.compile(r"^\s*(?:net\s*)?(\d+)", re.IGNORECASE)


def compute_item_total(quantity, unit_price) -> Decimal:
    """Line total for one order item."""
    return Decimal(parse_int(quantity) or 0) * parse_decimal(unit_price)


def _item_total(item: Any) -> Decimal:
    if isinstance(item, Mapping):
        return parse_decimal(item.get("total_price"))
    return parse_decimal(getattr(item, "total_price", None))


def compute_order_total(items: Iterable[Any]) -> Decimal:
    """Sum of item.total_price. Accepts ORM items, workflow items or plain dicts."""
    total = Decimal("0")
    for item in items:
        total += _item_total(item)
    return total


def compute_invoice_financials(order_total, tax_rate=DEFAULT_TAX_RATE) -> Dict[str, Decimal]:
    """Subtotal/tax/total for an invoice raised from an order of the given total."""
    subtotal = parse_decimal(order_total)
    tax_amount = subtotal * parse_decimal(tax_rate, default=DEFAULT_TAX_RATE)
    return {
        "subtotal": subtotal,
        "tax_amount": tax_amount,
        "total_amount": subtotal + tax_amount,
    }


def parse_payment_terms_days(payment_terms: str | None, default_days: int = DEFAULT_PAYMENT_TERMS_DAYS) -> int:
    """
    Number of days granted by a payment terms string.

    "COD", blank, unparseable and zero-day terms all fall back to default_days.
    """
    match = _TERMS_RE.match(payment_terms or "")
    if not match:
        return default_days
    days = int(match.group(1))
    return days or default_days


def compute_due_date(
    invoice_date,
    payment_terms: str | None,
    default_days: int = DEFAULT_PAYMENT_TERMS_DAYS,
) -> date | None:
    """invoice_date + terms days. Returns None when invoice_date is missing/invalid."""
    parsed = parse_date(invoice_date)
    if parsed is None:
        return None
    return parsed + timedelta(days=parse_payment_terms_days(payment_terms, default_days))
