"""
Helpers shared by list pages and templates:
- stock_status / expiry_status: status labels for inventory rows
- *_summary: header figures above each list
- filter_*: search + dropdown filters for list pages
- format_money: 2-decimal display of stored money values
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from .models import _to_decimal

EXPIRY_WARNING_DAYS = 90
EXPIRY_CRITICAL_DAYS = 30


def format_money(value) -> str:
    """1234.5 -> '1,234.50'."""
    amount = _to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{amount:,.2f}"


def days_until(target: Optional[date], today: Optional[date] = None) -> Optional[int]:
    if target is None:
        return None
    return (target - (today or date.today())).days


# ---------------------------------------------------------------------
# Row status labels
# ---------------------------------------------------------------------
def stock_status(product) -> dict:
    """Label + CSS class for a product row, by quantity vs reorder level."""
    quantity = product.quantity or 0
    if quantity <= 0:
        return {"label": "Out of Stock", "css": "status-danger"}
    if quantity <= (product.reorder_level or 0):
        return {"label": "Low Stock", "css": "status-warning"}
    return {"label": "In Stock", "css": "status-ok"}


def expiry_status(
    product,
    today: Optional[date] = None,
    warning_days: int = EXPIRY_WARNING_DAYS,
    critical_days: int = EXPIRY_CRITICAL_DAYS,
) -> dict:
    days = days_until(product.expiry_date, today)
    if days is None:
        return {"label": "Unknown", "css": "status-muted", "days": None}
    if days <= 0:
        return {"label": "Expired", "css": "status-danger", "days": days}
    if days <= critical_days:
        return {"label": "Expires Soon", "css": "status-danger", "days": days}
    if days <= warning_days:
        return {"label": "Monitor", "css": "status-warning", "days": days}
    return {"label": "Good", "css": "status-ok", "days": days}


# ---------------------------------------------------------------------
# List summaries
# ---------------------------------------------------------------------
def inventory_summary(products: Iterable) -> dict:
    products = list(products)
    return {
        "total": len(products),
        "low_stock": sum(1 for p in products if 0 < (p.quantity or 0) <= (p.reorder_level or 0)),
        "out_of_stock": sum(1 for p in products if (p.quantity or 0) <= 0),
        "stock_value": sum((_to_decimal(p.unit_price) * (p.quantity or 0) for p in products), Decimal("0")),
    }


def order_summary(orders: Iterable) -> dict:
    orders = list(orders)
    return {
        "total": len(orders),
        "pending": sum(1 for o in orders if o.status == "pending"),
        "processing": sum(1 for o in orders if o.status == "processing"),
        "total_value": sum((_to_decimal(o.total_amount) for o in orders), Decimal("0")),
    }


def invoice_summary(invoices: Iterable) -> dict:
    invoices = list(invoices)
    return {
        "count": len(invoices),
        "total_amount": sum((_to_decimal(i.total_amount) for i in invoices), Decimal("0")),
        "paid_amount": sum((_to_decimal(i.paid_amount) for i in invoices), Decimal("0")),
        "overdue_amount": sum(
            (_to_decimal(i.total_amount) - _to_decimal(i.paid_amount) for i in invoices if i.status == "overdue"),
            Decimal("0"),
        ),
    }


def supplier_summary(suppliers: Iterable) -> dict:
    suppliers = list(suppliers)
    ratings = [s.rating or 0 for s in suppliers]
    return {
        "total": len(suppliers),
        "active": sum(1 for s in suppliers if s.status == "active"),
        "average_rating": round(sum(ratings) / len(ratings), 1) if ratings else 0,
        "five_star": sum(1 for r in ratings if r == 5),
    }


def customer_summary(customers: Iterable) -> dict:
    customers = list(customers)
    return {
        "total": len(customers),
        "active": sum(1 for c in customers if c.status == "active"),
        "credit_limit": sum((_to_decimal(c.credit_limit) for c in customers), Decimal("0")),
        "outstanding_balance": sum((_to_decimal(c.outstanding_balance) for c in customers), Decimal("0")),
    }


# ---------------------------------------------------------------------
# Search / filters
# ---------------------------------------------------------------------
def _matches(term: str, *values) -> bool:
    if not term:
        return True
    term = term.lower()
    return any(term in str(v).lower() for v in values if v)


def filter_products(products: Iterable, search: str = "", status: str = "") -> list:
    return [
        p for p in products
        if _matches(search, p.name, p.sku, p.manufacturer) and (not status or p.status == status)
    ]


def filter_customers(customers: Iterable, search: str = "", customer_type: str = "") -> list:
    return [
        c for c in customers
        if _matches(search, c.name, c.contact_person, c.email) and (not customer_type or c.type == customer_type)
    ]


def filter_suppliers(suppliers: Iterable, search: str = "", status: str = "") -> list:
    return [
        s for s in suppliers
        if _matches(search, s.name, s.contact_person, s.email) and (not status or s.status == status)
    ]


def filter_orders(orders: Iterable, search: str = "", status: str = "") -> list:
    return [
        o for o in orders
        if _matches(search, o.customer_name, o.reference) and (not status or o.status == status)
    ]


def filter_invoices(invoices: Iterable, search: str = "", status: str = "") -> list:
    return [
        i for i in invoices
        if _matches(search, i.reference, i.customer_name) and (not status or i.status == status)
    ]
