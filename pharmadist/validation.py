"""
Validation rules for every record type.

Each validator takes a plain field dict (already coerced by parsing.py) and returns the message of the FIRST rule
that fails, or None when the record is valid. Order matters: the first failing rule is what the user sees.

The message texts are user-facing; the forms flash them as-is.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from .exceptions import ValidationError
from .models import (
    CUSTOMER_STATUSES,
    CUSTOMER_TYPES,
    INVOICE_STATUSES,
    ORDER_PRIORITIES,
    ORDER_STATUSES,
    PAYMENT_STATUSES,
    PRODUCT_STATUSES,
    SUPPLIER_STATUSES,
)
from .parsing import parse_date, parse_decimal, parse_int

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ZERO = Decimal("0")


def _text(fields: Mapping[str, Any], key: str) -> str:
    value = fields.get(key)
    return str(value).strip() if value is not None else ""


def _get(obj: Any, key: str):
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def is_valid_email(value: str | None) -> bool:
    return bool(value) and EMAIL_RE.match(value.strip()) is not None


def ensure_valid(message: Optional[str]) -> None:
    """Raise ValidationError when a validator returned a message."""
    if message:
        raise ValidationError(message)


# ---------------------------------------------------------------------
# Master data
# ---------------------------------------------------------------------
def _validate_party(fields: Mapping[str, Any], label: str) -> Optional[str]:
    """Rules shared by customers and suppliers."""
    if not _text(fields, "name"):
        return f"{label} name is required"
    if not _text(fields, "contact_person"):
        return "Contact person is required"
    if not is_valid_email(_text(fields, "email")):
        return "Valid email is required"
    if not _text(fields, "phone"):
        return "Phone number is required"
    if not _text(fields, "address"):
        return "Address is required"
    if not _text(fields, "license_number"):
        return "License number is required"
    return None


def validate_customer(fields: Mapping[str, Any]) -> Optional[str]:
    error = _validate_party(fields, "Customer")
    if error:
        return error

    if parse_decimal(fields.get("credit_limit")) < ZERO:
        return "Credit limit must be non-negative"
    if parse_decimal(fields.get("outstanding_balance")) < ZERO:
        return "Outstanding balance must be non-negative"

    if fields.get("type", "hospital") not in CUSTOMER_TYPES:
        return "Invalid customer type"
    if fields.get("status", "active") not in CUSTOMER_STATUSES:
        return "Invalid customer status"
    return None


def validate_supplier(fields: Mapping[str, Any]) -> Optional[str]:
    error = _validate_party(fields, "Supplier")
    if error:
        return error

    rating = parse_int(fields.get("rating"), default=None)
    if rating is None or rating < 0 or rating > 5:
        return "Rating must be between 0 and 5"
    if not _text(fields, "payment_terms"):
        return "Payment terms are required"

    if fields.get("status", "active") not in SUPPLIER_STATUSES:
        return "Invalid supplier status"
    return None


def validate_product(fields: Mapping[str, Any]) -> Optional[str]:
    if not _text(fields, "name"):
        return "Product name is required"
    if not _text(fields, "sku"):
        return "SKU is required"

    quantity = parse_int(fields.get("quantity"), default=None)
    if quantity is None or quantity < 0:
        return "Quantity must be a non-negative number"

    unit_price = parse_decimal(fields.get("unit_price"), default=None)
    if unit_price is None or unit_price < ZERO:
        return "Unit price must be a non-negative number"

    if parse_date(fields.get("expiry_date")) is None:
        return "Valid expiry date is required"

    reorder_level = parse_int(fields.get("reorder_level"), default=0)
    if reorder_level is None or reorder_level < 0:
        return "Reorder level must be a non-negative number"

    if fields.get("status", "active") not in PRODUCT_STATUSES:
        return "Invalid product status"
    return None


# ---------------------------------------------------------------------
# Orders / invoices
# ---------------------------------------------------------------------
def validate_order(fields: Mapping[str, Any], items: Iterable[Any]) -> Optional[str]:
    if not fields.get("customer_id"):
        return "Please select a customer."
    if parse_date(fields.get("order_date")) is None:
        return "Please select an order date."
    if parse_date(fields.get("required_date")) is None:
        return "Please select a required date."

    items = list(items)
    if not items:
        return "Please add at least one order item."

    if any(not _get(item, "product_id") for item in items):
        return "Please select a product for all items."
    if any((parse_int(_get(item, "quantity")) or 0) <= 0 for item in items):
        return "Quantity must be greater than 0 for all items."
    if any(parse_decimal(_get(item, "unit_price")) < ZERO for item in items):
        return "Unit price cannot be negative."
    if any(parse_decimal(_get(item, "total_price")) < ZERO for item in items):
        return "Total price cannot be negative."

    if parse_decimal(fields.get("total_amount")) < ZERO:
        return "Order total cannot be negative."

    if fields.get("status", "pending") not in ORDER_STATUSES:
        return "Invalid order status."
    if fields.get("payment_status", "pending") not in PAYMENT_STATUSES:
        return "Invalid payment status."
    if fields.get("priority", "medium") not in ORDER_PRIORITIES:
        return "Invalid priority."
    return None


def validate_invoice(fields: Mapping[str, Any]) -> Optional[str]:
    if not fields.get("order_id"):
        return "Please select an order."
    if parse_date(fields.get("invoice_date")) is None:
        return "Please select an invoice date."
    if parse_date(fields.get("due_date")) is None:
        return "Please select a due date."

    if parse_decimal(fields.get("subtotal")) <= ZERO:
        return "Subtotal must be greater than 0."

    total_amount = parse_decimal(fields.get("total_amount"))
    if total_amount <= ZERO:
        return "Total amount must be greater than 0."

    paid_amount = parse_decimal(fields.get("paid_amount"))
    if paid_amount < ZERO:
        return "Paid amount cannot be negative."
    if paid_amount > total_amount:
        return "Paid amount cannot exceed the total amount."

    if fields.get("status", "draft") not in INVOICE_STATUSES:
        return "Invalid invoice status."
    return None
