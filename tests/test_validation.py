from datetime import date
from decimal import Decimal

import pytest

from pharmadist.exceptions import ValidationError
from pharmadist.validation import (
    ensure_valid,
    validate_customer,
    validate_invoice,
    validate_order,
    validate_product,
    validate_supplier,
)


def _customer(**overrides):
    fields = {
        "name": "City General Hospital",
        "type": "hospital",
        "contact_person": "Dr. Sarah Johnson",
        "email": "procurement@citygeneral.com",
        "phone": "+1-555-0123",
        "address": "123 Healthcare Ave",
        "license_number": "HOSP-2024-001",
        "credit_limit": Decimal("100000"),
        "outstanding_balance": Decimal("15750"),
        "status": "active",
    }
    fields.update(overrides)
    return fields


def _supplier(**overrides):
    fields = _customer(name="PharmaCorp Ltd", rating=5, payment_terms="Net 30")
    for key in ("type", "credit_limit", "outstanding_balance"):
        fields.pop(key)
    fields.update(overrides)
    return fields


def _product(**overrides):
    fields = {
        "name": "Amoxicillin 500mg",
        "sku": "AMX-500-100",
        "quantity": 1200,
        "unit_price": Decimal("0.85"),
        "reorder_level": 200,
        "expiry_date": date(2030, 6, 15),
        "status": "active",
    }
    fields.update(overrides)
    return fields


def _order(**overrides):
    fields = {
        "customer_id": 1,
        "order_date": date(2024, 1, 15),
        "required_date": date(2024, 1, 20),
        "status": "pending",
        "payment_status": "pending",
        "priority": "medium",
        "total_amount": Decimal("25"),
    }
    fields.update(overrides)
    return fields


def _item(**overrides):
    item = {"product_id": 1, "quantity": 10, "unit_price": Decimal("2.50"), "total_price": Decimal("25")}
    item.update(overrides)
    return item


def _invoice(**overrides):
    fields = {
        "order_id": 1,
        "invoice_date": date(2024, 1, 1),
        "due_date": date(2024, 1, 31),
        "subtotal": Decimal("25"),
        "total_amount": Decimal("27.5"),
        "paid_amount": Decimal("0"),
        "status": "draft",
    }
    fields.update(overrides)
    return fields


# ---------------------------------------------------------------------
# Customers / suppliers
# ---------------------------------------------------------------------
def test_valid_customer():
    assert validate_customer(_customer()) is None


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"name": "  "}, "Customer name is required"),
        ({"contact_person": ""}, "Contact person is required"),
        ({"email": "not-an-email"}, "Valid email is required"),
        ({"email": "a@b"}, "Valid email is required"),
        ({"phone": ""}, "Phone number is required"),
        ({"address": ""}, "Address is required"),
        ({"license_number": ""}, "License number is required"),
        ({"credit_limit": Decimal("-1")}, "Credit limit must be non-negative"),
        ({"outstanding_balance": Decimal("-0.01")}, "Outstanding balance must be non-negative"),
        ({"type": "spaceship"}, "Invalid customer type"),
    ],
)
def test_customer_rules(overrides, message):
    assert validate_customer(_customer(**overrides)) == message


def test_customer_first_failing_rule_wins():
    assert validate_customer(_customer(name="", email="bad")) == "Customer name is required"


def test_valid_supplier():
    assert validate_supplier(_supplier()) is None


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"name": ""}, "Supplier name is required"),
        ({"email": "x"}, "Valid email is required"),
        ({"rating": 6}, "Rating must be between 0 and 5"),
        ({"rating": -1}, "Rating must be between 0 and 5"),
        ({"payment_terms": ""}, "Payment terms are required"),
        ({"status": "suspended"}, "Invalid supplier status"),
    ],
)
def test_supplier_rules(overrides, message):
    assert validate_supplier(_supplier(**overrides)) == message


# ---------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------
def test_valid_product():
    assert validate_product(_product()) is None


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"name": ""}, "Product name is required"),
        ({"sku": ""}, "SKU is required"),
        ({"quantity": -1}, "Quantity must be a non-negative number"),
        ({"unit_price": Decimal("-0.5")}, "Unit price must be a non-negative number"),
        ({"expiry_date": None}, "Valid expiry date is required"),
        ({"expiry_date": "31/12/2030"}, "Valid expiry date is required"),
        ({"reorder_level": -5}, "Reorder level must be a non-negative number"),
        ({"status": "unknown"}, "Invalid product status"),
    ],
)
def test_product_rules(overrides, message):
    assert validate_product(_product(**overrides)) == message


# ---------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------
def test_valid_order():
    assert validate_order(_order(), [_item()]) is None


@pytest.mark.parametrize(
    "overrides, items, message",
    [
        ({"customer_id": None}, [_item()], "Please select a customer."),
        ({"order_date": None}, [_item()], "Please select an order date."),
        ({"required_date": ""}, [_item()], "Please select a required date."),
        ({}, [], "Please add at least one order item."),
        ({}, [_item(product_id=None)], "Please select a product for all items."),
        ({}, [_item(quantity=0)], "Quantity must be greater than 0 for all items."),
        ({}, [_item(unit_price=Decimal("-1"))], "Unit price cannot be negative."),
        ({}, [_item(total_price=Decimal("-1"))], "Total price cannot be negative."),
        ({"status": "lost"}, [_item()], "Invalid order status."),
        ({"payment_status": "partial"}, [_item()], "Invalid payment status."),
        ({"priority": "asap"}, [_item()], "Invalid priority."),
    ],
)
def test_order_rules(overrides, items, message):
    assert validate_order(_order(**overrides), items) == message


def test_order_item_rules_checked_across_all_items():
    items = [_item(), _item(product_id=2, quantity=-3)]
    assert validate_order(_order(), items) == "Quantity must be greater than 0 for all items."


# ---------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------
def test_valid_invoice():
    assert validate_invoice(_invoice()) is None


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"order_id": None}, "Please select an order."),
        ({"invoice_date": None}, "Please select an invoice date."),
        ({"due_date": None}, "Please select a due date."),
        ({"subtotal": Decimal("0")}, "Subtotal must be greater than 0."),
        ({"total_amount": Decimal("0")}, "Total amount must be greater than 0."),
        ({"paid_amount": Decimal("-1")}, "Paid amount cannot be negative."),
        ({"paid_amount": Decimal("27.51")}, "Paid amount cannot exceed the total amount."),
        ({"status": "lost"}, "Invalid invoice status."),
    ],
)
def test_invoice_rules(overrides, message):
    assert validate_invoice(_invoice(**overrides)) == message


def test_invoice_fully_paid_is_valid():
    assert validate_invoice(_invoice(paid_amount=Decimal("27.5"), status="paid")) is None


def test_ensure_valid_raises_with_message():
    ensure_valid(None)
    with pytest.raises(ValidationError) as excinfo:
        ensure_valid("SKU is required")
    assert excinfo.value.message == "SKU is required"
