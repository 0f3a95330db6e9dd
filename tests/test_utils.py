from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from pharmadist.models import Order, Product, normalize_payment_status
from pharmadist.seed import seed_demo_data
from pharmadist.utils import (
    expiry_status,
    filter_customers,
    filter_invoices,
    filter_orders,
    filter_products,
    format_money,
    invoice_summary,
    inventory_summary,
    order_summary,
    stock_status,
    supplier_summary,
)

TODAY = date(2026, 1, 1)


def _product(**kwargs):
    defaults = {"name": "Amoxicillin 500mg", "sku": "AMX-500-100", "manufacturer": "PharmaCorp Ltd",
                "quantity": 100, "reorder_level": 50, "unit_price": Decimal("0.85"),
                "expiry_date": TODAY + timedelta(days=365), "status": "active"}
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


@pytest.mark.parametrize(
    "value, expected",
    [(Decimal("1234.5"), "1,234.50"), (Decimal("27.5000"), "27.50"), (None, "0.00"), ("0.125", "0.13")],
)
def test_format_money(value, expected):
    assert format_money(value) == expected


@pytest.mark.parametrize(
    "quantity, label",
    [(0, "Out of Stock"), (-2, "Out of Stock"), (50, "Low Stock"), (51, "In Stock")],
)
def test_stock_status(quantity, label):
    assert stock_status(_product(quantity=quantity))["label"] == label


@pytest.mark.parametrize(
    "days, label",
    [(-1, "Expired"), (0, "Expired"), (30, "Expires Soon"), (31, "Monitor"), (90, "Monitor"), (91, "Good")],
)
def test_expiry_status(days, label):
    product = _product(expiry_date=TODAY + timedelta(days=days))
    assert expiry_status(product, today=TODAY)["label"] == label


def test_expiry_status_without_date():
    assert expiry_status(_product(expiry_date=None), today=TODAY)["label"] == "Unknown"


def test_inventory_summary():
    products = [
        _product(quantity=100, unit_price=Decimal("2.00")),
        _product(quantity=10, reorder_level=50, unit_price=Decimal("1.50")),
        _product(quantity=0),
    ]
    summary = inventory_summary(products)
    assert summary == {"total": 3, "low_stock": 1, "out_of_stock": 1, "stock_value": Decimal("215.00")}


def test_order_and_invoice_summaries():
    orders = [SimpleNamespace(status="pending", total_amount=Decimal("25")),
              SimpleNamespace(status="processing", total_amount=Decimal("10.5"))]
    assert order_summary(orders) == {"total": 2, "pending": 1, "processing": 1, "total_value": Decimal("35.5")}

    invoices = [SimpleNamespace(status="overdue", total_amount=Decimal("27.5"), paid_amount=Decimal("7.5")),
                SimpleNamespace(status="paid", total_amount=Decimal("10"), paid_amount=Decimal("10"))]
    summary = invoice_summary(invoices)
    assert summary["total_amount"] == Decimal("37.5")
    assert summary["paid_amount"] == Decimal("17.5")
    assert summary["overdue_amount"] == Decimal("20")


def test_supplier_summary():
    suppliers = [SimpleNamespace(status="active", rating=5), SimpleNamespace(status="inactive", rating=4)]
    assert supplier_summary(suppliers) == {"total": 2, "active": 1, "average_rating": 4.5, "five_star": 1}
    assert supplier_summary([])["average_rating"] == 0


def test_filter_products_by_search_and_status():
    products = [_product(), _product(name="Paracetamol", sku="PAR-650", manufacturer="MediGen", status="inactive")]
    assert [p.sku for p in filter_products(products, "medigen")] == ["PAR-650"]
    assert [p.sku for p in filter_products(products, "", "active")] == ["AMX-500-100"]
    assert filter_products(products, "par", "active") == []


def test_filter_customers_by_type():
    customers = [SimpleNamespace(name="City General", contact_person="Sarah", email="a@x.com", type="hospital"),
                 SimpleNamespace(name="MediCare", contact_person="Mike", email="b@x.com", type="pharmacy")]
    assert [c.name for c in filter_customers(customers, customer_type="pharmacy")] == ["MediCare"]
    assert [c.name for c in filter_customers(customers, "SARAH")] == ["City General"]


def test_filter_orders_and_invoices_by_reference():
    orders = [SimpleNamespace(customer_name="City General", reference="ORD-00001", status="pending"),
              SimpleNamespace(customer_name="MediCare", reference="ORD-00002", status="shipped")]
    assert [o.reference for o in filter_orders(orders, "00002")] == ["ORD-00002"]
    assert [o.reference for o in filter_orders(orders, status="pending")] == ["ORD-00001"]

    invoices = [SimpleNamespace(reference="INV-00001", customer_name="City General", status="sent")]
    assert filter_invoices(invoices, "city") == invoices
    assert filter_invoices(invoices, status="paid") == []


@pytest.mark.parametrize("value, expected", [("partial", "partially_paid"), ("paid", "paid"), (None, "")])
def test_normalize_payment_status(value, expected):
    assert normalize_payment_status(value) == expected


def test_seed_demo_data_is_idempotent(app_ctx):
    first = seed_demo_data(today=TODAY)
    second = seed_demo_data(today=TODAY)

    assert first == {"products": 3, "customers": 3, "suppliers": 3, "orders": 2}
    assert second == {"products": 0, "customers": 0, "suppliers": 0, "orders": 0}

    insulin = Product.query.filter_by(sku="INS-GLR-10").one()
    assert insulin.expiry_date == TODAY + timedelta(days=60)

    order = Order.query.filter_by(customer_name="City General Hospital").one()
    assert order.total_amount == Decimal("425")
    assert order.items[0].product_name == "Amoxicillin 500mg"
