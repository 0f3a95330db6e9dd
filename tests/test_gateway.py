import json
from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from pharmadist.exceptions import ConflictError, GatewayError, NotFoundError
from pharmadist.extensions import db
from pharmadist.gateway import Gateway
from pharmadist.models import AuditLog, Invoice, Order, OrderItem, Product

from .conftest import create_customer, create_product


def _product_fields(**overrides):
    fields = {
        "name": "Amoxicillin 500mg",
        "sku": "AMX-500-100",
        "quantity": 1200,
        "unit_price": Decimal("0.85"),
        "reorder_level": 200,
        "expiry_date": date(2030, 6, 15),
        "status": "active",
        "schedule": "Schedule H",
    }
    fields.update(overrides)
    return fields


def _order_fields(customer_id, **overrides):
    fields = {
        "customer_id": customer_id,
        "customer_name": "City General Hospital",
        "order_date": date(2024, 1, 15),
        "required_date": date(2024, 1, 20),
        "status": "pending",
        "payment_status": "pending",
        "priority": "medium",
        "total_amount": Decimal("25"),
    }
    fields.update(overrides)
    return fields


def _order_item(product_id, **overrides):
    item = {
        "product_id": product_id,
        "product_name": "Product X",
        "quantity": 10,
        "unit_price": Decimal("2.50"),
        "total_price": Decimal("25"),
        "batch_number": "BT-1",
        "expiry_date": date(2030, 1, 1),
    }
    item.update(overrides)
    return item


# ---------------------------------------------------------------------
# Master data CRUD
# ---------------------------------------------------------------------
def test_create_product_writes_audit_row(gateway):
    product = gateway.create_product(_product_fields())

    assert product.id is not None
    assert product.regulatory_info["schedule"] == "Schedule H"

    entry = AuditLog.query.filter_by(entity_type="Product", entity_id=product.id).one()
    assert entry.action == "CREATE"
    assert entry.user_email_snapshot == "admin@example.com"
    assert json.loads(entry.after_data)["sku"] == "AMX-500-100"


def test_update_product_records_before_and_after(gateway):
    product = gateway.create_product(_product_fields())
    gateway.update_product(product.id, {"quantity": 150})

    assert gateway.get_product(product.id).quantity == 150
    entry = AuditLog.query.filter_by(entity_type="Product", action="UPDATE").one()
    assert json.loads(entry.before_data)["quantity"] == "1200"
    assert json.loads(entry.after_data)["quantity"] == "150"


def test_delete_product(gateway):
    product = gateway.create_product(_product_fields())
    gateway.delete_product(product.id)

    with pytest.raises(NotFoundError):
        gateway.get_product(product.id)
    assert AuditLog.query.filter_by(action="DELETE").count() == 1


def test_unknown_field_is_rejected(gateway):
    with pytest.raises(GatewayError, match="colour"):
        gateway.create_product(_product_fields(colour="blue"))
    assert Product.query.count() == 0


def test_duplicate_sku_is_a_conflict(gateway):
    gateway.create_product(_product_fields())
    with pytest.raises(ConflictError):
        gateway.create_product(_product_fields(name="Other"))
    assert Product.query.count() == 1


def test_missing_record_raises_not_found(gateway):
    with pytest.raises(NotFoundError, match="Customer 404 not found"):
        gateway.get_customer(404)
    with pytest.raises(NotFoundError):
        gateway.update_supplier(404, {"rating": 3})


def test_lists_are_newest_first(gateway):
    first = gateway.create_customer(
        {"name": "First", "type": "clinic", "contact_person": "A", "email": "a@x.com", "phone": "1",
         "address": "addr", "license_number": "L1"}
    )
    second = gateway.create_customer(
        {"name": "Second", "type": "clinic", "contact_person": "B", "email": "b@x.com", "phone": "2",
         "address": "addr", "license_number": "L2"}
    )
    # equal timestamps fall back to id order
    first.created_at = second.created_at
    db.session.commit()

    assert [c.name for c in gateway.get_customers()] == ["Second", "First"]


def test_supplier_crud(gateway):
    supplier = gateway.create_supplier(
        {"name": "PharmaCorp Ltd", "contact_person": "John Smith", "email": "john.smith@pharmacorp.com",
         "phone": "+1-555-0200", "address": "456 Industrial Blvd", "license_number": "SUP-2024-001",
         "rating": 5, "payment_terms": "Net 30"}
    )
    gateway.update_supplier(supplier.id, {"status": "inactive"})
    assert gateway.get_suppliers()[0].status == "inactive"
    gateway.delete_supplier(supplier.id)
    assert gateway.get_suppliers() == []


# ---------------------------------------------------------------------
# Orders / invoices
# ---------------------------------------------------------------------
def test_create_order_with_items_is_atomic(gateway):
    customer_id = create_customer()
    product_id = create_product()

    order = gateway.create_order_with_items(
        _order_fields(customer_id),
        [_order_item(product_id), _order_item(product_id, quantity=2, total_price=Decimal("5"))],
    )

    loaded = gateway.get_order(order.id)
    assert [item.position for item in loaded.items] == [0, 1]
    assert loaded.items[1].quantity == 2
    assert AuditLog.query.filter_by(entity_type="Order").count() == 1


def test_failed_item_insert_leaves_no_orphan_order(gateway):
    customer_id = create_customer()
    product_id = create_product()

    with pytest.raises(GatewayError):
        gateway.create_order_with_items(
            _order_fields(customer_id),
            [_order_item(product_id), _order_item(product_id, product_name=None)],
        )

    assert Order.query.count() == 0
    assert OrderItem.query.count() == 0
    assert AuditLog.query.filter_by(entity_type="Order").count() == 0


def test_unknown_item_field_rejected_before_writing(gateway):
    customer_id = create_customer()
    with pytest.raises(GatewayError):
        gateway.create_order_with_items(_order_fields(customer_id), [{"product_id": 1, "discount": 5}])
    assert Order.query.count() == 0


def test_update_order_status(gateway):
    customer_id = create_customer()
    product_id = create_product()
    order = gateway.create_order_with_items(_order_fields(customer_id), [_order_item(product_id)])

    gateway.update_order_status(order.id, "shipped")

    assert gateway.get_order(order.id).status == "shipped"
    with pytest.raises(GatewayError):
        gateway.update_order_status(order.id, "teleported")


def test_create_invoice_and_update_status(gateway):
    customer_id = create_customer()
    product_id = create_product()
    order = gateway.create_order_with_items(_order_fields(customer_id), [_order_item(product_id)])

    invoice = gateway.create_invoice(
        {
            "order_id": order.id,
            "customer_id": customer_id,
            "customer_name": "City General Hospital",
            "invoice_date": date(2024, 1, 1),
            "due_date": date(2024, 1, 31),
            "subtotal": Decimal("25"),
            "tax_amount": Decimal("2.5"),
            "total_amount": Decimal("27.5"),
            "paid_amount": Decimal("0"),
            "status": "draft",
            "payment_terms": "Net 30",
        },
        [{"product_id": product_id, "product_name": "Product X", "quantity": 10,
          "unit_price": Decimal("2.50"), "total_price": Decimal("25")}],
    )
    assert invoice.reference.startswith("INV-")
    assert len(gateway.get_invoice(invoice.id).items) == 1

    gateway.update_invoice_status(invoice.id, "paid", Decimal("27.5"))
    updated = gateway.get_invoice(invoice.id)
    assert updated.status == "paid"
    assert updated.balance_due == Decimal("0")

    gateway.update_invoice_status(invoice.id, "overdue")
    assert gateway.get_invoice(invoice.id).paid_amount == Decimal("27.5")
    assert Invoice.query.count() == 1


# ---------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------
def test_dashboard_metrics(gateway):
    today = date(2026, 1, 1)
    customer_id = create_customer()
    create_customer(name="Dormant Clinic", status="inactive")
    product_id = create_product(quantity=500, reorder_level=50, expiry_date=today + timedelta(days=400))
    create_product(name="Low", sku="LOW-1", quantity=10, reorder_level=50, expiry_date=today + timedelta(days=90))
    create_product(name="Soon", sku="SOON-1", quantity=100, reorder_level=50, expiry_date=today + timedelta(days=10))
    create_product(name="Expired", sku="OLD-1", quantity=100, reorder_level=50, expiry_date=today)

    order = gateway.create_order_with_items(_order_fields(customer_id), [_order_item(product_id)])
    gateway.create_order_with_items(_order_fields(customer_id, status="delivered"), [_order_item(product_id)])
    gateway.create_invoice(
        {"order_id": order.id, "customer_id": customer_id, "customer_name": "City General Hospital",
         "invoice_date": date(2024, 1, 1), "due_date": date(2024, 1, 31), "subtotal": Decimal("25"),
         "tax_amount": Decimal("2.5"), "total_amount": Decimal("27.5"), "status": "sent"},
        [],
    )

    metrics = gateway.get_dashboard_metrics(today=today)

    assert metrics["total_revenue"] == Decimal("27.5")
    assert metrics["total_orders"] == 2
    assert metrics["pending_orders"] == 1
    assert metrics["low_stock_items"] == 1
    assert metrics["expiring_items"] == 2
    assert metrics["active_customers"] == 1
    assert metrics["revenue_growth"] == 12.5
    assert metrics["order_growth"] == 8.3

    assert [p.sku for p in gateway.get_low_stock_products()] == ["LOW-1"]
    assert [p.sku for p in gateway.get_expiring_products(today=today)] == ["SOON-1", "LOW-1"]


class _BrokenSession:
    def query(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    def rollback(self):
        pass


def test_dashboard_metrics_fall_back_to_zero_on_storage_failure():
    metrics = Gateway(_BrokenSession()).get_dashboard_metrics()

    assert metrics["total_revenue"] == Decimal("0")
    assert metrics["total_orders"] == 0
    assert metrics["low_stock_items"] == 0
    assert metrics["revenue_growth"] == 0


def test_read_failure_is_wrapped():
    with pytest.raises(GatewayError, match="Could not load products"):
        Gateway(_BrokenSession()).get_products()
