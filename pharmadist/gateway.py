"""
Persistence gateway.

The single seam between the back office and storage. Everything above it (workflows, blueprints) only calls
these operations and never touches the SQLAlchemy session directly.

Operations:
- get_<entities>() lists, newest first (created_at desc, id desc)
- get_<entity>(id) single reads, NotFoundError when missing
- create/update/delete for products, customers, suppliers
- create_order_with_items / create_invoice: parent row + items in ONE transaction
- update_order_status / update_invoice_status: narrow edits of existing documents
- get_dashboard_metrics

IMPORTANT:
- Every write adds an AuditLog row (with the SessionContext user) in the same transaction.
- Any SQLAlchemy failure rolls the session back and is re-raised as GatewayError (ConflictError for constraint
  violations), so no partially written order/invoice is ever left behind.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from flask_login import current_user
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from .audit import log_action, serialize_model
from .auth import SessionContext
from .exceptions import ConflictError, GatewayError, NotFoundError
from .extensions import db
from .models import (
    INVOICE_STATUSES,
    ORDER_STATUSES,
    Customer,
    Invoice,
    InvoiceItem,
    Order,
    OrderItem,
    Product,
    Supplier,
    _to_decimal,
)

logger = logging.getLogger(__name__)


# Writable fields per entity. Anything else passed to create/update is rejected.
PRODUCT_FIELDS = (
    "name", "generic_name", "manufacturer", "category", "sku", "batch_number", "expiry_date",
    "quantity", "unit_price", "reorder_level", "status", "license_number", "drug_code", "schedule",
)
CUSTOMER_FIELDS = (
    "name", "type", "contact_person", "email", "phone", "address", "license_number",
    "credit_limit", "outstanding_balance", "status",
)
SUPPLIER_FIELDS = (
    "name", "contact_person", "email", "phone", "address", "license_number", "rating", "payment_terms", "status",
)
ORDER_FIELDS = (
    "customer_id", "customer_name", "order_date", "required_date", "status", "payment_status", "priority",
    "total_amount",
)
ORDER_ITEM_FIELDS = (
    "product_id", "product_name", "quantity", "unit_price", "total_price", "batch_number", "expiry_date",
)
INVOICE_FIELDS = (
    "order_id", "customer_id", "customer_name", "invoice_date", "due_date", "subtotal", "tax_amount",
    "total_amount", "paid_amount", "status", "payment_terms", "notes",
)
INVOICE_ITEM_FIELDS = ("product_id", "product_name", "quantity", "unit_price", "total_price")

GROWTH_PLACEHOLDERS = {"revenue_growth": 12.5, "order_growth": 8.3}
EXPIRING_WITHIN_DAYS = 90


def empty_metrics() -> Dict[str, Any]:
    return {
        "total_revenue": Decimal("0"),
        "total_orders": 0,
        "pending_orders": 0,
        "low_stock_items": 0,
        "expiring_items": 0,
        "active_customers": 0,
        "revenue_growth": 0,
        "order_growth": 0,
    }


def _checked_fields(fields: Mapping[str, Any], allowed: Iterable[str], entity: str) -> Dict[str, Any]:
    unknown = sorted(set(fields) - set(allowed))
    if unknown:
        raise GatewayError(f"Unknown {entity} field(s): {', '.join(unknown)}")
    return dict(fields)


class Gateway:
    """CRUD collaborator bound to a SQLAlchemy session and the acting user."""

    def __init__(self, session, context: SessionContext | None = None):
        self.session = session
        self.context = context or SessionContext.anonymous()

    # -----------------------------------------------------------------
    # Transaction handling
    # -----------------------------------------------------------------
    @contextmanager
    def _transaction(self, description: str):
        try:
            yield
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning("Rolled back %s: %s", description, exc.orig)
            raise ConflictError(f"Could not {description}: it conflicts with existing data.") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Rolled back %s: %s", description, exc)
            raise GatewayError(f"Could not {description}.") from exc
        except Exception:
            self.session.rollback()
            logger.exception("Rolled back %s", description)
            raise

    def _read(self, description: str, fn):
        try:
            return fn()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Failed to %s: %s", description, exc)
            raise GatewayError(f"Could not {description}.") from exc

    def _list(self, model, *options):
        query = self.session.query(model)
        if options:
            query = query.options(*options)
        return query.order_by(model.created_at.desc(), model.id.desc()).all()

    def _get(self, model, entity_id, *options):
        query = self.session.query(model)
        if options:
            query = query.options(*options)
        instance = self._read(
            f"load {model.__name__.lower()}",
            lambda: query.filter(model.id == entity_id).one_or_none(),
        )
        if instance is None:
            raise NotFoundError(model.__name__, entity_id)
        return instance

    # -----------------------------------------------------------------
    # Generic master data writes
    # -----------------------------------------------------------------
    def _create(self, model, fields: Mapping[str, Any], allowed: Iterable[str]):
        label = model.__name__.lower()
        values = _checked_fields(fields, allowed, label)
        instance = model(**values)
        with self._transaction(f"create {label}"):
            self.session.add(instance)
            self.session.flush()
            log_action(self.session, self.context, instance, "CREATE", after=serialize_model(instance))
        logger.info("Created %s %s", label, instance.id)
        return instance

    def _update(self, model, entity_id, partial: Mapping[str, Any], allowed: Iterable[str]):
        label = model.__name__.lower()
        values = _checked_fields(partial, allowed, label)
        instance = self._get(model, entity_id)
        with self._transaction(f"update {label}"):
            before = serialize_model(instance)
            for key, value in values.items():
                setattr(instance, key, value)
            self.session.flush()
            log_action(self.session, self.context, instance, "UPDATE", before=before, after=serialize_model(instance))
        return instance

    def _delete(self, model, entity_id) -> None:
        label = model.__name__.lower()
        instance = self._get(model, entity_id)
        with self._transaction(f"delete {label}"):
            log_action(self.session, self.context, instance, "DELETE", before=serialize_model(instance))
            self.session.delete(instance)
        logger.info("Deleted %s %s", label, entity_id)

    # -----------------------------------------------------------------
    # Products
    # -----------------------------------------------------------------
    def get_products(self) -> List[Product]:
        return self._read("load products", lambda: self._list(Product))

    def get_product(self, product_id: int) -> Product:
        return self._get(Product, product_id)

    def create_product(self, fields: Mapping[str, Any]) -> Product:
        return self._create(Product, fields, PRODUCT_FIELDS)

    def update_product(self, product_id: int, partial: Mapping[str, Any]) -> Product:
        return self._update(Product, product_id, partial, PRODUCT_FIELDS)

    def delete_product(self, product_id: int) -> None:
        self._delete(Product, product_id)

    def get_low_stock_products(self) -> List[Product]:
        return self._read(
            "load low stock products",
            lambda: self.session.query(Product)
            .filter(Product.quantity <= Product.reorder_level)
            .order_by(Product.quantity.asc(), Product.name.asc())
            .all(),
        )

    def get_expiring_products(self, within_days: int = EXPIRING_WITHIN_DAYS, today: Optional[date] = None):
        today = today or date.today()
        return self._read(
            "load expiring products",
            lambda: self.session.query(Product)
            .filter(
                Product.expiry_date > today,
                Product.expiry_date <= today + timedelta(days=within_days),
            )
            .order_by(Product.expiry_date.asc())
            .all(),
        )

    # -----------------------------------------------------------------
    # Customers
    # -----------------------------------------------------------------
    def get_customers(self) -> List[Customer]:
        return self._read("load customers", lambda: self._list(Customer))

    def get_customer(self, customer_id: int) -> Customer:
        return self._get(Customer, customer_id)

    def create_customer(self, fields: Mapping[str, Any]) -> Customer:
        return self._create(Customer, fields, CUSTOMER_FIELDS)

    def update_customer(self, customer_id: int, partial: Mapping[str, Any]) -> Customer:
        return self._update(Customer, customer_id, partial, CUSTOMER_FIELDS)

    def delete_customer(self, customer_id: int) -> None:
        self._delete(Customer, customer_id)

    # -----------------------------------------------------------------
    # Suppliers
    # -----------------------------------------------------------------
    def get_suppliers(self) -> List[Supplier]:
        return self._read("load suppliers", lambda: self._list(Supplier))

    def get_supplier(self, supplier_id: int) -> Supplier:
        return self._get(Supplier, supplier_id)

    def create_supplier(self, fields: Mapping[str, Any]) -> Supplier:
        return self._create(Supplier, fields, SUPPLIER_FIELDS)

    def update_supplier(self, supplier_id: int, partial: Mapping[str, Any]) -> Supplier:
        return self._update(Supplier, supplier_id, partial, SUPPLIER_FIELDS)

    def delete_supplier(self, supplier_id: int) -> None:
        self._delete(Supplier, supplier_id)

    # -----------------------------------------------------------------
    # Orders
    # -----------------------------------------------------------------
    def get_orders(self) -> List[Order]:
        return self._read("load orders", lambda: self._list(Order, selectinload(Order.items)))

    def get_order(self, order_id: int) -> Order:
        return self._get(Order, order_id, selectinload(Order.items))

    def create_order_with_items(self, order: Mapping[str, Any], items: Iterable[Mapping[str, Any]]) -> Order:
        values = _checked_fields(order, ORDER_FIELDS, "order")
        item_values = [_checked_fields(item, ORDER_ITEM_FIELDS, "order item") for item in items]

        instance = Order(**values)
        with self._transaction("create order"):
            self.session.add(instance)
            self.session.flush()
            for position, item in enumerate(item_values):
                instance.items.append(OrderItem(position=position, **item))
            self.session.flush()
            log_action(self.session, self.context, instance, "CREATE", after=serialize_model(instance))

        logger.info("Created order %s with %d item(s), total %s", instance.id, len(item_values), instance.total_amount)
        return instance

    def update_order_status(self, order_id: int, status: str) -> Order:
        if status not in ORDER_STATUSES:
            raise GatewayError(f"Unknown order status: {status}")
        instance = self._get(Order, order_id)
        with self._transaction("update order status"):
            before = serialize_model(instance)
            instance.status = status
            self.session.flush()
            log_action(self.session, self.context, instance, "UPDATE", before=before, after=serialize_model(instance))
        return instance

    def delete_order(self, order_id: int) -> None:
        self._delete(Order, order_id)

    # -----------------------------------------------------------------
    # Invoices
    # -----------------------------------------------------------------
    def get_invoices(self) -> List[Invoice]:
        return self._read("load invoices", lambda: self._list(Invoice, selectinload(Invoice.items)))

    def get_invoice(self, invoice_id: int) -> Invoice:
        return self._get(Invoice, invoice_id, selectinload(Invoice.items))

    def create_invoice(self, invoice: Mapping[str, Any], items: Iterable[Mapping[str, Any]]) -> Invoice:
        values = _checked_fields(invoice, INVOICE_FIELDS, "invoice")
        item_values = [_checked_fields(item, INVOICE_ITEM_FIELDS, "invoice item") for item in items]

        instance = Invoice(**values)
        with self._transaction("create invoice"):
            self.session.add(instance)
            self.session.flush()
            for position, item in enumerate(item_values):
                instance.items.append(InvoiceItem(position=position, **item))
            self.session.flush()
            log_action(self.session, self.context, instance, "CREATE", after=serialize_model(instance))

        logger.info("Created invoice %s for order %s, total %s", instance.id, instance.order_id, instance.total_amount)
        return instance

    def update_invoice_status(self, invoice_id: int, status: str, paid_amount=None) -> Invoice:
        if status not in INVOICE_STATUSES:
            raise GatewayError(f"Unknown invoice status: {status}")
        instance = self._get(Invoice, invoice_id)
        with self._transaction("update invoice status"):
            before = serialize_model(instance)
            instance.status = status
            if paid_amount is not None:
                instance.paid_amount = paid_amount
            self.session.flush()
            log_action(self.session, self.context, instance, "UPDATE", before=before, after=serialize_model(instance))
        return instance

    def delete_invoice(self, invoice_id: int) -> None:
        self._delete(Invoice, invoice_id)

    # -----------------------------------------------------------------
    # Dashboard
    # -----------------------------------------------------------------
    def get_dashboard_metrics(self, today: Optional[date] = None) -> Dict[str, Any]:
        """Headline figures. Never raises: a storage failure is logged and all-zero metrics are returned."""
        today = today or date.today()
        try:
            total_revenue = self.session.query(func.coalesce(func.sum(Invoice.total_amount), 0)).scalar()
            total_orders = self.session.query(func.count(Order.id)).scalar()
            pending_orders = self.session.query(func.count(Order.id)).filter(Order.status == "pending").scalar()
            low_stock_items = (
                self.session.query(func.count(Product.id))
                .filter(Product.quantity <= Product.reorder_level)
                .scalar()
            )
            expiring_items = (
                self.session.query(func.count(Product.id))
                .filter(
                    Product.expiry_date > today,
                    Product.expiry_date <= today + timedelta(days=EXPIRING_WITHIN_DAYS),
                )
                .scalar()
            )
            active_customers = (
                self.session.query(func.count(Customer.id)).filter(Customer.status == "active").scalar()
            )
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Failed to compute dashboard metrics: %s", exc)
            return empty_metrics()

        return {
            "total_revenue": _to_decimal(total_revenue),
            "total_orders": total_orders or 0,
            "pending_orders": pending_orders or 0,
            "low_stock_items": low_stock_items or 0,
            "expiring_items": expiring_items or 0,
            "active_customers": active_customers or 0,
            **GROWTH_PLACEHOLDERS,
        }


def request_gateway() -> Gateway:
    """Gateway for the current request, acting as the logged-in user."""
    return Gateway(db.session, SessionContext.from_user(current_user))
