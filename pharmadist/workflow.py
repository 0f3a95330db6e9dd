"""
Order / invoice form workflows.

One workflow instance = one open form. It owns the form state, keeps derived fields consistent after every
mutation, validates on submit and only then calls the gateway.

Lifecycle:
    idle -> loading -> editing -> submitting -> success
                                      |
                                      +-> error (any further edit returns to editing)

Edit vs create:
- A workflow built with from_order()/from_invoice() edits an existing document. Submitting it only persists the
  status (plus paid amount for invoices). Items and amounts of an existing document are never rewritten.
- A fresh workflow creates the document and its items in a single gateway call.

IMPORTANT:
- Reference data (customers/products/orders) is loaded once per form via load_reference_data().
- The gateway is only called by load_reference_data() and submit().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .auth import SessionContext
from .derivation import (
    DEFAULT_PAYMENT_TERMS_DAYS,
    DEFAULT_TAX_RATE,
    compute_due_date,
    compute_invoice_financials,
    compute_item_total,
    compute_order_total,
)
from .exceptions import GatewayError
from .models import _to_decimal, normalize_payment_status
from .parsing import parse_date, parse_decimal, parse_int, parse_optional_int, parse_text
from .validation import validate_invoice, validate_order

logger = logging.getLogger(__name__)

IDLE = "idle"
LOADING = "loading"
EDITING = "editing"
SUBMITTING = "submitting"
SUCCESS = "success"
ERROR = "error"

UNKNOWN_PRODUCT = "Unknown Product"
DEFAULT_PAYMENT_TERMS = "Net 30"


@dataclass
class OrderItemDraft:
    product_id: Optional[int] = None
    product_name: str = ""
    quantity: int = 1
    unit_price: Decimal = Decimal("0")
    total_price: Decimal = Decimal("0")
    batch_number: str = ""
    expiry_date: Optional[date] = None

    @classmethod
    def from_item(cls, item) -> "OrderItemDraft":
        return cls(
            product_id=item.product_id,
            product_name=item.product_name or "",
            quantity=item.quantity or 0,
            unit_price=_to_decimal(item.unit_price),
            total_price=_to_decimal(item.total_price),
            batch_number=getattr(item, "batch_number", None) or "",
            expiry_date=getattr(item, "expiry_date", None),
        )

    def recompute(self) -> None:
        self.total_price = compute_item_total(self.quantity, self.unit_price)

    def to_fields(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "batch_number": self.batch_number or None,
            "expiry_date": self.expiry_date,
        }


@dataclass
class InvoiceItemDraft:
    product_id: Optional[int]
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    @classmethod
    def from_item(cls, item) -> "InvoiceItemDraft":
        return cls(
            product_id=item.product_id,
            product_name=item.product_name or UNKNOWN_PRODUCT,
            quantity=item.quantity or 0,
            unit_price=_to_decimal(item.unit_price),
            total_price=_to_decimal(item.total_price),
        )

    def to_fields(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
        }


class _FormWorkflow:
    """State handling shared by both document workflows."""

    document = "record"

    def __init__(self, gateway, context: SessionContext | None = None):
        self.gateway = gateway
        self.context = context or SessionContext.anonymous()
        self.state = IDLE
        self.error_message = ""

    @property
    def is_edit(self) -> bool:
        raise NotImplementedError

    def _touch(self) -> None:
        """Any edit after a failed submit puts the form back into editing."""
        if self.state == ERROR:
            self.state = EDITING
            self.error_message = ""

    def _load(self, label: str, fetch) -> list:
        try:
            return list(fetch() or [])
        except GatewayError as exc:
            logger.error("Error loading %s: %s", label, exc)
            self.error_message = f"Failed to load {label}."
            return []

    @staticmethod
    def _find(records: list, record_id):
        """The loaded reference record with this id, or None."""
        record_id = parse_optional_int(record_id)
        if record_id is None:
            return None
        return next((r for r in records if r.id == record_id), None)

    def _fail(self, message: str) -> None:
        self.state = ERROR
        self.error_message = message

    def _validate(self) -> Optional[str]:
        raise NotImplementedError

    def _persist(self):
        raise NotImplementedError

    def submit(self):
        """Validate, then persist. Returns the persisted entity, or None when the form stays open."""
        if self.state == SUBMITTING:
            return None

        self.state = SUBMITTING
        self.error_message = ""

        error = self._validate()
        if error:
            self._fail(error)
            return None

        try:
            result = self._persist()
        except GatewayError as exc:
            logger.error("Error saving %s: %s", self.document, exc)
            self._fail(f"Error saving {self.document}: {exc}")
            return None

        self.state = SUCCESS
        logger.info("%s saved by %s", self.document.capitalize(), self.context.email or "anonymous")
        return result


# ---------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------
class OrderWorkflow(_FormWorkflow):
    document = "order"

    def __init__(self, gateway, context: SessionContext | None = None, *, today: date | None = None):
        super().__init__(gateway, context)
        self.order_id: Optional[int] = None

        self.customer_id: Optional[int] = None
        self.customer_name = ""
        self.order_date: Optional[date] = today or date.today()
        self.required_date: Optional[date] = None
        self.status = "pending"
        self.payment_status = "pending"
        self.priority = "medium"

        self.items: List[OrderItemDraft] = []
        self.total_amount = Decimal("0")

        self.customers: list = []
        self.products: list = []

    @classmethod
    def from_order(cls, gateway, context: SessionContext | None, order) -> "OrderWorkflow":
        wf = cls(gateway, context)
        wf.order_id = order.id
        wf.customer_id = order.customer_id
        wf.customer_name = order.customer_name or ""
        wf.order_date = order.order_date
        wf.required_date = order.required_date
        wf.status = order.status
        wf.payment_status = normalize_payment_status(order.payment_status)
        wf.priority = order.priority
        wf.items = [OrderItemDraft.from_item(item) for item in order.items]
        wf._recompute_total()
        return wf

    @property
    def is_edit(self) -> bool:
        return self.order_id is not None

    def load_reference_data(self) -> None:
        self.state = LOADING
        self.customers = self._load("customers", self.gateway.get_customers)
        self.products = self._load("products", self.gateway.get_products)
        self.state = EDITING

    def _recompute_total(self) -> None:
        self.total_amount = compute_order_total(self.items)

    def _item(self, index: int) -> Optional[OrderItemDraft]:
        if 0 <= index < len(self.items):
            return self.items[index]
        return None

    # --- header fields ---
    def select_customer(self, customer_id) -> None:
        self._touch()
        customer = self._find(self.customers, customer_id)
        self.customer_id = customer.id if customer else None
        self.customer_name = customer.name if customer else ""

    def set_order_date(self, value) -> None:
        self._touch()
        self.order_date = parse_date(value)

    def set_required_date(self, value) -> None:
        self._touch()
        self.required_date = parse_date(value)

    def set_status(self, value) -> None:
        self._touch()
        self.status = parse_text(value)

    def set_payment_status(self, value) -> None:
        self._touch()
        self.payment_status = normalize_payment_status(value)

    def set_priority(self, value) -> None:
        self._touch()
        self.priority = parse_text(value)

    # --- items ---
    def add_item(self) -> OrderItemDraft:
        self._touch()
        item = OrderItemDraft()
        self.items.append(item)
        self._recompute_total()
        return item

    def remove_item(self, index: int) -> None:
        self._touch()
        if self._item(index) is not None:
            del self.items[index]
        self._recompute_total()

    def select_product(self, index: int, product_id) -> None:
        """Snapshot name/price/batch/expiry from the product and recompute totals."""
        self._touch()
        item = self._item(index)
        if item is None:
            return
        product = self._find(self.products, product_id)
        if product is None:
            # ids that are not in the loaded catalogue are treated as no selection
            item.product_id = None
            item.product_name = ""
            item.unit_price = Decimal("0")
            item.batch_number = ""
            item.expiry_date = None
        else:
            item.product_id = product.id
            item.product_name = product.name or ""
            item.unit_price = _to_decimal(product.unit_price)
            item.batch_number = product.batch_number or ""
            item.expiry_date = product.expiry_date
        item.recompute()
        self._recompute_total()

    def set_item_quantity(self, index: int, value) -> None:
        self._touch()
        item = self._item(index)
        if item is None:
            return
        item.quantity = parse_int(value)
        item.recompute()
        self._recompute_total()

    def set_item_unit_price(self, index: int, value) -> None:
        self._touch()
        item = self._item(index)
        if item is None:
            return
        item.unit_price = parse_decimal(value)
        item.recompute()
        self._recompute_total()

    def set_item_batch_number(self, index: int, value) -> None:
        self._touch()
        item = self._item(index)
        if item is not None:
            item.batch_number = parse_text(value)

    def set_item_expiry_date(self, index: int, value) -> None:
        self._touch()
        item = self._item(index)
        if item is not None:
            item.expiry_date = parse_date(value)

    # --- submit ---
    def to_fields(self) -> Dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "order_date": self.order_date,
            "required_date": self.required_date,
            "status": self.status,
            "payment_status": self.payment_status,
            "priority": self.priority,
            "total_amount": self.total_amount,
        }

    def _validate(self) -> Optional[str]:
        return validate_order(self.to_fields(), self.items)

    def _persist(self):
        if self.is_edit:
            return self.gateway.update_order_status(self.order_id, self.status)
        return self.gateway.create_order_with_items(self.to_fields(), [item.to_fields() for item in self.items])


# ---------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------
class InvoiceWorkflow(_FormWorkflow):
    document = "invoice"

    def __init__(
        self,
        gateway,
        context: SessionContext | None = None,
        *,
        tax_rate=DEFAULT_TAX_RATE,
        default_terms_days: int = DEFAULT_PAYMENT_TERMS_DAYS,
        today: date | None = None,
    ):
        super().__init__(gateway, context)
        self.tax_rate = _to_decimal(tax_rate)
        self.default_terms_days = default_terms_days

        self.invoice_id: Optional[int] = None

        self.order_id: Optional[int] = None
        self.customer_id: Optional[int] = None
        self.customer_name = ""

        self.invoice_date: Optional[date] = today or date.today()
        self.payment_terms = DEFAULT_PAYMENT_TERMS
        self.due_date: Optional[date] = None

        self.subtotal = Decimal("0")
        self.tax_amount = Decimal("0")
        self.total_amount = Decimal("0")
        self.paid_amount = Decimal("0")

        self.status = "draft"
        self.notes = ""

        self.items: List[InvoiceItemDraft] = []
        self.orders: list = []

        self._recompute_due_date()

    @classmethod
    def from_invoice(cls, gateway, context: SessionContext | None, invoice, **kwargs) -> "InvoiceWorkflow":
        wf = cls(gateway, context, **kwargs)
        wf.invoice_id = invoice.id
        wf.order_id = invoice.order_id
        wf.customer_id = invoice.customer_id
        wf.customer_name = invoice.customer_name or ""
        wf.invoice_date = invoice.invoice_date
        wf.payment_terms = invoice.payment_terms or DEFAULT_PAYMENT_TERMS
        wf.due_date = invoice.due_date
        wf.subtotal = _to_decimal(invoice.subtotal)
        wf.tax_amount = _to_decimal(invoice.tax_amount)
        wf.total_amount = _to_decimal(invoice.total_amount)
        wf.paid_amount = _to_decimal(invoice.paid_amount)
        wf.status = invoice.status
        wf.notes = invoice.notes or ""
        wf.items = [InvoiceItemDraft.from_item(item) for item in invoice.items]
        return wf

    @property
    def is_edit(self) -> bool:
        return self.invoice_id is not None

    def load_reference_data(self) -> None:
        self.state = LOADING
        self.orders = self._load("orders", self.gateway.get_orders)
        self.state = EDITING

    def _recompute_due_date(self) -> None:
        self.due_date = compute_due_date(self.invoice_date, self.payment_terms, self.default_terms_days)

    def select_order(self, order_id) -> None:
        """Copy customer, amounts and items from the order. One-way: later order edits do not flow back."""
        self._touch()
        order = self._find(self.orders, order_id)

        self.order_id = order.id if order else None
        self.customer_id = None
        self.customer_name = ""
        self.subtotal = self.tax_amount = self.total_amount = Decimal("0")
        self.items = []
        if order is None:
            return

        self.customer_id = order.customer_id
        self.customer_name = order.customer_name or ""

        financials = compute_invoice_financials(_to_decimal(order.total_amount), self.tax_rate)
        self.subtotal = financials["subtotal"]
        self.tax_amount = financials["tax_amount"]
        self.total_amount = financials["total_amount"]

        self.items = [InvoiceItemDraft.from_item(item) for item in (order.items or [])]

    def set_invoice_date(self, value) -> None:
        self._touch()
        self.invoice_date = parse_date(value)
        self._recompute_due_date()

    def set_payment_terms(self, value) -> None:
        self._touch()
        self.payment_terms = parse_text(value) or DEFAULT_PAYMENT_TERMS
        self._recompute_due_date()

    def set_paid_amount(self, value) -> None:
        self._touch()
        self.paid_amount = parse_decimal(value)

    def set_status(self, value) -> None:
        self._touch()
        self.status = parse_text(value)

    def set_notes(self, value) -> None:
        self._touch()
        self.notes = parse_text(value)

    def to_fields(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "invoice_date": self.invoice_date,
            "due_date": self.due_date,
            "subtotal": self.subtotal,
            "tax_amount": self.tax_amount,
            "total_amount": self.total_amount,
            "paid_amount": self.paid_amount,
            "status": self.status,
            "payment_terms": self.payment_terms,
            "notes": self.notes or None,
        }

    def _validate(self) -> Optional[str]:
        return validate_invoice(self.to_fields())

    def _persist(self):
        if self.is_edit:
            return self.gateway.update_invoice_status(self.invoice_id, self.status, self.paid_amount)
        return self.gateway.create_invoice(self.to_fields(), [item.to_fields() for item in self.items])
