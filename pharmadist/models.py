"""
Pharmaceutical Distribution Back Office – Domain Models

Entities:
- User (back-office login, password and/or OAuth)
- Product (inventory, with regulatory info)
- Customer, Supplier (master data)
- Order + OrderItem, Invoice + InvoiceItem (transactional documents)
- AuditLog (who changed what)

Snapshot fields:
- Order.customer_name, OrderItem.product_name/batch_number/expiry_date, Invoice.customer_name and all
  InvoiceItem values are COPIED when the source is selected. They are never kept in sync with the source
  record afterwards: a later Product edit does not change an already placed OrderItem.

Money:
- Stored as Numeric with 4 decimals so derived values (e.g. 10% tax) keep their raw value.
  Display rounding to 2 decimals happens in templates (see utils.format_money).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from .extensions import db


# ---------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------
PRODUCT_STATUSES = ("active", "discontinued", "recalled")
PRODUCT_CATEGORIES = (
    "Antibiotics",
    "Analgesics",
    "Diabetes Care",
    "Cardiovascular",
    "Respiratory",
    "Dermatology",
    "Oncology",
    "Neurology",
)

CUSTOMER_TYPES = ("hospital", "pharmacy", "clinic", "wholesaler")
CUSTOMER_STATUSES = ("active", "inactive", "suspended")

SUPPLIER_STATUSES = ("active", "inactive")

ORDER_STATUSES = ("pending", "confirmed", "processing", "shipped", "delivered", "cancelled")
PAYMENT_STATUSES = ("pending", "partially_paid", "paid")
PAYMENT_STATUS_ALIASES = {"partial": "partially_paid"}
ORDER_PRIORITIES = ("low", "medium", "high", "urgent")

INVOICE_STATUSES = ("draft", "sent", "paid", "overdue", "cancelled")

USER_ROLES = ("admin", "manager", "operator", "viewer")

MONEY = db.Numeric(14, 4)


def normalize_payment_status(value: str | None) -> str:
    value = (value or "").strip().lower()
    return PAYMENT_STATUS_ALIASES.get(value, value)


def _to_decimal(value) -> Decimal:
    """Convert Numeric/None to Decimal safely."""
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


# ---------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------
class User(UserMixin, db.Model):
    """Back-office login user."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(150), nullable=True)

    # NULL for users that only ever signed in through OAuth
    password_hash = db.Column(db.String(255), nullable=True)
    oauth_provider = db.Column(db.String(40), nullable=True)

    role = db.Column(db.String(20), nullable=False, default="operator", index=True)
    department = db.Column(db.String(120), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    last_login_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_viewer(self) -> bool:
        return self.role == "viewer"

    @property
    def name_for_display(self) -> str:
        return self.display_name or "User"

    def __repr__(self):
        return f"<User {self.email}>"


# ---------------------------------------------------------------------
# Master data
# ---------------------------------------------------------------------
class Product(db.Model):
    """Inventory product. SKU is the business key."""

    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False, index=True)
    generic_name = db.Column(db.String(255), nullable=True)
    manufacturer = db.Column(db.String(255), nullable=True, index=True)
    category = db.Column(db.String(100), nullable=True, index=True)

    sku = db.Column(db.String(80), nullable=False, unique=True, index=True)
    batch_number = db.Column(db.String(80), nullable=True)
    expiry_date = db.Column(db.Date, nullable=True, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    unit_price = db.Column(MONEY, nullable=False, default=Decimal("0"))
    reorder_level = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(20), nullable=False, default="active", index=True)

    # Regulatory info (exposed together via regulatory_info)
    license_number = db.Column(db.String(100), nullable=True)
    drug_code = db.Column(db.String(100), nullable=True)
    schedule = db.Column(db.String(100), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def regulatory_info(self) -> dict:
        return {
            "license_number": self.license_number or "",
            "drug_code": self.drug_code or "",
            "schedule": self.schedule or "",
        }

    def __repr__(self):
        return f"<Product {self.sku} - {self.name}>"


class Customer(db.Model):
    __tablename__ = "customers"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False, index=True)
    type = db.Column(db.String(20), nullable=False, default="hospital", index=True)

    contact_person = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(500), nullable=False)
    license_number = db.Column(db.String(100), nullable=False)

    credit_limit = db.Column(MONEY, nullable=False, default=Decimal("0"))
    outstanding_balance = db.Column(MONEY, nullable=False, default=Decimal("0"))

    status = db.Column(db.String(20), nullable=False, default="active", index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Customer {self.name}>"


class Supplier(db.Model):
    __tablename__ = "suppliers"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False, index=True)
    contact_person = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(500), nullable=False)
    license_number = db.Column(db.String(100), nullable=False)

    rating = db.Column(db.Integer, nullable=False, default=0)
    payment_terms = db.Column(db.String(100), nullable=False)

    status = db.Column(db.String(20), nullable=False, default="active", index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Supplier {self.name}>"


# ---------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------
class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)

    customer_id = db.Column(
        db.Integer,
        db.ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    # snapshot at selection time
    customer_name = db.Column(db.String(255), nullable=False)

    order_date = db.Column(db.Date, nullable=False, index=True)
    required_date = db.Column(db.Date, nullable=False)

    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    payment_status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    priority = db.Column(db.String(20), nullable=False, default="medium")

    total_amount = db.Column(MONEY, nullable=False, default=Decimal("0"))

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))

    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )

    @property
    def reference(self) -> str:
        return f"ORD-{self.id:05d}" if self.id else "ORD-NEW"

    def __repr__(self):
        return f"<Order {self.reference} {self.customer_name}>"


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)

    order_id = db.Column(
        db.Integer,
        db.ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(MONEY, nullable=False)
    total_price = db.Column(MONEY, nullable=False)

    batch_number = db.Column(db.String(80), nullable=True)
    expiry_date = db.Column(db.Date, nullable=True)

    order = db.relationship("Order", back_populates="items")


# ---------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------
class Invoice(db.Model):
    __tablename__ = "invoices"

    id = db.Column(db.Integer, primary_key=True)

    order_id = db.Column(
        db.Integer,
        db.ForeignKey("orders.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    customer_id = db.Column(
        db.Integer,
        db.ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    customer_name = db.Column(db.String(255), nullable=False)

    invoice_date = db.Column(db.Date, nullable=False, index=True)
    due_date = db.Column(db.Date, nullable=False, index=True)

    subtotal = db.Column(MONEY, nullable=False, default=Decimal("0"))
    tax_amount = db.Column(MONEY, nullable=False, default=Decimal("0"))
    total_amount = db.Column(MONEY, nullable=False, default=Decimal("0"))
    paid_amount = db.Column(MONEY, nullable=False, default=Decimal("0"))

    status = db.Column(db.String(20), nullable=False, default="draft", index=True)
    payment_terms = db.Column(db.String(40), nullable=False, default="Net 30")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    order = db.relationship("Order", backref=db.backref("invoices", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("invoices", lazy=True))

    items = db.relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )

    @property
    def reference(self) -> str:
        return f"INV-{self.id:05d}" if self.id else "INV-NEW"

    @property
    def balance_due(self) -> Decimal:
        return _to_decimal(self.total_amount) - _to_decimal(self.paid_amount)

    def __repr__(self):
        return f"<Invoice {self.reference} {self.customer_name}>"


class InvoiceItem(db.Model):
    __tablename__ = "invoice_items"

    id = db.Column(db.Integer, primary_key=True)

    invoice_id = db.Column(
        db.Integer,
        db.ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(MONEY, nullable=False)
    total_price = db.Column(MONEY, nullable=False)

    invoice = db.relationship("Invoice", back_populates="items")


# ---------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------
class AuditLog(db.Model):
    """Before/after snapshot of every gateway write."""

    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    user_email_snapshot = db.Column(db.String(255), nullable=True)

    entity_type = db.Column(db.String(50), nullable=False, index=True)
    entity_id = db.Column(db.Integer, nullable=False, index=True)

    action = db.Column(db.String(20), nullable=False, index=True)

    before_data = db.Column(db.Text, nullable=True)
    after_data = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    user = db.relationship("User", backref=db.backref("audit_entries", lazy=True))
