from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from pharmadist import create_app
from pharmadist.auth import SessionContext
from pharmadist.extensions import db
from pharmadist.gateway import Gateway
from pharmadist.models import Customer, Product, User

PASSWORD = "s3cret-pass"


@pytest.fixture
def app():
    app = create_app("config.TestingConfig")
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


def create_user(email: str, role: str = "operator", password: str | None = PASSWORD, is_active: bool = True) -> int:
    """Must be called inside an app context. Returns the new user id."""
    user = User(email=email, display_name=email.split("@")[0], role=role, is_active=is_active)
    if password:
        user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user.id


def create_product(name="Product X", sku="PX-001", unit_price="2.50", quantity=500, reorder_level=50,
                   expiry_date=date(2030, 1, 1), **extra) -> int:
    product = Product(
        name=name,
        sku=sku,
        unit_price=Decimal(unit_price),
        quantity=quantity,
        reorder_level=reorder_level,
        expiry_date=expiry_date,
        batch_number=extra.pop("batch_number", "BT-1"),
        **extra,
    )
    db.session.add(product)
    db.session.commit()
    return product.id


def create_customer(name="City General Hospital", **extra) -> int:
    fields = {
        "type": "hospital",
        "contact_person": "Dr. Sarah Johnson",
        "email": "procurement@citygeneral.com",
        "phone": "+1-555-0123",
        "address": "123 Healthcare Ave",
        "license_number": "HOSP-2024-001",
        "credit_limit": Decimal("100000"),
        "outstanding_balance": Decimal("0"),
        "status": "active",
    }
    fields.update(extra)
    customer = Customer(name=name, **fields)
    db.session.add(customer)
    db.session.commit()
    return customer.id


def login(client, email: str, password: str = PASSWORD):
    return client.post("/auth/login", data={"email": email, "password": password}, follow_redirects=True)


@pytest.fixture
def operator_client(app, client):
    with app.app_context():
        create_user("operator@example.com", role="operator")
    login(client, "operator@example.com")
    return client


@pytest.fixture
def viewer_client(app, client):
    with app.app_context():
        create_user("viewer@example.com", role="viewer")
    login(client, "viewer@example.com")
    return client


@pytest.fixture
def gateway(app_ctx):
    user_id = create_user("admin@example.com", role="admin")
    context = SessionContext(user_id=user_id, email="admin@example.com", display_name="admin", role="admin")
    return Gateway(db.session, context)
