"""
pharmadist/seed.py

Demo data for a fresh installation (flask seed-demo).

Rules:
- Safe to run multiple times (idempotent).
- Products match by SKU, customers/suppliers by name.
- Demo orders are only created when there are no orders at all.
- Expiry dates are relative to today so the dashboard always has something to show.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from .derivation import compute_item_total, compute_order_total
from .extensions import db
from .models import Customer, Order, OrderItem, Product, Supplier


DEMO_PRODUCTS = [
    # name, generic, manufacturer, category, sku, batch, expires in days, qty, price, reorder, (license, drug code, schedule)
    ("Amoxicillin 500mg", "Amoxicillin", "PharmaCorp Ltd", "Antibiotics", "AMX-500-100", "BT2024001",
     240, 1200, Decimal("0.85"), 200, ("LIC-2024-001", "DRG-AMX-001", "Schedule H")),
    ("Paracetamol 650mg", "Acetaminophen", "MediGen Industries", "Analgesics", "PAR-650-50", "BT2024002",
     420, 75, Decimal("0.12"), 500, ("LIC-2024-002", "DRG-PAR-001", "Schedule G")),
    ("Insulin Glargine 100U/ml", "Insulin Glargine", "BioPharma Solutions", "Diabetes Care", "INS-GLR-10",
     "BT2024003", 60, 340, Decimal("45.50"), 100, ("LIC-2024-003", "DRG-INS-001", "Schedule X")),
]

DEMO_CUSTOMERS = [
    # name, type, contact, email, phone, address, license, credit limit, outstanding
    ("City General Hospital", "hospital", "Dr. Sarah Johnson", "procurement@citygeneral.com", "+1-555-0123",
     "123 Healthcare Ave, Medical District", "HOSP-2024-001", Decimal("100000"), Decimal("15750")),
    ("MediCare Pharmacy Chain", "pharmacy", "Mike Chen", "orders@medicare-pharma.com", "+1-555-0124",
     "456 Pharmacy Blvd, Commerce Center", "PHAR-2024-002", Decimal("50000"), Decimal("8950")),
    ("Regional Medical Clinic", "clinic", "Dr. Emily Rodriguez", "supplies@regionalmedic.com", "+1-555-0125",
     "789 Medical Plaza, Suburban Area", "CLIN-2024-003", Decimal("25000"), Decimal("0")),
]

DEMO_SUPPLIERS = [
    # name, contact, email, phone, address, license, rating, terms
    ("PharmaCorp Ltd", "John Smith", "john.smith@pharmacorp.com", "+1-555-0200",
     "456 Industrial Blvd, Manufacturing District", "SUP-2024-001", 5, "Net 30"),
    ("MediGen Industries", "Sarah Wilson", "sarah.wilson@medigen.com", "+1-555-0201",
     "789 Pharma Ave, Research Park", "SUP-2024-002", 4, "Net 45"),
    ("BioPharma Solutions", "Dr. Michael Chen", "michael.chen@biopharma.com", "+1-555-0202",
     "321 Biotech Circle, Innovation Hub", "SUP-2024-003", 5, "Net 30"),
]

DEMO_ORDERS = [
    # customer name, product sku, quantity, status, payment status, priority
    ("City General Hospital", "AMX-500-100", 500, "processing", "pending", "high"),
    ("MediCare Pharmacy Chain", "PAR-650-50", 1000, "shipped", "paid", "medium"),
]


def seed_demo_data(today: date | None = None) -> dict:
    """Create demo master data (and two demo orders). Returns how many rows were created per entity."""
    today = today or date.today()
    created = {"products": 0, "customers": 0, "suppliers": 0, "orders": 0}

    for name, generic, manufacturer, category, sku, batch, expires_in, qty, price, reorder, reg in DEMO_PRODUCTS:
        if Product.query.filter_by(sku=sku).first():
            continue
        license_number, drug_code, schedule = reg
        db.session.add(
            Product(
                name=name,
                generic_name=generic,
                manufacturer=manufacturer,
                category=category,
                sku=sku,
                batch_number=batch,
                expiry_date=today + timedelta(days=expires_in),
                quantity=qty,
                unit_price=price,
                reorder_level=reorder,
                status="active",
                license_number=license_number,
                drug_code=drug_code,
                schedule=schedule,
            )
        )
        created["products"] += 1

    for name, ctype, contact, email, phone, address, license_number, credit, outstanding in DEMO_CUSTOMERS:
        if Customer.query.filter_by(name=name).first():
            continue
        db.session.add(
            Customer(
                name=name,
                type=ctype,
                contact_person=contact,
                email=email,
                phone=phone,
                address=address,
                license_number=license_number,
                credit_limit=credit,
                outstanding_balance=outstanding,
                status="active",
            )
        )
        created["customers"] += 1

    for name, contact, email, phone, address, license_number, rating, terms in DEMO_SUPPLIERS:
        if Supplier.query.filter_by(name=name).first():
            continue
        db.session.add(
            Supplier(
                name=name,
                contact_person=contact,
                email=email,
                phone=phone,
                address=address,
                license_number=license_number,
                rating=rating,
                payment_terms=terms,
                status="active",
            )
        )
        created["suppliers"] += 1

    db.session.flush()

    if Order.query.count() == 0:
        for customer_name, sku, qty, status, payment_status, priority in DEMO_ORDERS:
            customer = Customer.query.filter_by(name=customer_name).first()
            product = Product.query.filter_by(sku=sku).first()
            if not customer or not product:
                continue

            item = OrderItem(
                position=0,
                product_id=product.id,
                product_name=product.name,
                quantity=qty,
                unit_price=product.unit_price,
                total_price=compute_item_total(qty, product.unit_price),
                batch_number=product.batch_number,
                expiry_date=product.expiry_date,
            )
            order = Order(
                customer_id=customer.id,
                customer_name=customer.name,
                order_date=today - timedelta(days=3),
                required_date=today + timedelta(days=4),
                status=status,
                payment_status=payment_status,
                priority=priority,
                items=[item],
                total_amount=compute_order_total([item]),
            )
            db.session.add(order)
            created["orders"] += 1

    db.session.commit()
    return created
