"""
Inventory (products) routes.

Provides:
- /inventory/               list with search (name/SKU/manufacturer) and status filter
- /inventory/new            create
- /inventory/<id>/edit      edit

Validation happens before any gateway call; a failed save re-renders the form with the entered values.
"""

from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for
from flask_login import login_required

from ...exceptions import GatewayError, NotFoundError, ValidationError
from ...gateway import request_gateway
from ...models import PRODUCT_CATEGORIES, PRODUCT_STATUSES
from ...parsing import optional_text, parse_date, parse_decimal, parse_int, parse_text
from ...utils import expiry_status, filter_products, inventory_summary, stock_status
from ...validation import ensure_valid, validate_product

inventory_bp = Blueprint("inventory", __name__, url_prefix="/inventory")


def _product_fields_from_form() -> dict:
    form = request.form
    return {
        "name": parse_text(form.get("name")),
        "generic_name": optional_text(form.get("generic_name")),
        "manufacturer": optional_text(form.get("manufacturer")),
        "category": optional_text(form.get("category")),
        "sku": parse_text(form.get("sku")),
        "batch_number": optional_text(form.get("batch_number")),
        "expiry_date": parse_date(form.get("expiry_date")),
        "quantity": parse_int(form.get("quantity")),
        "unit_price": parse_decimal(form.get("unit_price")),
        "reorder_level": parse_int(form.get("reorder_level")),
        "status": parse_text(form.get("status")) or "active",
        "license_number": optional_text(form.get("license_number")),
        "drug_code": optional_text(form.get("drug_code")),
        "schedule": optional_text(form.get("schedule")),
    }


def _render_form(product, product_id=None):
    return render_template(
        "inventory/form.html",
        product=product,
        product_id=product_id,
        categories=PRODUCT_CATEGORIES,
        statuses=PRODUCT_STATUSES,
    )


@inventory_bp.route("/")
@login_required
def list_products():
    search = (request.args.get("q") or "").strip()
    status = (request.args.get("status") or "").strip()

    try:
        products = request_gateway().get_products()
    except GatewayError as exc:
        flash(str(exc), "danger")
        products = []

    warning_days = current_app.config["EXPIRY_WARNING_DAYS"]
    critical_days = current_app.config["EXPIRY_CRITICAL_DAYS"]

    return render_template(
        "inventory/list.html",
        products=filter_products(products, search, status),
        summary=inventory_summary(products),
        search=search,
        status=status,
        statuses=PRODUCT_STATUSES,
        stock_status=stock_status,
        expiry_status=lambda p: expiry_status(p, warning_days=warning_days, critical_days=critical_days),
    )


@inventory_bp.route("/new", methods=["GET", "POST"])
@login_required
def create_product():
    if request.method == "POST":
        fields = _product_fields_from_form()
        try:
            ensure_valid(validate_product(fields))
            product = request_gateway().create_product(fields)
        except (ValidationError, GatewayError) as exc:
            flash(str(exc), "danger")
            return _render_form(fields)

        flash(f"Product {product.name} created.", "success")
        return redirect(url_for("inventory.list_products"))

    return _render_form({"status": "active", "quantity": 0, "reorder_level": 0})


@inventory_bp.route("/<int:product_id>/edit", methods=["GET", "POST"])
@login_required
def edit_product(product_id: int):
    gateway = request_gateway()
    try:
        product = gateway.get_product(product_id)
    except NotFoundError:
        abort(404)

    if request.method == "POST":
        fields = _product_fields_from_form()
        try:
            ensure_valid(validate_product(fields))
            gateway.update_product(product_id, fields)
        except (ValidationError, GatewayError) as exc:
            flash(str(exc), "danger")
            return _render_form(fields, product_id)

        flash("Product updated.", "success")
        return redirect(url_for("inventory.list_products"))

    return _render_form(product, product_id)
