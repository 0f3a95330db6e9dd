"""
Customer routes: list (search name/contact/email, type filter), create, edit.
"""

from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for
from flask_login import login_required

from ...exceptions import GatewayError, NotFoundError, ValidationError
from ...gateway import request_gateway
from ...models import CUSTOMER_STATUSES, CUSTOMER_TYPES
from ...parsing import parse_decimal, parse_text
from ...utils import customer_summary, filter_customers
from ...validation import ensure_valid, validate_customer

customers_bp = Blueprint("customers", __name__, url_prefix="/customers")


def _customer_fields_from_form() -> dict:
    form = request.form
    return {
        "name": parse_text(form.get("name")),
        "type": parse_text(form.get("type")) or "hospital",
        "contact_person": parse_text(form.get("contact_person")),
        "email": parse_text(form.get("email")),
        "phone": parse_text(form.get("phone")),
        "address": parse_text(form.get("address")),
        "license_number": parse_text(form.get("license_number")),
        "credit_limit": parse_decimal(form.get("credit_limit")),
        "outstanding_balance": parse_decimal(form.get("outstanding_balance")),
        "status": parse_text(form.get("status")) or "active",
    }


def _render_form(customer, customer_id=None):
    return render_template(
        "customers/form.html",
        customer=customer,
        customer_id=customer_id,
        types=CUSTOMER_TYPES,
        statuses=CUSTOMER_STATUSES,
    )


@customers_bp.route("/")
@login_required
def list_customers():
    search = (request.args.get("q") or "").strip()
    customer_type = (request.args.get("type") or "").strip()

    try:
        customers = request_gateway().get_customers()
    except GatewayError as exc:
        flash(str(exc), "danger")
        customers = []

    return render_template(
        "customers/list.html",
        customers=filter_customers(customers, search, customer_type),
        summary=customer_summary(customers),
        search=search,
        customer_type=customer_type,
        types=CUSTOMER_TYPES,
    )


@customers_bp.route("/new", methods=["GET", "POST"])
@login_required
def create_customer():
    if request.method == "POST":
        fields = _customer_fields_from_form()
        try:
            ensure_valid(validate_customer(fields))
            customer = request_gateway().create_customer(fields)
        except (ValidationError, GatewayError) as exc:
            flash(str(exc), "danger")
            return _render_form(fields)

        flash(f"Customer {customer.name} created.", "success")
        return redirect(url_for("customers.list_customers"))

    return _render_form({"type": "hospital", "status": "active"})


@customers_bp.route("/<int:customer_id>/edit", methods=["GET", "POST"])
@login_required
def edit_customer(customer_id: int):
    gateway = request_gateway()
    try:
        customer = gateway.get_customer(customer_id)
    except NotFoundError:
        abort(404)

    if request.method == "POST":
        fields = _customer_fields_from_form()
        try:
            ensure_valid(validate_customer(fields))
            gateway.update_customer(customer_id, fields)
        except (ValidationError, GatewayError) as exc:
            flash(str(exc), "danger")
            return _render_form(fields, customer_id)

        flash("Customer updated.", "success")
        return redirect(url_for("customers.list_customers"))

    return _render_form(customer, customer_id)
