"""
Supplier routes: list (search name/contact/email, status filter), create, edit.
"""

from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for
from flask_login import login_required

from ...exceptions import GatewayError, NotFoundError, ValidationError
from ...gateway import request_gateway
from ...models import SUPPLIER_STATUSES
from ...parsing import parse_int, parse_text
from ...utils import filter_suppliers, supplier_summary
from ...validation import ensure_valid, validate_supplier

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/suppliers")


def _supplier_fields_from_form() -> dict:
    form = request.form
    return {
        "name": parse_text(form.get("name")),
        "contact_person": parse_text(form.get("contact_person")),
        "email": parse_text(form.get("email")),
        "phone": parse_text(form.get("phone")),
        "address": parse_text(form.get("address")),
        "license_number": parse_text(form.get("license_number")),
        "rating": parse_int(form.get("rating")),
        "payment_terms": parse_text(form.get("payment_terms")),
        "status": parse_text(form.get("status")) or "active",
    }


def _render_form(supplier, supplier_id=None):
    return render_template(
        "suppliers/form.html",
        supplier=supplier,
        supplier_id=supplier_id,
        statuses=SUPPLIER_STATUSES,
        payment_terms_choices=current_app.config["PAYMENT_TERMS_CHOICES"],
    )


@suppliers_bp.route("/")
@login_required
def list_suppliers():
    search = (request.args.get("q") or "").strip()
    status = (request.args.get("status") or "").strip()

    try:
        suppliers = request_gateway().get_suppliers()
    except GatewayError as exc:
        flash(str(exc), "danger")
        suppliers = []

    return render_template(
        "suppliers/list.html",
        suppliers=filter_suppliers(suppliers, search, status),
        summary=supplier_summary(suppliers),
        search=search,
        status=status,
        statuses=SUPPLIER_STATUSES,
    )


@suppliers_bp.route("/new", methods=["GET", "POST"])
@login_required
def create_supplier():
    if request.method == "POST":
        fields = _supplier_fields_from_form()
        try:
            ensure_valid(validate_supplier(fields))
            supplier = request_gateway().create_supplier(fields)
        except (ValidationError, GatewayError) as exc:
            flash(str(exc), "danger")
            return _render_form(fields)

        flash(f"Supplier {supplier.name} created.", "success")
        return redirect(url_for("suppliers.list_suppliers"))

    return _render_form({"status": "active", "rating": 0, "payment_terms": "Net 30"})


@suppliers_bp.route("/<int:supplier_id>/edit", methods=["GET", "POST"])
@login_required
def edit_supplier(supplier_id: int):
    gateway = request_gateway()
    try:
        supplier = gateway.get_supplier(supplier_id)
    except NotFoundError:
        abort(404)

    if request.method == "POST":
        fields = _supplier_fields_from_form()
        try:
            ensure_valid(validate_supplier(fields))
            gateway.update_supplier(supplier_id, fields)
        except (ValidationError, GatewayError) as exc:
            flash(str(exc), "danger")
            return _render_form(fields, supplier_id)

        flash("Supplier updated.", "success")
        return redirect(url_for("suppliers.list_suppliers"))

    return _render_form(supplier, supplier_id)
