"""
Invoice routes.

Provides:
- /invoices/                list with search (reference / customer) and status filter
- /invoices/new             create from an order (?order_id= preselects it)
- /invoices/<id>/edit       view an invoice and change status / paid amount

Subtotal, tax, total and due date are never taken from the form: they are derived from the selected order,
the invoice date and the payment terms on every POST.
"""

from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from ...auth import SessionContext
from ...exceptions import GatewayError, NotFoundError
from ...gateway import request_gateway
from ...models import INVOICE_STATUSES
from ...utils import filter_invoices, invoice_summary
from ...workflow import InvoiceWorkflow

invoices_bp = Blueprint("invoices", __name__, url_prefix="/invoices")


def _workflow_options() -> dict:
    return {
        "tax_rate": current_app.config["INVOICE_TAX_RATE"],
        "default_terms_days": current_app.config["DEFAULT_PAYMENT_TERMS_DAYS"],
    }


def _render_form(wf: InvoiceWorkflow):
    return render_template(
        "invoices/form.html",
        wf=wf,
        statuses=INVOICE_STATUSES,
        payment_terms_choices=current_app.config["PAYMENT_TERMS_CHOICES"],
    )


@invoices_bp.route("/")
@login_required
def list_invoices():
    search = (request.args.get("q") or "").strip()
    status = (request.args.get("status") or "").strip()

    try:
        invoices = request_gateway().get_invoices()
    except GatewayError as exc:
        flash(str(exc), "danger")
        invoices = []

    return render_template(
        "invoices/list.html",
        invoices=filter_invoices(invoices, search, status),
        summary=invoice_summary(invoices),
        search=search,
        status=status,
        statuses=INVOICE_STATUSES,
    )


@invoices_bp.route("/new", methods=["GET", "POST"])
@login_required
def create_invoice():
    wf = InvoiceWorkflow(request_gateway(), SessionContext.from_user(current_user), **_workflow_options())
    wf.load_reference_data()
    if wf.error_message:
        flash(wf.error_message, "danger")

    if request.method == "GET":
        if request.args.get("order_id"):
            wf.select_order(request.args.get("order_id"))
        return _render_form(wf)

    form = request.form
    wf.select_order(form.get("order_id"))
    wf.set_invoice_date(form.get("invoice_date"))
    wf.set_payment_terms(form.get("payment_terms"))
    wf.set_paid_amount(form.get("paid_amount"))
    wf.set_status(form.get("status") or "draft")
    wf.set_notes(form.get("notes"))

    action = (form.get("action") or "save").strip()
    if action in {"select_order", "recalculate"}:
        return _render_form(wf)

    invoice = wf.submit()
    if invoice is None:
        flash(wf.error_message, "danger")
        return _render_form(wf)

    flash(f"Invoice {invoice.reference} created.", "success")
    return redirect(url_for("invoices.list_invoices"))


@invoices_bp.route("/<int:invoice_id>/edit", methods=["GET", "POST"])
@login_required
def edit_invoice(invoice_id: int):
    gateway = request_gateway()
    try:
        invoice = gateway.get_invoice(invoice_id)
    except NotFoundError:
        abort(404)

    wf = InvoiceWorkflow.from_invoice(
        gateway, SessionContext.from_user(current_user), invoice, **_workflow_options()
    )

    if request.method == "POST":
        wf.set_status(request.form.get("status"))
        wf.set_paid_amount(request.form.get("paid_amount"))
        if wf.submit() is None:
            flash(wf.error_message, "danger")
            return render_template("invoices/edit.html", wf=wf, invoice=invoice, statuses=INVOICE_STATUSES)

        flash("Invoice updated.", "success")
        return redirect(url_for("invoices.list_invoices"))

    return render_template("invoices/edit.html", wf=wf, invoice=invoice, statuses=INVOICE_STATUSES)
