"""
Order routes.

Provides:
- /orders/                  list with search (customer / reference) and status filter
- /orders/new               create with item rows
- /orders/<id>/edit         view an order and change its status

The create form is a plain HTML form with parallel item_* lists. Every POST rebuilds an OrderWorkflow from the
posted values, so totals are always recomputed server-side. The "action" field decides what happens next:
- add_item / remove_item:<index> / recalculate: re-render the form
- save (default): validate and persist

IMPORTANT:
- A product change on a row snapshots the product's name, price, batch and expiry. Rows whose product did not
  change keep the posted price/batch/expiry (item_previous_product_id carries the previous selection).
"""

from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from ...auth import SessionContext
from ...exceptions import GatewayError, NotFoundError
from ...gateway import request_gateway
from ...models import ORDER_PRIORITIES, ORDER_STATUSES, PAYMENT_STATUSES
from ...parsing import parse_optional_int
from ...utils import filter_orders, order_summary
from ...workflow import OrderWorkflow

orders_bp = Blueprint("orders", __name__, url_prefix="/orders")


def _at(values: list, index: int) -> str:
    return values[index] if index < len(values) else ""


def _apply_order_form(wf: OrderWorkflow) -> None:
    """Replay the posted form into the workflow."""
    form = request.form

    wf.select_customer(form.get("customer_id"))
    wf.set_order_date(form.get("order_date"))
    wf.set_required_date(form.get("required_date"))
    wf.set_status(form.get("status") or "pending")
    wf.set_payment_status(form.get("payment_status") or "pending")
    wf.set_priority(form.get("priority") or "medium")

    product_ids = form.getlist("item_product_id")
    previous_ids = form.getlist("item_previous_product_id")
    quantities = form.getlist("item_quantity")
    unit_prices = form.getlist("item_unit_price")
    batch_numbers = form.getlist("item_batch_number")
    expiry_dates = form.getlist("item_expiry_date")

    for index, product_id in enumerate(product_ids):
        wf.add_item()
        if product_id:
            wf.select_product(index, product_id)

        if wf.items[index].product_id is not None and product_id == _at(previous_ids, index):
            if _at(unit_prices, index).strip():
                wf.set_item_unit_price(index, _at(unit_prices, index))
            wf.set_item_batch_number(index, _at(batch_numbers, index))
            wf.set_item_expiry_date(index, _at(expiry_dates, index))

        wf.set_item_quantity(index, _at(quantities, index))


def _render_form(wf: OrderWorkflow):
    return render_template(
        "orders/form.html",
        wf=wf,
        statuses=ORDER_STATUSES,
        payment_statuses=PAYMENT_STATUSES,
        priorities=ORDER_PRIORITIES,
    )


@orders_bp.route("/")
@login_required
def list_orders():
    search = (request.args.get("q") or "").strip()
    status = (request.args.get("status") or "").strip()

    try:
        orders = request_gateway().get_orders()
    except GatewayError as exc:
        flash(str(exc), "danger")
        orders = []

    return render_template(
        "orders/list.html",
        orders=filter_orders(orders, search, status),
        summary=order_summary(orders),
        search=search,
        status=status,
        statuses=ORDER_STATUSES,
    )


@orders_bp.route("/new", methods=["GET", "POST"])
@login_required
def create_order():
    wf = OrderWorkflow(request_gateway(), SessionContext.from_user(current_user))
    wf.load_reference_data()
    if wf.error_message:
        flash(wf.error_message, "danger")

    if request.method == "GET":
        wf.add_item()
        return _render_form(wf)

    _apply_order_form(wf)

    action = (request.form.get("action") or "save").strip()
    if action == "add_item":
        wf.add_item()
        return _render_form(wf)
    if action.startswith("remove_item:"):
        index = parse_optional_int(action.split(":", 1)[1])
        if index is not None:
            wf.remove_item(index)
        return _render_form(wf)
    if action == "recalculate":
        return _render_form(wf)

    order = wf.submit()
    if order is None:
        flash(wf.error_message, "danger")
        return _render_form(wf)

    flash(f"Order {order.reference} created.", "success")
    return redirect(url_for("orders.list_orders"))


@orders_bp.route("/<int:order_id>/edit", methods=["GET", "POST"])
@login_required
def edit_order(order_id: int):
    gateway = request_gateway()
    try:
        order = gateway.get_order(order_id)
    except NotFoundError:
        abort(404)

    wf = OrderWorkflow.from_order(gateway, SessionContext.from_user(current_user), order)

    if request.method == "POST":
        wf.set_status(request.form.get("status"))
        if wf.submit() is None:
            flash(wf.error_message, "danger")
            return render_template("orders/edit.html", wf=wf, order=order, statuses=ORDER_STATUSES)

        flash("Order status updated.", "success")
        return redirect(url_for("orders.list_orders"))

    return render_template("orders/edit.html", wf=wf, order=order, statuses=ORDER_STATUSES)
