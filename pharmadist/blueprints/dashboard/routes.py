"""
Dashboard: headline metrics plus the low stock and expiring product lists.
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, render_template
from flask_login import login_required

from ...exceptions import GatewayError
from ...gateway import request_gateway
from ...utils import expiry_status, stock_status

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


@dashboard_bp.route("/")
@login_required
def index():
    gateway = request_gateway()
    metrics = gateway.get_dashboard_metrics()

    try:
        low_stock = gateway.get_low_stock_products()
        expiring = gateway.get_expiring_products(current_app.config["EXPIRY_WARNING_DAYS"])
    except GatewayError as exc:
        logger.error("Dashboard lists unavailable: %s", exc)
        low_stock, expiring = [], []

    return render_template(
        "dashboard/index.html",
        metrics=metrics,
        low_stock=low_stock,
        expiring=expiring,
        stock_status=stock_status,
        expiry_status=lambda p: expiry_status(
            p,
            warning_days=current_app.config["EXPIRY_WARNING_DAYS"],
            critical_days=current_app.config["EXPIRY_CRITICAL_DAYS"],
        ),
    )
