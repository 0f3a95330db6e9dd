"""Invoices raised from orders."""

from .routes import invoices_bp  # noqa: F401
