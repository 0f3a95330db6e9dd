"""
Sales orders.

routes.py drives OrderWorkflow from a plain HTML form; nothing in this package talks to the database directly.
"""

from .routes import orders_bp  # noqa: F401
