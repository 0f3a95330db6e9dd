"""Dashboard blueprint: headline metrics, low stock and expiring products."""

from .routes import dashboard_bp  # noqa: F401
