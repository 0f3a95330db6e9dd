"""Product catalogue with stock and expiry status."""

from .routes import inventory_bp  # noqa: F401
