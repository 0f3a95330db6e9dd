"""Customer master data (hospitals, pharmacies, clinics, wholesalers)."""

from .routes import customers_bp  # noqa: F401
