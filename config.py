"""
Application configuration.
This module defines the configuration settings for the Flask application, including database connection, secret key,
business policy values (tax rate, default payment terms) and OAuth providers. It uses environment variables for
sensitive information and defaults for development. In production, make sure to set the appropriate environment
variables and secure the secret key.
"""

import os
from decimal import Decimal
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Base configuration shared by all environments."""

    # IMPORTANT: change this in production
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me-please")

    # Database: SQLite for development (simple file in project folder)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'pharmadist.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CSRF protection for forms
    WTF_CSRF_ENABLED = True

    # App UI name (used in templates)
    APP_NAME = "PharmaDist Back Office"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Invoice policy: tax charged on the order subtotal, and the fallback for "COD"/unparseable terms
    INVOICE_TAX_RATE = Decimal(os.environ.get("INVOICE_TAX_RATE", "0.10"))
    DEFAULT_PAYMENT_TERMS_DAYS = int(os.environ.get("DEFAULT_PAYMENT_TERMS_DAYS", "30"))
    PAYMENT_TERMS_CHOICES = ["Net 15", "Net 30", "Net 45", "Net 60", "COD"]

    # Inventory expiry windows (days until expiry)
    EXPIRY_WARNING_DAYS = int(os.environ.get("EXPIRY_WARNING_DAYS", "90"))
    EXPIRY_CRITICAL_DAYS = int(os.environ.get("EXPIRY_CRITICAL_DAYS", "30"))

    # OAuth sign-in. A provider is offered only when its client id is set.
    OAUTH_PROVIDERS = {
        "google": {
            "client_id": os.environ.get("GOOGLE_CLIENT_ID", ""),
            "client_secret": os.environ.get("GOOGLE_CLIENT_SECRET", ""),
            "authorize_url": "https://accounts.google.com/o/oauth2/v2/auth",
            "token_url": "https://oauth2.googleapis.com/token",
            "userinfo_url": "https://openidconnect.googleapis.com/v1/userinfo",
            "scope": "openid email profile",
        },
    }
    OAUTH_TIMEOUT_SECONDS = 10


class TestingConfig(Config):
    """In-memory database, no CSRF tokens, deterministic OAuth provider."""

    TESTING = True
    SECRET_KEY = "testing"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False

    OAUTH_PROVIDERS = {
        "google": {
            "client_id": "test-client",
            "client_secret": "test-secret",
            "authorize_url": "https://accounts.example.test/authorize",
            "token_url": "https://accounts.example.test/token",
            "userinfo_url": "https://accounts.example.test/userinfo",
            "scope": "openid email profile",
        },
    }
