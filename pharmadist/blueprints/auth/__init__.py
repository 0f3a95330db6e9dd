"""Sign-in (password and OAuth), sign-out and first-admin bootstrap."""

from .routes import auth_bp  # noqa: F401
