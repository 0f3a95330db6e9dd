"""
pharmadist/security.py

Access control helpers.

Key rules:
- UI is never trusted; all permission checks are server-side.
- admin / manager / operator: may create and edit records.
- viewer: read-only (no mutating requests), except signing out.

viewer_readonly_guard() is the global safety net. It is wired via app.before_request in the app factory.
"""

from __future__ import annotations

from typing import Optional, Tuple

from flask import render_template, request
from flask_login import current_user

MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

# Mutating endpoints a viewer may still call
VIEWER_ALLOWED_ENDPOINTS = {"auth.logout"}


def _forbidden() -> Tuple[str, int]:
    """Render a consistent 403 page."""
    return render_template("errors/403.html"), 403


def can_edit() -> bool:
    """Return True if the current user may mutate data."""
    return bool(current_user.is_authenticated and not getattr(current_user, "is_viewer", True))


def viewer_readonly_guard() -> Optional[Tuple[str, int]]:
    """
    Global guard: viewers cannot mutate data.

    Anonymous requests pass through; login_required on the route handles them.
    """
    if request.method not in MUTATING_METHODS:
        return None

    if not current_user.is_authenticated:
        return None

    if can_edit():
        return None

    endpoint = (request.endpoint or "").strip()
    if endpoint in VIEWER_ALLOWED_ENDPOINTS:
        return None

    return _forbidden()
