"""
Authentication Routes

Provides:
- /auth/login                       (email + password)
- /auth/oauth/<provider>            (redirect to the provider)
- /auth/oauth/<provider>/callback   (code exchange, sign-in)
- /auth/logout
- /auth/seed-admin                  (first system bootstrap)

Rules:
- Only active users may log in.
- next= redirects are only followed for local URLs.
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from ...auth import complete_oauth_sign_in, enabled_oauth_providers, sign_in_with_oauth, sign_in_with_password, sign_out
from ...exceptions import AuthError
from ...extensions import db
from ...models import User

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _safe_next_url(raw_next: str | None, fallback_endpoint: str) -> str:
    """
    Return a safe local next URL.

    Rules:
    - Only allow relative URLs (no scheme/netloc).
    - Fall back to an internal endpoint if invalid/empty.
    """
    if not raw_next:
        return url_for(fallback_endpoint)

    parsed = urlparse(raw_next)
    if parsed.scheme or parsed.netloc or not raw_next.startswith("/"):
        return url_for(fallback_endpoint)

    return raw_next


def _render_login():
    return render_template("auth/login.html", oauth_providers=enabled_oauth_providers())


# ============================================================
# LOGIN
# ============================================================

@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    if current_user.is_authenticated:
        return redirect(url_for("dashboard.index"))

    if request.method == "POST":
        try:
            sign_in_with_password(request.form.get("email", ""), request.form.get("password", ""))
        except AuthError as exc:
            flash(str(exc), "danger")
            return _render_login()

        flash("Welcome back!", "success")
        return redirect(_safe_next_url(request.args.get("next"), "dashboard.index"))

    return _render_login()


@auth_bp.route("/oauth/<provider>")
def oauth_start(provider: str):
    redirect_uri = url_for("auth.oauth_callback", provider=provider, _external=True)
    try:
        return redirect(sign_in_with_oauth(provider, redirect_uri))
    except AuthError as exc:
        flash(str(exc), "danger")
        return redirect(url_for("auth.login"))


@auth_bp.route("/oauth/<provider>/callback")
def oauth_callback(provider: str):
    if request.args.get("error"):
        logger.info("OAuth sign-in with %s returned error %s", provider, request.args.get("error"))
        flash("Sign-in was cancelled.", "warning")
        return redirect(url_for("auth.login"))

    redirect_uri = url_for("auth.oauth_callback", provider=provider, _external=True)
    try:
        complete_oauth_sign_in(
            provider,
            code=request.args.get("code", ""),
            state=request.args.get("state", ""),
            redirect_uri=redirect_uri,
        )
    except AuthError as exc:
        flash(str(exc), "danger")
        return redirect(url_for("auth.login"))

    flash("Welcome!", "success")
    return redirect(url_for("dashboard.index"))


# ============================================================
# LOGOUT
# ============================================================

@auth_bp.route("/logout", methods=["GET", "POST"])
@login_required
def logout():
    sign_out()
    flash("You have been signed out.", "info")
    return redirect(url_for("auth.login"))


# ============================================================
# SEED FIRST ADMIN (BOOTSTRAP)
# ============================================================

@auth_bp.route("/seed-admin", methods=["GET", "POST"])
def seed_admin():
    """
    Bootstrap the FIRST admin of the system.

    If ANY user already exists the page is disabled.
    """
    if User.query.count() > 0:
        flash("A user already exists in the system.", "warning")
        return redirect(url_for("auth.login"))

    if request.method == "POST":
        email = request.form.get("email", "").strip().lower()
        password = request.form.get("password", "")
        display_name = request.form.get("display_name", "").strip() or "Administrator"

        if not email or not password:
            flash("Please enter an email and a password.", "danger")
            return render_template("auth/seed_admin.html")

        user = User(email=email, display_name=display_name, role="admin", is_active=True)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        logger.info("Bootstrap admin %s created", email)

        flash("Admin created. Please sign in.", "success")
        return redirect(url_for("auth.login"))

    return render_template("auth/seed_admin.html")
