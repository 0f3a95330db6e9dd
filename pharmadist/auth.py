"""
Authentication collaborator.

Provides:
- SessionContext: the identity of the acting user, passed explicitly to the gateway/workflows.
- sign_in_with_password(email, password)
- sign_in_with_oauth(provider, redirect_uri) -> authorization URL
- complete_oauth_sign_in(provider, code, state, redirect_uri)
- sign_out()

Rules:
- Only active users may sign in.
- Failure messages are generic ("Invalid email or password."). The reason is logged, never shown.
- OAuth users are created on first sign-in with the "operator" role and no password.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode

import httpx
from flask import current_app, session
from flask_login import login_user, logout_user

from .exceptions import AuthError
from .extensions import db
from .models import User

logger = logging.getLogger(__name__)

OAUTH_STATE_KEY = "oauth_state"


@dataclass(frozen=True)
class SessionContext:
    """Who is acting. Anonymous contexts have user_id None."""

    user_id: Optional[int]
    email: Optional[str]
    display_name: Optional[str] = None
    role: str = "viewer"

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> "SessionContext":
        return cls(user_id=None, email=None, display_name=None, role="viewer")

    @classmethod
    def from_user(cls, user) -> "SessionContext":
        if user is None or not getattr(user, "is_authenticated", False):
            return cls.anonymous()
        return cls(
            user_id=user.id,
            email=user.email,
            display_name=user.display_name,
            role=user.role,
        )


def _finish_sign_in(user: User) -> SessionContext:
    user.last_login_at = datetime.utcnow()
    db.session.commit()
    login_user(user)
    logger.info("User %s signed in", user.email)
    return SessionContext.from_user(user)


# ---------------------------------------------------------------------
# Password
# ---------------------------------------------------------------------
def sign_in_with_password(email: str, password: str) -> SessionContext:
    email = (email or "").strip().lower()
    if not email or not password:
        raise AuthError("Please enter your email and password.")

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        logger.warning("Failed password sign-in for %s", email)
        raise AuthError("Invalid email or password.")

    if not user.is_active:
        logger.warning("Inactive user %s attempted to sign in", email)
        raise AuthError("This account is inactive.")

    return _finish_sign_in(user)


# ---------------------------------------------------------------------
# OAuth (authorization code flow)
# ---------------------------------------------------------------------
def enabled_oauth_providers() -> list[str]:
    providers = current_app.config.get("OAUTH_PROVIDERS", {})
    return [name for name, conf in providers.items() if conf.get("client_id")]


def _provider_config(provider: str) -> dict:
    conf = current_app.config.get("OAUTH_PROVIDERS", {}).get(provider)
    if not conf or not conf.get("client_id"):
        raise AuthError(f"Sign-in with {provider} is not available.")
    return conf


def sign_in_with_oauth(provider: str, redirect_uri: str) -> str:
    """Return the provider authorization URL; the anti-CSRF state is kept in the Flask session."""
    conf = _provider_config(provider)

    state = secrets.token_urlsafe(24)
    session[OAUTH_STATE_KEY] = state

    query = urlencode(
        {
            "client_id": conf["client_id"],
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": conf.get("scope", "openid email profile"),
            "state": state,
        }
    )
    return f"{conf['authorize_url']}?{query}"


def complete_oauth_sign_in(provider: str, code: str, state: str, redirect_uri: str) -> SessionContext:
    conf = _provider_config(provider)

    expected_state = session.pop(OAUTH_STATE_KEY, None)
    if not expected_state or not state or not secrets.compare_digest(expected_state, state):
        logger.warning("OAuth state mismatch for provider %s", provider)
        raise AuthError("Sign-in request expired. Please try again.")
    if not code:
        raise AuthError("Sign-in was cancelled.")

    timeout = current_app.config.get("OAUTH_TIMEOUT_SECONDS", 10)
    try:
        token_response = httpx.post(
            conf["token_url"],
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
                "client_id": conf["client_id"],
                "client_secret": conf["client_secret"],
            },
            headers={"Accept": "application/json"},
            timeout=timeout,
        )
        token_response.raise_for_status()
        access_token = token_response.json().get("access_token")
        if not access_token:
            raise AuthError("Sign-in failed. Please try again.")

        userinfo_response = httpx.get(
            conf["userinfo_url"],
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
        )
        userinfo_response.raise_for_status()
        userinfo = userinfo_response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("OAuth exchange with %s failed: %s", provider, exc)
        raise AuthError("Sign-in failed. Please try again.") from exc

    email = (userinfo.get("email") or "").strip().lower()
    if not email:
        raise AuthError("The provider did not return an email address.")

    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(
            email=email,
            display_name=userinfo.get("name"),
            oauth_provider=provider,
            role="operator",
            is_active=True,
        )
        db.session.add(user)
        db.session.flush()
        logger.info("Created user %s from %s sign-in", email, provider)
    elif not user.is_active:
        raise AuthError("This account is inactive.")

    return _finish_sign_in(user)


def sign_out() -> None:
    logout_user()
    session.pop(OAUTH_STATE_KEY, None)
