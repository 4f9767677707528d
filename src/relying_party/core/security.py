"""Session key signing, redirect checks and cookie attributes."""

import base64
import hashlib
import hmac
import secrets
from typing import Any
from urllib.parse import urlsplit

from src.relying_party.runtime.context import get_config

SESSION_KEY_BYTES = 32
DEV_SIGNING_KEY = b"dev-secret"


def generate_session_key() -> str:
    """Return a new opaque, URL-safe session key with 256 bits of entropy."""
    return secrets.token_urlsafe(SESSION_KEY_BYTES)


def _signing_key() -> bytes:
    app_config = get_config().app
    if app_config.session_signing_secret:
        return app_config.session_signing_secret.encode()
    if app_config.environment == "production":
        raise RuntimeError("No session signing secret configured in production")
    return DEV_SIGNING_KEY


def _signature(session_key: str) -> str:
    key = _signing_key()
    digest = hmac.new(key, session_key.encode(), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def sign_session_key(session_key: str) -> str:
    """Return the cookie value for a session key: ``<key>.<signature>``."""
    return f"{session_key}.{_signature(session_key)}"


def unsign_session_key(cookie_value: str | None) -> str | None:
    """Recover the session key from a cookie value.

    Returns:
        The session key, or None if the cookie is missing or tampered with
    """
    if not cookie_value:
        return None

    session_key, sep, signature = cookie_value.rpartition(".")
    if not sep or not session_key:
        return None

    if not hmac.compare_digest(_signature(session_key), signature):
        return None

    return session_key


def sanitize_return_url(
    return_to: str | None, allowed_hosts: list[str] | None = None
) -> str:
    """Reduce a caller-supplied redirect target to a safe one.

    Local paths pass through. Absolute http(s) URLs pass only when their host
    is in ``allowed_hosts``. Anything else becomes ``/``.
    """
    target = (return_to or "").strip()
    if not target or any(ord(c) < 32 for c in target):
        return "/"

    try:
        parts = urlsplit(target)
    except ValueError:
        return "/"

    if not parts.scheme and not parts.netloc:
        return target if target.startswith("/") and not target.startswith("/\\") else "/"

    if parts.scheme in ("http", "https") and parts.hostname in (allowed_hosts or ()):
        return target

    return "/"


def get_session_cookie_settings() -> dict[str, Any]:
    """Cookie attributes for the session cookie.

    The provider return is a top-level GET navigation, which SameSite=Lax
    allows.
    """
    config = get_config()
    return {
        "httponly": True,
        "secure": config.security.secure_cookies
        and config.app.environment == "production",
        "samesite": config.security.cookie_samesite,
        "path": "/",
    }
