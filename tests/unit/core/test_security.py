"""Unit tests for session cookie signing and redirect sanitization."""

import pytest

from src.relying_party.core.security import (
    generate_session_key,
    get_session_cookie_settings,
    sanitize_return_url,
    sign_session_key,
    unsign_session_key,
)
from src.relying_party.runtime.config.config_data import ConfigData
from src.relying_party.runtime.context import with_context


class TestSessionKeySigning:
    """Test the signed session cookie value."""

    def test_round_trip(self):
        key = generate_session_key()
        assert unsign_session_key(sign_session_key(key)) == key

    def test_tampered_signature(self):
        cookie = sign_session_key("abc")
        assert unsign_session_key(cookie[:-1] + ("A" if cookie[-1] != "A" else "B")) is None

    def test_tampered_key(self):
        _, _, signature = sign_session_key("abc").rpartition(".")
        assert unsign_session_key(f"abd.{signature}") is None

    @pytest.mark.parametrize("cookie", [None, "", "no-signature", ".signature-only"])
    def test_unusable_cookie(self, cookie):
        assert unsign_session_key(cookie) is None

    def test_signature_depends_on_secret(self):
        cookie = sign_session_key("abc")
        override = ConfigData()
        override.app.session_signing_secret = "another-secret"

        with with_context(override):
            assert unsign_session_key(cookie) is None

    def test_production_without_secret_refuses_to_sign(self):
        override = ConfigData()
        override.app.environment = "production"
        override.app.session_signing_secret = None

        with with_context(override):
            with pytest.raises(RuntimeError, match="signing secret"):
                sign_session_key("abc")

    def test_session_keys_are_unique(self):
        keys = {generate_session_key() for _ in range(100)}
        assert len(keys) == 100


class TestSanitizeReturnUrl:
    @pytest.mark.parametrize(
        "return_to,expected",
        [
            (None, "/"),
            ("", "/"),
            ("/profile", "/profile"),
            ("  /profile ", "/profile"),
            ("//evil.example", "/"),
            ("/\\evil.example", "/"),
            ("/bad\npath", "/"),
            ("javascript:alert(1)", "/"),
            ("https://evil.example/", "/"),
        ],
    )
    def test_without_allowed_hosts(self, return_to, expected):
        assert sanitize_return_url(return_to) == expected

    def test_allowed_absolute_url(self):
        assert (
            sanitize_return_url("http://localhost:4000/page", allowed_hosts=["localhost"])
            == "http://localhost:4000/page"
        )

    def test_disallowed_absolute_url(self):
        assert sanitize_return_url("http://evil.example/", allowed_hosts=["localhost"]) == "/"


class TestCookieSettings:
    def test_non_production_cookie_is_not_secure(self):
        settings = get_session_cookie_settings()

        assert settings["httponly"] is True
        assert settings["secure"] is False
        assert settings["samesite"] == "lax"
        assert settings["path"] == "/"

    def test_production_cookie_is_secure(self):
        override = ConfigData()
        override.app.environment = "production"
        override.security.secure_cookies = True

        with with_context(override):
            assert get_session_cookie_settings()["secure"] is True
