"""Unit tests for session and identity models."""

import time

import pytest

from src.relying_party.core.errors import MalformedIdentifierError, ProviderRejected
from src.relying_party.core.models import AuthState, Session, Transition, UserIdentity


class TestUserIdentity:
    """Test numeric ID extraction from claimed identifiers."""

    def test_steam_claimed_id(self):
        """The numeric ID is the trailing run of digits."""
        user = UserIdentity.from_claimed_id(
            "https://steamcommunity.com/openid/id/76561197975696140"
        )

        assert user.numeric_id == "76561197975696140"
        assert user.claimed_id == "https://steamcommunity.com/openid/id/76561197975696140"

    def test_claimed_id_with_digits_elsewhere(self):
        """Only the suffix counts, not digits earlier in the URL."""
        user = UserIdentity.from_claimed_id("http://provider2.example/v2/users/42")
        assert user.numeric_id == "42"

    def test_query_style_claimed_id(self):
        user = UserIdentity.from_claimed_id(
            "https://provider.example/accounts/id?id=1016730112881507946"
        )
        assert user.numeric_id == "1016730112881507946"

    @pytest.mark.parametrize(
        "claimed_id",
        [
            "http://provider.example/openid/id/",
            "http://provider.example/openid/id/abc",
            "http://provider.example/openid/id/123/",
            "http://provider.example/openid/id/123\n",
            "",
        ],
    )
    def test_malformed_claimed_id(self, claimed_id):
        """A claimed id without a numeric suffix is rejected."""
        with pytest.raises(MalformedIdentifierError) as exc_info:
            UserIdentity.from_claimed_id(claimed_id)

        assert exc_info.value.identifier == claimed_id


class TestSession:
    """Test session model behavior."""

    def test_create_session(self):
        """A new session is anonymous and expires after the max age."""
        session = Session.create(session_id="abc", session_max_age=100)
        now = int(time.time())

        assert session.id == "abc"
        assert session.user_key is None
        assert not session.is_authenticated
        assert now + 98 <= session.expires_at <= now + 100
        assert not session.is_expired()

    def test_is_authenticated(self, anonymous_session, claimed_id):
        anonymous_session.user_key = claimed_id
        assert anonymous_session.is_authenticated

    def test_is_expired(self, anonymous_session):
        anonymous_session.expires_at = int(time.time()) - 1
        assert anonymous_session.is_expired()

    def test_rotate_session_id(self, anonymous_session, claimed_id):
        """Rotation changes the key but keeps the contents."""
        anonymous_session.user_key = claimed_id
        created_at = anonymous_session.created_at

        anonymous_session.rotate_session_id("new-key")

        assert anonymous_session.id == "new-key"
        assert anonymous_session.user_key == claimed_id
        assert anonymous_session.created_at == created_at

    def test_ttl_is_at_least_one_second(self, anonymous_session):
        anonymous_session.expires_at = int(time.time()) - 100
        assert anonymous_session.ttl() == 1


class TestTransition:
    def test_ok_without_error(self):
        transition = Transition(state=AuthState.AWAITING_PROVIDER, redirect_to="https://p")
        assert transition.ok

    def test_not_ok_with_error(self):
        transition = Transition(
            state=AuthState.ANONYMOUS,
            redirect_to="/?failed",
            error=ProviderRejected("cancelled"),
        )
        assert not transition.ok
