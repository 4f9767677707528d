"""Session lifecycle orchestration: login redirect, provider return, logout."""

from urllib.parse import urlencode, urlparse

from loguru import logger

from src.relying_party.core.errors import (
    AuthError,
    MalformedIdentifierError,
    ProviderRejected,
    StoreUnavailable,
)
from src.relying_party.core.models.session import AuthState, Session, UserIdentity
from src.relying_party.core.models.transition import Transition
from src.relying_party.core.security import sanitize_return_url
from src.relying_party.core.services.identity import (
    deserialize_identity,
    serialize_identity,
)
from src.relying_party.core.services.openid_provider import IdentityProviderAdapter
from src.relying_party.core.services.session_service import SessionService
from src.relying_party.runtime.context import get_config

FAILURE_REDIRECT = "/?failed"


def success_redirect(user: UserIdentity) -> str:
    return f"/?{urlencode({'id': user.numeric_id})}"


class SessionLifecycleService:
    """Decides what happens to a visitor's session at each login step.

    Sessions are passed in and handed back through ``Transition`` values;
    persistence goes through the injected ``SessionService``.
    """

    def __init__(
        self,
        session_service: SessionService,
        identity_provider: IdentityProviderAdapter,
    ) -> None:
        self._sessions = session_service
        self._provider = identity_provider

    @staticmethod
    def serialize_identity(user: UserIdentity) -> str:
        return serialize_identity(user)

    @staticmethod
    def deserialize_identity(key: str) -> UserIdentity:
        return deserialize_identity(key)

    def state_of(self, session: Session | None) -> AuthState:
        if session is not None and session.is_authenticated:
            return AuthState.AUTHENTICATED
        return AuthState.ANONYMOUS

    def current_user(self, session: Session | None) -> UserIdentity | None:
        """Resolve the user held by a session, if any.

        A stored key that no longer parses is treated as anonymous.
        """
        if session is None or session.user_key is None:
            return None
        try:
            return self.deserialize_identity(session.user_key)
        except MalformedIdentifierError:
            logger.error("Session holds a malformed identity key")
            return None

    async def initiate_login(self) -> Transition:
        """Send the visitor to the provider. The session is not touched.

        Raises:
            ProviderUnavailable: If the provider cannot be discovered
        """
        redirect_url = await self._provider.begin_login()
        return Transition(state=AuthState.AWAITING_PROVIDER, redirect_to=redirect_url)

    async def handle_provider_return(
        self,
        session: Session,
        query: dict[str, str],
        current_url: str,
    ) -> Transition:
        """Accept or reject the provider's assertion and update the session.

        Raises:
            StoreUnavailable: If the session cannot be persisted
        """
        try:
            claimed_id = await self._provider.verify_return(query, current_url)
            user = UserIdentity.from_claimed_id(claimed_id)
        except ProviderRejected as e:
            logger.warning("Provider rejected login: {}", e)
            return await self._fail(session, e)
        except MalformedIdentifierError as e:
            logger.error("Provider returned a malformed claimed identifier")
            return await self._fail(session, e)

        if get_config().security.rotate_session_on_login:
            session = await self._sessions.rotate_session(session)

        session.user_key = self.serialize_identity(user)
        await self._sessions.save_session(session)

        logger.info("User {} logged in", user.numeric_id)
        return Transition(
            state=AuthState.AUTHENTICATED,
            redirect_to=success_redirect(user),
            session=session,
            user=user,
        )

    async def _fail(self, session: Session, error: AuthError) -> Transition:
        if session.user_key is not None:
            session.user_key = None
            await self._sessions.save_session(session)
        return Transition(
            state=AuthState.ANONYMOUS,
            redirect_to=FAILURE_REDIRECT,
            session=session,
            error=error,
        )

    async def logout(self, session_key: str | None, referer: str | None) -> Transition:
        """Destroy the session and return the visitor to where they came from.

        Always ends anonymous, even when the store cannot delete the session.
        """
        if session_key:
            try:
                await self._sessions.delete_session(session_key)
            except StoreUnavailable:
                logger.exception("Failed to delete session during logout")

        return Transition(
            state=AuthState.ANONYMOUS,
            redirect_to=sanitize_return_url(referer, allowed_hosts=_own_hosts()),
        )


def _own_hosts() -> list[str]:
    config = get_config()
    hosts = [config.app.host]
    realm_host = urlparse(config.openid.realm).hostname
    if realm_host:
        hosts.append(realm_host)
    return hosts
