"""Identity provider adapters.

The OpenID 2.0 handshake, discovery and signature checks are delegated to
the ``python3-openid`` consumer; this module only feeds it the configured
provider, realm and return URL and turns its responses into claimed ids or
``ProviderRejected`` errors.
"""

from abc import ABC, abstractmethod

from loguru import logger
from openid.consumer import consumer
from openid.consumer.discover import DiscoveryFailure
from openid.store.memstore import MemoryStore
from starlette.concurrency import run_in_threadpool

from src.relying_party.core.errors import ProviderRejected, ProviderUnavailable
from src.relying_party.runtime.config.config_data import OpenIDProviderConfig


class IdentityProviderAdapter(ABC):
    """Performs the provider handshake on behalf of the orchestrator."""

    @abstractmethod
    async def begin_login(self) -> str:
        """Return the URL to send the visitor to for logging in.

        Raises:
            ProviderUnavailable: If the provider cannot be discovered
        """

    @abstractmethod
    async def verify_return(self, query: dict[str, str], current_url: str) -> str:
        """Verify the assertion the provider sent back.

        Args:
            query: Query parameters of the return request
            current_url: Full URL of the return request

        Returns:
            The verified claimed identifier

        Raises:
            ProviderRejected: If the provider did not authenticate the visitor
        """


class OpenIDConsumerAdapter(IdentityProviderAdapter):
    """Adapter backed by the python3-openid ``Consumer``."""

    def __init__(self, provider_config: OpenIDProviderConfig) -> None:
        self._config = provider_config
        # Stateless mode verifies each assertion directly with the provider.
        self._store = None if provider_config.stateless else MemoryStore()

    @property
    def config(self) -> OpenIDProviderConfig:
        return self._config

    def _consumer(self) -> consumer.Consumer:
        # The consumer's scratch session only lives for one request; the
        # claimed id is re-discovered on return instead of being kept.
        return consumer.Consumer({}, self._store)

    def _begin(self) -> str:
        try:
            auth_request = self._consumer().begin(self._config.provider_url)
        except DiscoveryFailure as e:
            raise ProviderUnavailable(
                f"OpenID discovery failed for {self._config.provider_url}: {e}"
            ) from e

        return auth_request.redirectURL(
            self._config.realm, return_to=self._config.return_url
        )

    def _complete(self, query: dict[str, str], current_url: str) -> str:
        try:
            response = self._consumer().complete(query, current_url)
        except ValueError as e:
            # InvalidOpenIDNamespace and friends: the query is not an OpenID message
            raise ProviderRejected(f"Unparseable provider response: {e}") from e

        if response.status == consumer.SUCCESS:
            return response.identity_url

        if response.status == consumer.CANCEL:
            raise ProviderRejected("Login cancelled at provider")

        if response.status == consumer.SETUP_NEEDED:
            raise ProviderRejected("Provider requires interactive setup")

        message = getattr(response, "message", None) or "verification failed"
        raise ProviderRejected(f"Provider assertion rejected: {message}")

    async def begin_login(self) -> str:
        url = await run_in_threadpool(self._begin)
        logger.debug("Redirecting to OpenID provider {}", self._config.name)
        return url

    async def verify_return(self, query: dict[str, str], current_url: str) -> str:
        return await run_in_threadpool(self._complete, query, current_url)
