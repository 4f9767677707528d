"""Core services exports."""

from src.relying_party.core.storage.session_storage import (
    InMemorySessionStorage,
    RedisSessionStorage,
)

from .identity import deserialize_identity, serialize_identity
from .lifecycle import SessionLifecycleService
from .openid_provider import IdentityProviderAdapter, OpenIDConsumerAdapter
from .session_service import SessionService

__all__ = [
    # Lifecycle
    "SessionLifecycleService",
    "serialize_identity",
    "deserialize_identity",
    # Identity provider
    "IdentityProviderAdapter",
    "OpenIDConsumerAdapter",
    # Sessions
    "SessionService",
    # Session Storage for testing
    "InMemorySessionStorage",
    "RedisSessionStorage",
]
