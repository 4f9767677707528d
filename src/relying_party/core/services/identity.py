"""Mapping between user identities and the keys stored in sessions."""

from src.relying_party.core.models.session import UserIdentity


def serialize_identity(user: UserIdentity) -> str:
    """Return the durable lookup key for a user: its claimed identifier."""
    return user.claimed_id


def deserialize_identity(key: str) -> UserIdentity:
    """Rebuild a user from a key produced by ``serialize_identity``.

    Raises:
        MalformedIdentifierError: If the key has no numeric suffix
    """
    return UserIdentity.from_claimed_id(key)
