"""Session and identity models."""

import re
import time
from enum import Enum

from pydantic import BaseModel, Field

from src.relying_party.core.errors import MalformedIdentifierError

_NUMERIC_SUFFIX = re.compile(r"\d+\Z")


class AuthState(str, Enum):
    """Where a visitor is in the login lifecycle."""

    ANONYMOUS = "anonymous"
    AWAITING_PROVIDER = "awaiting_provider"
    AUTHENTICATED = "authenticated"


class UserIdentity(BaseModel):
    """Identity asserted by the provider for a logged-in visitor."""

    claimed_id: str = Field(description="Provider-asserted claimed identifier URL")
    numeric_id: str = Field(description="Trailing numeric provider-specific ID")

    @classmethod
    def from_claimed_id(cls, claimed_id: str) -> "UserIdentity":
        """Build an identity by extracting the trailing digits of the claimed id.

        Raises:
            MalformedIdentifierError: If the claimed id has no numeric suffix
        """
        match = _NUMERIC_SUFFIX.search(claimed_id)
        if match is None:
            raise MalformedIdentifierError(claimed_id)
        return cls(claimed_id=claimed_id, numeric_id=match.group(0))


class Session(BaseModel):
    """Server-side session addressed by an opaque session key."""

    id: str = Field(description="Session key")
    user_key: str | None = Field(
        default=None, description="Serialized user identity, if authenticated"
    )
    created_at: int = Field(description="Creation timestamp")
    last_accessed_at: int = Field(description="Last access timestamp")
    expires_at: int = Field(description="Session expiration timestamp")

    @classmethod
    def create(cls, session_id: str, session_max_age: int = 86400) -> "Session":
        """Create a new anonymous session with timestamps."""
        now = int(time.time())
        return cls(
            id=session_id,
            created_at=now,
            last_accessed_at=now,
            expires_at=now + session_max_age,
        )

    @property
    def is_authenticated(self) -> bool:
        return self.user_key is not None

    def is_expired(self) -> bool:
        """Check if session is expired."""
        return time.time() > self.expires_at

    def update_access(self) -> None:
        """Update last accessed time."""
        self.last_accessed_at = int(time.time())

    def rotate_session_id(self, new_session_id: str) -> None:
        """Rotate session ID, keeping the session contents."""
        self.id = new_session_id
        self.update_access()

    def ttl(self) -> int:
        """Seconds left before expiry, at least one."""
        return max(1, self.expires_at - int(time.time()))
