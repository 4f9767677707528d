from src.relying_party.core.models.session import Session
from src.relying_party.core.security import generate_session_key
from src.relying_party.core.storage.session_storage import SessionStorage
from src.relying_party.runtime.context import get_config

SESSION_KEY_PREFIX = "session:"


def _storage_key(session_id: str) -> str:
    return f"{SESSION_KEY_PREFIX}{session_id}"


class SessionService:
    """Service for managing visitor sessions on top of a session store."""

    def __init__(self, session_storage: SessionStorage) -> None:
        self._storage = session_storage

    @property
    def storage(self) -> SessionStorage:
        return self._storage

    async def create_session(self) -> Session:
        """Create and persist a new anonymous session.

        Returns:
            The new session
        """
        session = Session.create(
            session_id=generate_session_key(),
            session_max_age=get_config().app.session_max_age,
        )
        await self._storage.set(_storage_key(session.id), session, session.ttl())
        return session

    async def get_session(self, session_id: str) -> Session | None:
        """Get session by ID.

        Args:
            session_id: Session identifier

        Returns:
            Session or None if not found/expired

        Raises:
            StoreUnavailable: If the session store fails
        """
        session = await self._storage.get(_storage_key(session_id), Session)

        if not session:
            return None

        if session.is_expired():
            await self._storage.delete(_storage_key(session_id))
            return None

        session.update_access()
        return session

    async def get_or_create_session(self, session_id: str | None) -> Session:
        """Load the session for a key, starting a fresh one when there is none."""
        if session_id:
            session = await self.get_session(session_id)
            if session is not None:
                return session
        return await self.create_session()

    async def save_session(self, session: Session) -> None:
        """Persist the session under its current key."""
        session.update_access()
        await self._storage.set(_storage_key(session.id), session, session.ttl())

    async def rotate_session(self, session: Session) -> Session:
        """Move the session to a new key and remove the old entry.

        Args:
            session: Session to rotate; updated in place

        Returns:
            The same session under its new key
        """
        old_id = session.id
        session.rotate_session_id(generate_session_key())
        await self._storage.set(_storage_key(session.id), session, session.ttl())
        await self._storage.delete(_storage_key(old_id))
        return session

    async def delete_session(self, session_id: str) -> None:
        """Delete session.

        Args:
            session_id: Session identifier
        """
        await self._storage.delete(_storage_key(session_id))

    async def purge_expired(self) -> int:
        """Cleanup expired sessions from storage."""
        return await self._storage.cleanup_expired()
