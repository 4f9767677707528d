"""Session storage interface and implementations.

Sessions are kept in Redis when it is configured and reachable, otherwise in
process memory. Backend failures surface as ``StoreUnavailable``.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from src.relying_party.core.errors import StoreUnavailable

T = TypeVar("T", bound=BaseModel)


class SessionStorage(ABC):
    """Abstract interface for session storage backends."""

    @abstractmethod
    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        """Store a value under ``key`` for ``ttl_seconds``."""

    @abstractmethod
    async def get(self, key: str, model_class: type[T]) -> T | None:
        """Load the value under ``key``.

        Returns:
            The value, or None if missing, expired or unreadable
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``; removing a missing key is not an error."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if session exists and is not expired."""

    @abstractmethod
    async def cleanup_expired(self) -> int:
        """Drop expired entries.

        Returns:
            Number of entries removed
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if storage backend is available."""


@dataclass
class _Entry:
    payload: str
    expires_at: float

    @property
    def expired(self) -> bool:
        return time.time() > self.expires_at


class InMemorySessionStorage(SessionStorage):
    """Process-local storage with per-entry expiry."""

    def __init__(self):
        self._data: dict[str, _Entry] = {}

    def _live_entry(self, key: str) -> _Entry | None:
        entry = self._data.get(key)
        if entry is not None and entry.expired:
            del self._data[key]
            return None
        return entry

    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        self._data[key] = _Entry(value.model_dump_json(), time.time() + ttl_seconds)

    async def get(self, key: str, model_class: type[T]) -> T | None:
        entry = self._live_entry(key)
        if entry is None:
            return None

        try:
            return model_class.model_validate_json(entry.payload)
        except ValidationError:
            logger.warning("Dropping unreadable session entry")
            del self._data[key]
            return None

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def exists(self, key: str) -> bool:
        return self._live_entry(key) is not None

    async def cleanup_expired(self) -> int:
        expired = [key for key, entry in self._data.items() if entry.expired]
        for key in expired:
            del self._data[key]
        return len(expired)

    def is_available(self) -> bool:
        return True


class RedisSessionStorage(SessionStorage):
    """Storage backed by ``redis.asyncio``; Redis owns expiry."""

    def __init__(self, redis_client):
        self._redis = redis_client
        self._available = True

    async def _call(self, operation: str, pending: Awaitable[Any]) -> Any:
        try:
            result = await pending
        except Exception as e:
            self._available = False
            raise StoreUnavailable(f"Redis {operation} failed: {e}") from e
        self._available = True
        return result

    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        await self._call(
            "set", self._redis.setex(key, ttl_seconds, value.model_dump_json())
        )

    async def get(self, key: str, model_class: type[T]) -> T | None:
        data = await self._call("get", self._redis.get(key))
        if data is None:
            return None

        if isinstance(data, bytes):
            data = data.decode("utf-8")

        try:
            return model_class.model_validate_json(data)
        except ValidationError:
            logger.warning("Dropping unreadable session entry")
            await self.delete(key)
            return None

    async def delete(self, key: str) -> None:
        await self._call("delete", self._redis.delete(key))

    async def exists(self, key: str) -> bool:
        return bool(await self._call("exists", self._redis.exists(key)))

    async def cleanup_expired(self) -> int:
        return 0

    def is_available(self) -> bool:
        return self._available

    async def ping(self) -> bool:
        """Probe the connection, updating availability."""
        try:
            await self._call("ping", self._redis.ping())
        except StoreUnavailable:
            return False
        return True

    async def close(self) -> None:
        await self._redis.aclose()


_storage: SessionStorage | None = None


async def _detect_redis_availability() -> SessionStorage:
    """Pick Redis when enabled and reachable, else in-memory outside production.

    Raises:
        StoreUnavailable: If Redis is enabled but unreachable in production
    """
    import redis.asyncio as redis

    from src.relying_party.runtime.context import get_config

    config = get_config()
    if not config.redis.enabled or not config.redis.url:
        logger.info("Session storage: in-memory (Redis not configured)")
        return InMemorySessionStorage()

    redis_storage = RedisSessionStorage(
        redis.from_url(
            config.redis.connection_string,
            encoding="utf-8",
            decode_responses=config.redis.decode_responses,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
    )
    if await redis_storage.ping():
        logger.info("Session storage: Redis connected")
        return redis_storage

    if config.app.environment == "production":
        raise StoreUnavailable("Redis ping failed")

    logger.warning("Redis unavailable, using in-memory session storage")
    return InMemorySessionStorage()


async def get_session_storage() -> SessionStorage:
    """Return the process-wide storage, choosing the backend on first use."""
    global _storage

    if _storage is None:
        _storage = await _detect_redis_availability()

    return _storage


def _reset_storage() -> None:
    """Forget the chosen backend (shutdown and tests)."""
    global _storage
    _storage = None
