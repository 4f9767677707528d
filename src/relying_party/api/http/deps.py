"""FastAPI dependency implementations."""

from __future__ import annotations

from fastapi import Depends, Request

from src.relying_party.api.http.app_data import ApplicationDependencies
from src.relying_party.core.models.session import Session
from src.relying_party.core.security import unsign_session_key
from src.relying_party.core.services import SessionLifecycleService, SessionService
from src.relying_party.core.storage import SessionStorage
from src.relying_party.runtime.context import get_config


def get_session_storage(request: Request) -> SessionStorage:
    """Get the session storage backend."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.session_storage


def get_session_service(request: Request) -> SessionService:
    """Get the Session service instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.session_service


def get_lifecycle_service(request: Request) -> SessionLifecycleService:
    """Get the session lifecycle service instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.lifecycle_service


def get_session_key(request: Request) -> str | None:
    """Session key from the signed session cookie, if present and intact."""
    cookie_value = request.cookies.get(get_config().security.session_cookie_name)
    return unsign_session_key(cookie_value)


async def get_optional_session(
    session_key: str | None = Depends(get_session_key),
    session_service: SessionService = Depends(get_session_service),
) -> Session | None:
    """Load the visitor's session without creating one."""
    if not session_key:
        return None
    return await session_service.get_session(session_key)


async def get_session(
    session_key: str | None = Depends(get_session_key),
    session_service: SessionService = Depends(get_session_service),
) -> Session:
    """Load the visitor's session, starting an anonymous one if needed."""
    return await session_service.get_or_create_session(session_key)
