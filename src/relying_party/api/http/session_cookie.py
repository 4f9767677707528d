"""Session cookie helpers."""

from fastapi import Response

from src.relying_party.core.models.session import Session
from src.relying_party.core.security import (
    get_session_cookie_settings,
    sign_session_key,
)
from src.relying_party.runtime.context import get_config


def set_session_cookie(response: Response, session: Session) -> None:
    """Attach the signed session key to the response."""
    response.set_cookie(
        key=get_config().security.session_cookie_name,
        value=sign_session_key(session.id),
        max_age=get_config().app.session_max_age,
        **get_session_cookie_settings(),
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(get_config().security.session_cookie_name, path="/")
