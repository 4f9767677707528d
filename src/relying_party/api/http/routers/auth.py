"""Login, provider return and logout endpoints."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from loguru import logger

from src.relying_party.api.http.deps import (
    get_lifecycle_service,
    get_session,
    get_session_key,
)
from src.relying_party.api.http.session_cookie import (
    clear_session_cookie,
    set_session_cookie,
)
from src.relying_party.core.models.session import Session
from src.relying_party.core.services import SessionLifecycleService
from src.relying_party.runtime.context import get_config

router_auth = APIRouter(prefix="/auth", tags=["auth"])


@router_auth.post("/login")
async def initiate_login(
    lifecycle: SessionLifecycleService = Depends(get_lifecycle_service),
) -> RedirectResponse:
    """Redirect the visitor to the OpenID provider."""
    transition = await lifecycle.initiate_login()
    return RedirectResponse(url=transition.redirect_to, status_code=status.HTTP_302_FOUND)


@router_auth.get("/return")
async def handle_provider_return(
    request: Request,
    session: Session = Depends(get_session),
    lifecycle: SessionLifecycleService = Depends(get_lifecycle_service),
) -> RedirectResponse:
    """Provider callback carrying the signed assertion in the query string.

    Redirects to ``/?id=<numericId>`` on success and ``/?failed`` otherwise.
    """
    # Avoid logging the assertion itself
    logger.debug("Provider return received")

    transition = await lifecycle.handle_provider_return(
        session=session,
        query=dict(request.query_params),
        current_url=get_config().openid.return_url,
    )

    response = RedirectResponse(url=transition.redirect_to, status_code=status.HTTP_302_FOUND)
    if transition.session is not None:
        set_session_cookie(response, transition.session)
    return response


@router_auth.post("/logout")
async def logout(
    request: Request,
    session_key: str | None = Depends(get_session_key),
    lifecycle: SessionLifecycleService = Depends(get_lifecycle_service),
) -> RedirectResponse:
    """Clear the session and send the visitor back to the referring page."""
    transition = await lifecycle.logout(session_key, request.headers.get("referer"))

    response = RedirectResponse(url=transition.redirect_to, status_code=status.HTTP_302_FOUND)
    clear_session_cookie(response)
    return response
