"""HTML pages reflecting the visitor's session state."""

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from starlette.templating import Jinja2Templates

from src.relying_party.api.http.deps import get_lifecycle_service, get_session
from src.relying_party.api.http.session_cookie import set_session_cookie
from src.relying_party.core.models.session import Session
from src.relying_party.core.services import SessionLifecycleService
from src.relying_party.runtime.context import get_config

templates = Jinja2Templates(directory=str(Path(__file__).parents[3] / "templates"))

router_pages = APIRouter(tags=["pages"])


@router_pages.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    session: Session = Depends(get_session),
    lifecycle: SessionLifecycleService = Depends(get_lifecycle_service),
) -> HTMLResponse:
    """Render the logged-in page or the sign-in form."""
    user = lifecycle.current_user(session)
    response = templates.TemplateResponse(
        request,
        "index.html",
        {
            "user": user,
            "user_json": user.model_dump_json() if user else None,
            "login_failed": user is None and "failed" in request.query_params,
            "provider": get_config().openid,
        },
    )
    set_session_cookie(response, session)
    return response
