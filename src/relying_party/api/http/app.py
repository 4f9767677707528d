"""FastAPI application setup."""

import asyncio
import contextlib
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException, RequestValidationError
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.relying_party.api.http.app_data import ApplicationDependencies
from src.relying_party.api.http.routers.auth import router_auth
from src.relying_party.api.http.routers.health import router_health
from src.relying_party.api.http.routers.pages import router_pages
from src.relying_party.api.utils.app_startup import configure_logging
from src.relying_party.core.errors import ProviderUnavailable, StoreUnavailable
from src.relying_party.core.services import (
    OpenIDConsumerAdapter,
    SessionLifecycleService,
    SessionService,
)
from src.relying_party.core.storage.session_storage import (
    RedisSessionStorage,
    _reset_storage,
    get_session_storage,
)
from src.relying_party.runtime.context import get_config

configure_logging()

REQUEST_ID_HEADER = "X-Request-ID"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
HSTS = "max-age=31536000; includeSubDomains; preload"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if get_config().app.environment == "production":
            response.headers.setdefault("Strict-Transport-Security", HSTS)
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup()
    try:
        yield
    finally:
        await shutdown()


app = FastAPI(
    title="OpenID Relying Party",
    lifespan=lifespan,
    docs_url=None if get_config().app.environment == "production" else "/docs",
    redoc_url=None,
)

app.add_middleware(SecurityHeadersMiddleware)

__all__ = ["app", "startup", "shutdown"]


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _failure(
    exc: Exception, status_code: int, detail, request_id: str, started: float
) -> JSONResponse:
    logger.bind(
        status_code=status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 1),
        error_type=type(exc).__name__,
    ).exception("request.error")
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "request_id": request_id},
        headers={REQUEST_ID_HEADER: request_id},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id
    started = time.perf_counter()

    # Path only: the return URL query carries the provider assertion
    with logger.contextualize(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        client_ip=_client_ip(request),
    ):
        logger.info("request.start")
        try:
            response = await call_next(request)
        except HTTPException as exc:
            return _failure(exc, exc.status_code, exc.detail, request_id, started)
        except RequestValidationError as exc:
            return _failure(exc, 422, exc.errors(), request_id, started)
        except Exception as exc:
            return _failure(exc, 500, "Internal Server Error", request_id, started)

        logger.bind(
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        ).info("request.end")
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        return response


def _error_body(request: Request, detail: str) -> dict[str, str]:
    request_id = getattr(request.state, "request_id", "-")
    return {"detail": detail, "request_id": request_id}


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.opt(exception=exc).error("Session store unavailable")
    return JSONResponse(
        status_code=500, content=_error_body(request, "Session store unavailable")
    )


@app.exception_handler(ProviderUnavailable)
async def provider_unavailable_handler(request: Request, exc: ProviderUnavailable):
    logger.warning("Identity provider unavailable: {}", exc)
    return JSONResponse(
        status_code=502, content=_error_body(request, "Identity provider unavailable")
    )


app.include_router(router_pages)
app.include_router(router_auth)
app.include_router(router_health)


async def _reap_sessions(session_service: SessionService, interval: int) -> None:
    """Purge expired sessions every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            removed = await session_service.purge_expired()
        except Exception:
            logger.exception("Session cleanup failed")
            continue
        if removed:
            logger.debug("Removed {} expired sessions", removed)


async def startup() -> None:
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)

    session_storage = await get_session_storage()
    session_service = SessionService(session_storage)
    identity_provider = OpenIDConsumerAdapter(config.openid)

    app.state.app_dependencies = ApplicationDependencies(
        session_storage=session_storage,
        session_service=session_service,
        identity_provider=identity_provider,
        lifecycle_service=SessionLifecycleService(session_service, identity_provider),
    )
    app.state.reaper = asyncio.create_task(
        _reap_sessions(session_service, config.app.session_reap_interval)
    )


async def shutdown() -> None:
    logger.info("Shutting down application")
    reaper: asyncio.Task | None = getattr(app.state, "reaper", None)
    if reaper is not None:
        reaper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await reaper

    app_dependencies: ApplicationDependencies | None = getattr(
        app.state, "app_dependencies", None
    )
    if app_dependencies is not None:
        await app_dependencies.session_service.purge_expired()
        if isinstance(app_dependencies.session_storage, RedisSessionStorage):
            await app_dependencies.session_storage.close()
    _reset_storage()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().app.host,
        port=get_config().app.port,
        access_log=False,
    )
