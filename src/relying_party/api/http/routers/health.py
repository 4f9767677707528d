"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from src.relying_party.api.http.app_data import ApplicationDependencies
from src.relying_party.core.storage.session_storage import RedisSessionStorage
from src.relying_party.runtime.context import get_config

router_health = APIRouter(prefix="/health", tags=["health"])


@router_health.get("")
async def health() -> dict[str, str]:
    """Liveness check: 200 OK as long as the process is running."""
    return {"status": "healthy", "service": "relying-party"}


@router_health.get("/ready", response_model=None)
async def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness check: 503 when the session store cannot serve requests."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    storage = app_deps.session_storage

    if isinstance(storage, RedisSessionStorage):
        store_healthy = await storage.ping()
        store_type = "redis"
    else:
        store_healthy = storage.is_available()
        store_type = "in-memory"

    response = {
        "status": "ready" if store_healthy else "not_ready",
        "environment": get_config().app.environment,
        "checks": {
            "session_store": {
                "status": "healthy" if store_healthy else "unhealthy",
                "type": store_type,
            },
        },
    }

    if not store_healthy:
        return JSONResponse(status_code=503, content=response)

    return response
