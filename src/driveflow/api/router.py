"""Root API router with health endpoints and module mounting."""

from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text

from driveflow.api.dependencies import DBSession
from driveflow.config import settings
from driveflow.core.audit import QueuedAuditSink
from driveflow.modules import discover_modules


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str


class ReadinessResponse(BaseModel):
    """Readiness check response schema."""

    status: str
    checks: dict[str, str]


api_router = APIRouter()

# Health check endpoints (no /api/v1 prefix)
health_router = APIRouter(tags=["health"])


@health_router.get(
    "/health/live",
    response_model=HealthResponse,
    summary="Liveness probe",
)
async def liveness() -> HealthResponse:
    return HealthResponse(status="alive")


@health_router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Checks database connectivity and the audit delivery queue.",
)
async def readiness(request: Request, db: DBSession) -> JSONResponse:
    checks: dict[str, str] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = str(e)

    sink = getattr(request.app.state, "audit_sink", None)
    if isinstance(sink, QueuedAuditSink):
        checks["audit"] = "ok" if sink.running else "stopped"

    all_ok = all(v == "ok" for v in checks.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK
        if all_ok
        else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if all_ok else "degraded",
            "checks": checks,
        },
    )


@health_router.get("/info", summary="Application info")
async def info() -> dict[str, Any]:
    return {
        "app": settings.app_name,
        "environment": settings.environment,
        "debug": settings.debug,
    }


v1_router = APIRouter(prefix="/api/v1")

for module_router in discover_modules():
    v1_router.include_router(module_router)

api_router.include_router(health_router)
api_router.include_router(v1_router)
