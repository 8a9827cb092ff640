"""Liveness of the service and its page store."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.schemas import DatabaseHealth, HealthResponse
from core.dependencies import get_db_manager
from pagerender.database.manager import DatabaseManager

router = APIRouter(tags=["health"])

SERVICE_NAME = "pagerender"
SERVICE_VERSION = "1.0.0"


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse, "description": "Page store unavailable"}},
)
async def health(db: DatabaseManager = Depends(get_db_manager)) -> JSONResponse:
    db_health = await db.health_check()
    healthy = bool(db_health["healthy"])

    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        database=DatabaseHealth(
            status="connected" if healthy else "disconnected",
            latency_ms=db_health.get("latency_ms"),
            error=db_health.get("error"),
        ),
    )
    return JSONResponse(status_code=200 if healthy else 503, content=body.model_dump())
