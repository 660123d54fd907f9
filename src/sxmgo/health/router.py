"""Liveness, readiness and version endpoints."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from sxmgo.config import get_settings
from sxmgo.dependencies import get_store
from sxmgo.gamification.store import GamificationStore
from sxmgo.redis_client import get_redis

router = APIRouter()

logger = structlog.get_logger()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe. 200 while the process is up."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(store: GamificationStore = Depends(get_store)) -> JSONResponse:  # noqa: B008
    """Readiness probe.

    Ready when the database answers and holds at least one challenge and one
    badge definition. A Redis failure only marks the service degraded.
    """
    checks: dict[str, Any] = {}
    ready = True

    try:
        challenges = await store.list_challenges()
        badges = await store.list_badges()
        checks["database"] = "ok"
        checks["definitions"] = {"challenges": len(challenges), "badges": len(badges)}
        if not challenges or not badges:
            ready = False
    except Exception as exc:
        logger.warning("readiness_database_failed", error=str(exc))
        checks["database"] = f"error: {exc}"
        ready = False

    try:
        await get_redis().ping()
        checks["redis"] = "ok"
    except Exception as exc:
        checks["redis"] = f"error: {exc}"

    if not ready:
        status = "unavailable"
    elif checks["redis"] != "ok":
        status = "degraded"
    else:
        status = "ready"
    return JSONResponse(status_code=200 if ready else 503, content={"status": status, "checks": checks})


@router.get("/version")
async def version() -> dict[str, str]:
    """Build version, environment and service name."""
    settings = get_settings()
    return {
        "service": settings.service_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
