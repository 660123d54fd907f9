"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from sxmgo.config import Settings, get_settings
from sxmgo.database import close_db, init_db, session_scope
from sxmgo.gamification.router import router as gamification_router
from sxmgo.gamification.seed import seed_definitions
from sxmgo.gamification.sql_store import SqlGamificationStore
from sxmgo.health.router import router as health_router
from sxmgo.middleware import setup_middleware
from sxmgo.redis_client import close_redis, init_redis

logger = structlog.get_logger()


async def _seed(settings: Settings) -> None:
    if not settings.seed_on_startup:
        return
    try:
        async with session_scope() as db:
            await seed_definitions(SqlGamificationStore(db))
    except Exception:
        # The API still serves requests against whatever definitions exist.
        logger.warning("definition_seeding_failed", exc_info=True)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings)
    await init_redis(settings)
    await _seed(settings)
    logger.info("service_started", environment=settings.environment, version=settings.app_version)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="SXM GO Gamification API",
        description="Points, challenges, badges and leaderboard for SXM GO",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(gamification_router)

    return app


app = create_app()
