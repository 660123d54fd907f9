"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgo.config import get_settings
from sxmgo.database import get_session
from sxmgo.gamification.processor import EventProcessor
from sxmgo.gamification.rules import build_point_rules
from sxmgo.gamification.sql_store import SqlGamificationStore
from sxmgo.gamification.store import GamificationStore


async def get_store(db: AsyncSession = Depends(get_session)) -> AsyncGenerator[GamificationStore, None]:
    """Yield a store bound to the request's database session."""
    yield SqlGamificationStore(db)


def get_processor(store: GamificationStore = Depends(get_store)) -> EventProcessor:
    """Build an event processor with the configured point rules."""
    settings = get_settings()
    return EventProcessor(store, point_rules=build_point_rules(settings.checkin_points))
