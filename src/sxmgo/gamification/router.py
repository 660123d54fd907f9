"""Gamification API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from sxmgo.auth.dependencies import get_current_user_id
from sxmgo.config import get_settings
from sxmgo.dependencies import get_processor, get_store
from sxmgo.exceptions import ProfileNotFoundError
from sxmgo.gamification.processor import EventProcessor
from sxmgo.gamification.schemas import (
    ChallengeProgressResponse,
    EarnedBadgeResponse,
    GamificationSummaryResponse,
    GamifyEventRequest,
    GamifyEventResponse,
    LeaderboardEntry,
    PointsHistoryEntry,
    PointsHistoryResponse,
)
from sxmgo.gamification.store import GamificationStore

router = APIRouter(tags=["Gamification"])


# ── Event processing ──


@router.post("/gamify-event", response_model=GamifyEventResponse)
@router.post("/functions/v1/gamify-event", response_model=GamifyEventResponse, include_in_schema=False)
async def gamify_event(
    body: GamifyEventRequest | None = None,
    user_id: str = Depends(get_current_user_id),
    processor: EventProcessor = Depends(get_processor),
):
    """Record a user action and apply points, challenge progress and badges."""
    body = body or GamifyEventRequest()
    result = await processor.process_event(
        user_id=user_id,
        event_type=body.event_type,
        event_id=body.event_id,
        meta=body.meta,
    )
    return GamifyEventResponse.from_result(result)


# ── Public endpoints ──


@router.get("/api/v1/leaderboard", response_model=list[LeaderboardEntry])
async def get_leaderboard(
    limit: int = Query(100, ge=1),
    store: GamificationStore = Depends(get_store),
):
    """Top users by total points, ranked by position."""
    limit = min(limit, get_settings().leaderboard_max_limit)
    profiles = await store.top_profiles(limit)
    return [
        LeaderboardEntry(
            id=p.id,
            rank=index + 1,
            display_name=p.display_name,
            avatar_url=p.avatar_url,
            total_points=p.total_points,
        )
        for index, p in enumerate(profiles)
    ]


# ── Authenticated endpoints ──


@router.get("/api/v1/users/me/points/history", response_model=PointsHistoryResponse)
async def get_points_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    store: GamificationStore = Depends(get_store),
):
    """Point ledger for the current user, newest first (paginated)."""
    total = await store.count_ledger_entries(user_id)
    entries = await store.list_ledger_entries(user_id, offset=(page - 1) * per_page, limit=per_page)

    return PointsHistoryResponse(
        entries=[
            PointsHistoryEntry(
                event_type=e.event_type,
                event_id=e.event_id,
                points=e.points,
                metadata=e.metadata,
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/api/v1/users/me/gamification", response_model=GamificationSummaryResponse)
async def get_gamification_summary(
    user_id: str = Depends(get_current_user_id),
    store: GamificationStore = Depends(get_store),
):
    """Total points, earned badges and challenge progress for the current user."""
    profile = await store.get_profile(user_id)
    if profile is None:
        raise ProfileNotFoundError(user_id)

    badges = await store.list_user_badges(user_id)
    progress = await store.list_user_challenge_progress(user_id)

    return GamificationSummaryResponse(
        total_points=profile.total_points,
        badges=[EarnedBadgeResponse(badge_id=b.badge_id, earned_at=b.earned_at) for b in badges],
        challenges=[
            ChallengeProgressResponse(
                challenge_id=p.challenge_id,
                progress=p.progress,
                completed_at=p.completed_at,
            )
            for p in progress
        ],
    )
