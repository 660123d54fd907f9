"""Pydantic request/response models for gamification endpoints.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from sxmgo.gamification.entities import EventResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- gamify-event ---


class GamifyEventRequest(CamelModel):
    event_type: str | None = None
    event_id: str | None = None
    meta: dict[str, Any] | None = None


class ProgressUpdateResponse(CamelModel):
    challenge_id: str
    progress: int
    goal: int


class NewBadgeResponse(CamelModel):
    badge_id: str
    tier: str


class GamifyEventResponse(CamelModel):
    points_awarded: int
    duplicate: bool
    new_total_points: int | None
    completed_challenges: list[str]
    new_badges: list[NewBadgeResponse]
    progress_updates: list[ProgressUpdateResponse]

    @classmethod
    def from_result(cls, result: EventResult) -> GamifyEventResponse:
        return cls(
            points_awarded=result.points_awarded,
            duplicate=result.duplicate,
            new_total_points=result.new_total_points,
            completed_challenges=list(result.completed_challenges),
            new_badges=[NewBadgeResponse(badge_id=b.badge_id, tier=b.tier) for b in result.new_badges],
            progress_updates=[
                ProgressUpdateResponse(challenge_id=p.challenge_id, progress=p.progress, goal=p.goal)
                for p in result.progress_updates
            ],
        )


# --- Leaderboard ---


class LeaderboardEntry(CamelModel):
    id: str
    rank: int
    display_name: str | None = None
    avatar_url: str | None = None
    total_points: int


# --- Points history ---


class PointsHistoryEntry(CamelModel):
    event_type: str
    event_id: str
    points: int
    metadata: dict[str, Any] = {}
    created_at: datetime | None = None


class PointsHistoryResponse(CamelModel):
    entries: list[PointsHistoryEntry]
    total: int
    page: int
    per_page: int


# --- Summary ---


class EarnedBadgeResponse(CamelModel):
    badge_id: str
    earned_at: datetime


class ChallengeProgressResponse(CamelModel):
    challenge_id: str
    progress: int
    completed_at: datetime | None = None


class GamificationSummaryResponse(CamelModel):
    total_points: int
    badges: list[EarnedBadgeResponse]
    challenges: list[ChallengeProgressResponse]
