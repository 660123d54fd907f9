"""Plain records passed between the processor and the stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class LedgerEntry:
    user_id: str
    event_type: str
    event_id: str
    points: int
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None


@dataclass(frozen=True)
class ProfileRecord:
    id: str
    total_points: int
    display_name: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class ChallengeDefinition:
    id: str
    goal_type: str
    goal_value: int
    metadata: dict[str, Any] = field(default_factory=dict)
    title: str = ""


@dataclass(frozen=True)
class ChallengeProgressRecord:
    user_id: str
    challenge_id: str
    progress: int
    completed_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    tier: str
    rule_type: str
    threshold: int
    name: str = ""


@dataclass(frozen=True)
class BadgeAward:
    user_id: str
    badge_id: str
    earned_at: datetime


@dataclass(frozen=True)
class ProgressUpdate:
    challenge_id: str
    progress: int
    goal: int


@dataclass(frozen=True)
class AwardedBadge:
    badge_id: str
    tier: str


@dataclass
class EventResult:
    """Summary of the side effects of one processed event."""

    points_awarded: int
    duplicate: bool
    new_total_points: int | None
    completed_challenges: list[str] = field(default_factory=list)
    new_badges: list[AwardedBadge] = field(default_factory=list)
    progress_updates: list[ProgressUpdate] = field(default_factory=list)

    @classmethod
    def duplicate_event(cls) -> EventResult:
        return cls(points_awarded=0, duplicate=True, new_total_points=None)
