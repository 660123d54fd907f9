"""Point and challenge rules.

Point values are a lookup keyed by event type. Challenge goal types map to a
predicate that decides whether an event counts toward a definition; unknown
goal types never count.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from sxmgo.gamification.entities import ChallengeDefinition

CHECKIN = "checkin"

COUNT_BY_CATEGORY = "count_by_category"
DISTINCT_LOCATIONS = "distinct_locations"

POINTS_THRESHOLD = "points_threshold"

DEFAULT_POINT_RULES: dict[str, int] = {
    CHECKIN: 25,
}


def build_point_rules(checkin_points: int = DEFAULT_POINT_RULES[CHECKIN]) -> dict[str, int]:
    """Default rule table with a configurable check-in value."""
    rules = dict(DEFAULT_POINT_RULES)
    rules[CHECKIN] = checkin_points
    return rules


def points_for(event_type: str, rules: Mapping[str, int] = DEFAULT_POINT_RULES) -> int:
    """Points earned by an event type. Unrecognized types earn 0."""
    return rules.get(event_type, 0)


def _optional_str(meta: Mapping[str, Any], key: str) -> str | None:
    value = meta.get(key)
    if isinstance(value, str) and value:
        return value
    return None


@dataclass(frozen=True)
class GamifyEvent:
    """A user action with the optional context fields already extracted."""

    user_id: str
    event_type: str
    event_id: str
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def category(self) -> str | None:
        return _optional_str(self.meta, "category")

    @property
    def location_id(self) -> str | None:
        return _optional_str(self.meta, "locationId")


def _counts_by_category(challenge: ChallengeDefinition, event: GamifyEvent) -> bool:
    required = _optional_str(challenge.metadata or {}, "category")
    category = event.category
    return required is not None and category is not None and required == category


def _counts_distinct_location(challenge: ChallengeDefinition, event: GamifyEvent) -> bool:
    # Eligibility only; whether the location is new is decided by the store.
    return event.event_type == CHECKIN and event.location_id is not None


ChallengeRule = Callable[[ChallengeDefinition, GamifyEvent], bool]

CHALLENGE_RULES: dict[str, ChallengeRule] = {
    COUNT_BY_CATEGORY: _counts_by_category,
    DISTINCT_LOCATIONS: _counts_distinct_location,
}

# Goal types whose progress counts each location at most once.
LOCATION_GATED_GOALS = frozenset({DISTINCT_LOCATIONS})


def event_counts_toward(challenge: ChallengeDefinition, event: GamifyEvent) -> bool:
    """True if the event is eligible to advance the challenge."""
    rule = CHALLENGE_RULES.get(challenge.goal_type)
    if rule is None:
        return False
    return rule(challenge, event)
