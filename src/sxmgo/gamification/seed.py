"""Default challenge and badge definitions, inserted at startup if missing."""

from __future__ import annotations

import structlog

from sxmgo.gamification.entities import BadgeDefinition, ChallengeDefinition
from sxmgo.gamification.rules import COUNT_BY_CATEGORY, DISTINCT_LOCATIONS, POINTS_THRESHOLD
from sxmgo.gamification.store import GamificationStore

logger = structlog.get_logger()

CHALLENGE_SEED_DATA: list[ChallengeDefinition] = [
    ChallengeDefinition(
        id="beach_hopper",
        title="Beach Hopper",
        goal_type=COUNT_BY_CATEGORY,
        goal_value=3,
        metadata={"category": "beach"},
    ),
    ChallengeDefinition(
        id="island_foodie",
        title="Island Foodie",
        goal_type=COUNT_BY_CATEGORY,
        goal_value=5,
        metadata={"category": "restaurant"},
    ),
    ChallengeDefinition(
        id="history_buff",
        title="History Buff",
        goal_type=COUNT_BY_CATEGORY,
        goal_value=3,
        metadata={"category": "landmark"},
    ),
    ChallengeDefinition(
        id="island_explorer",
        title="Island Explorer",
        goal_type=DISTINCT_LOCATIONS,
        goal_value=10,
    ),
]

BADGE_SEED_DATA: list[BadgeDefinition] = [
    BadgeDefinition(id="points_bronze", name="Day Tripper", tier="bronze", rule_type=POINTS_THRESHOLD, threshold=100),
    BadgeDefinition(id="points_silver", name="Island Regular", tier="silver", rule_type=POINTS_THRESHOLD, threshold=500),
    BadgeDefinition(id="points_gold", name="Local Legend", tier="gold", rule_type=POINTS_THRESHOLD, threshold=1500),
    BadgeDefinition(
        id="points_platinum", name="Friendly Islander", tier="platinum", rule_type=POINTS_THRESHOLD, threshold=5000,
    ),
]


async def seed_definitions(store: GamificationStore) -> tuple[int, int]:
    """Insert any missing default definitions. Returns (challenges_added, badges_added)."""
    challenges_added = 0
    for challenge in CHALLENGE_SEED_DATA:
        if await store.ensure_challenge(challenge):
            challenges_added += 1

    badges_added = 0
    for badge in BADGE_SEED_DATA:
        if await store.ensure_badge(badge):
            badges_added += 1

    if challenges_added or badges_added:
        logger.info("definitions_seeded", challenges=challenges_added, badges=badges_added)
    return challenges_added, badges_added
