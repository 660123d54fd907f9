"""Seed data tests."""

from __future__ import annotations

import pytest

from sxmgo.gamification.rules import CHALLENGE_RULES, POINTS_THRESHOLD
from sxmgo.gamification.seed import BADGE_SEED_DATA, CHALLENGE_SEED_DATA, seed_definitions
from sxmgo.gamification.store import InMemoryGamificationStore


def test_seed_ids_unique():
    assert len({c.id for c in CHALLENGE_SEED_DATA}) == len(CHALLENGE_SEED_DATA)
    assert len({b.id for b in BADGE_SEED_DATA}) == len(BADGE_SEED_DATA)


def test_seed_challenges_use_known_goal_types():
    for challenge in CHALLENGE_SEED_DATA:
        assert challenge.goal_type in CHALLENGE_RULES
        assert challenge.goal_value > 0


def test_seed_badges_are_point_thresholds_in_order():
    assert all(b.rule_type == POINTS_THRESHOLD for b in BADGE_SEED_DATA)
    thresholds = [b.threshold for b in BADGE_SEED_DATA]
    assert thresholds == sorted(thresholds)


@pytest.mark.asyncio
async def test_seed_is_idempotent():
    store = InMemoryGamificationStore()
    first = await seed_definitions(store)
    second = await seed_definitions(store)

    assert first == (len(CHALLENGE_SEED_DATA), len(BADGE_SEED_DATA))
    assert second == (0, 0)
    assert len(await store.list_challenges()) == len(CHALLENGE_SEED_DATA)
