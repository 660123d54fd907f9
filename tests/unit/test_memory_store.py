"""In-memory store tests: uniqueness and atomic counters."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from sxmgo.exceptions import DuplicateKeyError, ProfileNotFoundError
from sxmgo.gamification.entities import BadgeDefinition, ChallengeDefinition, LedgerEntry
from sxmgo.gamification.store import InMemoryGamificationStore

NOW = datetime(2026, 5, 1, tzinfo=timezone.utc)


class TestLedger:

    @pytest.mark.asyncio
    async def test_duplicate_key_rejected(self):
        store = InMemoryGamificationStore()
        entry = LedgerEntry(user_id="u1", event_type="checkin", event_id="E1", points=25)
        await store.insert_ledger_entry(entry)

        with pytest.raises(DuplicateKeyError) as exc_info:
            await store.insert_ledger_entry(entry)
        assert exc_info.value.table == "point_transactions"
        assert exc_info.value.key == ("u1", "checkin", "E1")

    @pytest.mark.asyncio
    async def test_entries_newest_first_and_paginated(self):
        store = InMemoryGamificationStore()
        for i in range(5):
            await store.insert_ledger_entry(
                LedgerEntry(user_id="u1", event_type="checkin", event_id=f"E{i}", points=25,
                            created_at=NOW + timedelta(minutes=i))
            )
        await store.insert_ledger_entry(LedgerEntry(user_id="u2", event_type="checkin", event_id="E0", points=25))

        page = await store.list_ledger_entries("u1", offset=1, limit=2)
        assert [e.event_id for e in page] == ["E3", "E2"]
        assert await store.count_ledger_entries("u1") == 5


class TestProfileTotals:

    @pytest.mark.asyncio
    async def test_increment_returns_new_total(self):
        store = InMemoryGamificationStore()
        store.add_profile("u1", total_points=10)
        assert await store.increment_total_points("u1", 25) == 35
        assert (await store.get_profile("u1")).total_points == 35

    @pytest.mark.asyncio
    async def test_increment_missing_profile(self):
        store = InMemoryGamificationStore()
        with pytest.raises(ProfileNotFoundError):
            await store.increment_total_points("ghost", 25)

    @pytest.mark.asyncio
    async def test_top_profiles_ordering(self):
        store = InMemoryGamificationStore()
        store.add_profile("b", total_points=50)
        store.add_profile("a", total_points=50)
        store.add_profile("c", total_points=75)
        store.add_profile("d", total_points=0)

        top = await store.top_profiles(3)
        assert [p.id for p in top] == ["c", "a", "b"]


class TestChallengeProgress:

    @pytest.mark.asyncio
    async def test_advance_creates_then_increments(self):
        store = InMemoryGamificationStore()
        first = await store.advance_challenge("u1", "c1", goal=2, now=NOW)
        second = await store.advance_challenge("u1", "c1", goal=2, now=NOW)

        assert first.progress == 1
        assert first.completed_at is None
        assert second.progress == 2
        assert second.completed_at == NOW

    @pytest.mark.asyncio
    async def test_advance_after_completion_is_noop(self):
        store = InMemoryGamificationStore()
        await store.advance_challenge("u1", "c1", goal=1, now=NOW)
        assert await store.advance_challenge("u1", "c1", goal=1, now=NOW + timedelta(days=1)) is None

        record = await store.get_challenge_progress("u1", "c1")
        assert record.progress == 1
        assert record.completed_at == NOW

    @pytest.mark.asyncio
    async def test_location_visits_are_unique(self):
        store = InMemoryGamificationStore()
        assert await store.record_location_visit("u1", "c1", "L1") is True
        assert await store.record_location_visit("u1", "c1", "L1") is False
        assert await store.record_location_visit("u1", "c2", "L1") is True


class TestBadgesAndDefinitions:

    @pytest.mark.asyncio
    async def test_badge_award_unique(self):
        store = InMemoryGamificationStore()
        await store.insert_badge_award("u1", "b1", NOW)
        with pytest.raises(DuplicateKeyError):
            await store.insert_badge_award("u1", "b1", NOW)
        assert len(await store.list_user_badges("u1")) == 1

    @pytest.mark.asyncio
    async def test_ensure_definitions_idempotent(self):
        store = InMemoryGamificationStore()
        challenge = ChallengeDefinition(id="c1", goal_type="count_by_category", goal_value=3)
        badge = BadgeDefinition(id="b1", tier="bronze", rule_type="points_threshold", threshold=100)

        assert await store.ensure_challenge(challenge) is True
        assert await store.ensure_challenge(challenge) is False
        assert await store.ensure_badge(badge) is True
        assert await store.ensure_badge(badge) is False
        assert await store.list_challenges() == [challenge]
        assert await store.list_badges() == [badge]
