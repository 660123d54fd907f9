"""
Gamification data-store port.

The processor talks to storage only through ``GamificationStore``. Every
counter mutation is a single atomic operation on the store side; callers
never read a value, change it and write it back.

Two implementations exist: ``SqlGamificationStore`` (PostgreSQL, see
``sql_store.py``) and ``InMemoryGamificationStore`` below, used by tests and
local development.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone

from sxmgo.exceptions import DuplicateKeyError, ProfileNotFoundError
from sxmgo.gamification.entities import (
    BadgeAward,
    BadgeDefinition,
    ChallengeDefinition,
    ChallengeProgressRecord,
    LedgerEntry,
    ProfileRecord,
)


class GamificationStore(ABC):
    """Abstract data store for the gamification tables."""

    # --- Writes used by the event processor ---

    @abstractmethod
    async def insert_ledger_entry(self, entry: LedgerEntry) -> None:
        """Insert a ledger row. Raises DuplicateKeyError on (user, type, event) conflict."""
        ...

    @abstractmethod
    async def increment_total_points(self, user_id: str, delta: int) -> int:
        """Atomically add delta to the profile total and return the new total.

        Raises ProfileNotFoundError if the profile does not exist.
        """
        ...

    @abstractmethod
    async def record_location_visit(self, user_id: str, challenge_id: str, location_id: str) -> bool:
        """Record a location toward a challenge. False if it was already recorded."""
        ...

    @abstractmethod
    async def advance_challenge(
        self,
        user_id: str,
        challenge_id: str,
        goal: int,
        now: datetime,
    ) -> ChallengeProgressRecord | None:
        """Atomically increment progress by one, stamping completed_at when goal is reached.

        Returns None, changing nothing, if the challenge is already completed.
        """
        ...

    @abstractmethod
    async def insert_badge_award(self, user_id: str, badge_id: str, now: datetime) -> None:
        """Insert a badge award. Raises DuplicateKeyError if already awarded."""
        ...

    # --- Definitions ---

    @abstractmethod
    async def list_challenges(self) -> list[ChallengeDefinition]: ...

    @abstractmethod
    async def list_badges(self) -> list[BadgeDefinition]: ...

    @abstractmethod
    async def ensure_challenge(self, challenge: ChallengeDefinition) -> bool:
        """Insert the definition if its id is unknown. Returns True if inserted."""
        ...

    @abstractmethod
    async def ensure_badge(self, badge: BadgeDefinition) -> bool:
        """Insert the definition if its id is unknown. Returns True if inserted."""
        ...

    # --- Reads ---

    @abstractmethod
    async def get_profile(self, user_id: str) -> ProfileRecord | None: ...

    @abstractmethod
    async def get_challenge_progress(self, user_id: str, challenge_id: str) -> ChallengeProgressRecord | None: ...

    @abstractmethod
    async def top_profiles(self, limit: int) -> list[ProfileRecord]:
        """Profiles ordered by total_points desc, ties broken by id."""
        ...

    @abstractmethod
    async def list_ledger_entries(self, user_id: str, offset: int, limit: int) -> list[LedgerEntry]:
        """Ledger rows for a user, newest first."""
        ...

    @abstractmethod
    async def count_ledger_entries(self, user_id: str) -> int: ...

    @abstractmethod
    async def list_user_badges(self, user_id: str) -> list[BadgeAward]: ...

    @abstractmethod
    async def list_user_challenge_progress(self, user_id: str) -> list[ChallengeProgressRecord]: ...


class InMemoryGamificationStore(GamificationStore):
    """Process-local store with the same uniqueness rules as the SQL schema.

    A single asyncio.Lock stands in for row locks so that each operation is
    atomic with respect to other coroutines.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._profiles: dict[str, ProfileRecord] = {}
        self._ledger: dict[tuple[str, str, str], LedgerEntry] = {}
        self._challenges: dict[str, ChallengeDefinition] = {}
        self._progress: dict[tuple[str, str], ChallengeProgressRecord] = {}
        self._visits: set[tuple[str, str, str]] = set()
        self._badges: dict[str, BadgeDefinition] = {}
        self._awards: dict[tuple[str, str], BadgeAward] = {}

    # --- Fixtures for profiles, which are owned by the signup flow ---

    def add_profile(
        self,
        user_id: str,
        total_points: int = 0,
        display_name: str | None = None,
        avatar_url: str | None = None,
    ) -> ProfileRecord:
        profile = ProfileRecord(
            id=user_id,
            total_points=total_points,
            display_name=display_name,
            avatar_url=avatar_url,
        )
        self._profiles[user_id] = profile
        return profile

    # --- Writes ---

    async def insert_ledger_entry(self, entry: LedgerEntry) -> None:
        key = (entry.user_id, entry.event_type, entry.event_id)
        async with self._lock:
            if key in self._ledger:
                raise DuplicateKeyError("point_transactions", key)
            if entry.created_at is None:
                entry = replace(entry, created_at=datetime.now(timezone.utc))
            self._ledger[key] = entry

    async def increment_total_points(self, user_id: str, delta: int) -> int:
        async with self._lock:
            profile = self._profiles.get(user_id)
            if profile is None:
                raise ProfileNotFoundError(user_id)
            profile = replace(profile, total_points=profile.total_points + delta)
            self._profiles[user_id] = profile
            return profile.total_points

    async def record_location_visit(self, user_id: str, challenge_id: str, location_id: str) -> bool:
        key = (user_id, challenge_id, location_id)
        async with self._lock:
            if key in self._visits:
                return False
            self._visits.add(key)
            return True

    async def advance_challenge(
        self,
        user_id: str,
        challenge_id: str,
        goal: int,
        now: datetime,
    ) -> ChallengeProgressRecord | None:
        key = (user_id, challenge_id)
        async with self._lock:
            current = self._progress.get(key)
            if current is not None and current.is_completed:
                return None
            progress = (current.progress if current else 0) + 1
            record = ChallengeProgressRecord(
                user_id=user_id,
                challenge_id=challenge_id,
                progress=progress,
                completed_at=now if progress >= goal else None,
            )
            self._progress[key] = record
            return record

    async def insert_badge_award(self, user_id: str, badge_id: str, now: datetime) -> None:
        key = (user_id, badge_id)
        async with self._lock:
            if key in self._awards:
                raise DuplicateKeyError("user_badges", key)
            self._awards[key] = BadgeAward(user_id=user_id, badge_id=badge_id, earned_at=now)

    # --- Definitions ---

    async def list_challenges(self) -> list[ChallengeDefinition]:
        return list(self._challenges.values())

    async def list_badges(self) -> list[BadgeDefinition]:
        return list(self._badges.values())

    async def ensure_challenge(self, challenge: ChallengeDefinition) -> bool:
        if challenge.id in self._challenges:
            return False
        self._challenges[challenge.id] = challenge
        return True

    async def ensure_badge(self, badge: BadgeDefinition) -> bool:
        if badge.id in self._badges:
            return False
        self._badges[badge.id] = badge
        return True

    # --- Reads ---

    async def get_profile(self, user_id: str) -> ProfileRecord | None:
        return self._profiles.get(user_id)

    async def get_challenge_progress(self, user_id: str, challenge_id: str) -> ChallengeProgressRecord | None:
        return self._progress.get((user_id, challenge_id))

    async def top_profiles(self, limit: int) -> list[ProfileRecord]:
        ranked = sorted(self._profiles.values(), key=lambda p: (-p.total_points, p.id))
        return ranked[:limit]

    async def list_ledger_entries(self, user_id: str, offset: int, limit: int) -> list[LedgerEntry]:
        entries = [e for e in self._ledger.values() if e.user_id == user_id]
        # Insertion order breaks ties between equal timestamps.
        entries.reverse()
        entries.sort(key=lambda e: e.created_at, reverse=True)  # type: ignore[arg-type, return-value]
        return entries[offset:offset + limit]

    async def count_ledger_entries(self, user_id: str) -> int:
        return sum(1 for e in self._ledger.values() if e.user_id == user_id)

    async def list_user_badges(self, user_id: str) -> list[BadgeAward]:
        return [a for a in self._awards.values() if a.user_id == user_id]

    async def list_user_challenge_progress(self, user_id: str) -> list[ChallengeProgressRecord]:
        return [p for p in self._progress.values() if p.user_id == user_id]
