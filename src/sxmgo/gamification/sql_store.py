"""PostgreSQL implementation of the gamification store.

Conflicts are detected with ``INSERT ... ON CONFLICT DO NOTHING RETURNING``
so a duplicate never aborts the session's transaction. Counters change only
through single ``UPDATE``/``ON CONFLICT DO UPDATE`` statements. Each
mutating call commits on its own.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

import structlog
from sqlalchemy import DateTime, case, func, literal, null, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sxmgo.db.models import (
    Badge,
    Challenge,
    ChallengeLocationVisit,
    ChallengeProgress,
    PointTransaction,
    Profile,
    UserBadge,
)
from sxmgo.exceptions import DuplicateKeyError, PersistenceError, ProfileNotFoundError
from sxmgo.gamification.entities import (
    BadgeAward,
    BadgeDefinition,
    ChallengeDefinition,
    ChallengeProgressRecord,
    LedgerEntry,
    ProfileRecord,
)
from sxmgo.gamification.store import GamificationStore

logger = structlog.get_logger()


def _profile_record(row: Profile) -> ProfileRecord:
    return ProfileRecord(
        id=row.id,
        total_points=row.total_points,
        display_name=row.display_name,
        avatar_url=row.avatar_url,
    )


def _progress_record(row: ChallengeProgress) -> ChallengeProgressRecord:
    return ChallengeProgressRecord(
        user_id=row.user_id,
        challenge_id=row.challenge_id,
        progress=row.progress,
        completed_at=row.completed_at,
    )


class SqlGamificationStore(GamificationStore):
    """Gamification store backed by an AsyncSession."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @asynccontextmanager
    async def _write(self, operation: str) -> AsyncIterator[None]:
        """Run a mutating statement, commit it, and map driver errors to PersistenceError."""
        try:
            yield
            await self.db.commit()
        except (DuplicateKeyError, ProfileNotFoundError):
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("store_write_failed", operation=operation, error=str(exc))
            raise PersistenceError(operation) from exc

    @asynccontextmanager
    async def _read(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error("store_read_failed", operation=operation, error=str(exc))
            raise PersistenceError(operation) from exc

    # --- Writes ---

    async def insert_ledger_entry(self, entry: LedgerEntry) -> None:
        stmt = (
            pg_insert(PointTransaction)
            .values(
                user_id=entry.user_id,
                event_type=entry.event_type,
                event_id=entry.event_id,
                points=entry.points,
                event_metadata=entry.metadata,
            )
            .on_conflict_do_nothing(constraint="uq_point_transactions_event")
            .returning(PointTransaction.id)
        )
        async with self._write("insert_ledger_entry"):
            result = await self.db.execute(stmt)
            if result.scalar_one_or_none() is None:
                raise DuplicateKeyError(
                    "point_transactions", (entry.user_id, entry.event_type, entry.event_id)
                )

    async def increment_total_points(self, user_id: str, delta: int) -> int:
        stmt = (
            update(Profile)
            .where(Profile.id == user_id)
            .values(total_points=Profile.total_points + delta)
            .returning(Profile.total_points)
            .execution_options(synchronize_session=False)
        )
        async with self._write("increment_total_points"):
            result = await self.db.execute(stmt)
            total = result.scalar_one_or_none()
            if total is None:
                raise ProfileNotFoundError(user_id)
        return int(total)

    async def record_location_visit(self, user_id: str, challenge_id: str, location_id: str) -> bool:
        stmt = (
            pg_insert(ChallengeLocationVisit)
            .values(user_id=user_id, challenge_id=challenge_id, location_id=location_id)
            .on_conflict_do_nothing()
            .returning(ChallengeLocationVisit.location_id)
        )
        async with self._write("record_location_visit"):
            result = await self.db.execute(stmt)
            inserted = result.scalar_one_or_none() is not None
        return inserted

    async def advance_challenge(
        self,
        user_id: str,
        challenge_id: str,
        goal: int,
        now: datetime,
    ) -> ChallengeProgressRecord | None:
        stamp = literal(now, DateTime(timezone=True))
        next_progress = ChallengeProgress.progress + 1
        stmt = pg_insert(ChallengeProgress).values(
            user_id=user_id,
            challenge_id=challenge_id,
            progress=1,
            completed_at=now if goal <= 1 else None,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="challenge_progress_pkey",
            set_={
                "progress": next_progress,
                "completed_at": case((next_progress >= goal, stamp), else_=null()),
                "updated_at": stamp,
            },
            # Completed rows are frozen; the statement then returns nothing.
            where=ChallengeProgress.completed_at.is_(None),
        ).returning(ChallengeProgress.progress, ChallengeProgress.completed_at)

        async with self._write("advance_challenge"):
            result = await self.db.execute(stmt)
            row = result.first()
        if row is None:
            return None
        return ChallengeProgressRecord(
            user_id=user_id,
            challenge_id=challenge_id,
            progress=row.progress,
            completed_at=row.completed_at,
        )

    async def insert_badge_award(self, user_id: str, badge_id: str, now: datetime) -> None:
        stmt = (
            pg_insert(UserBadge)
            .values(user_id=user_id, badge_id=badge_id, earned_at=now)
            .on_conflict_do_nothing(constraint="user_badges_pkey")
            .returning(UserBadge.badge_id)
        )
        async with self._write("insert_badge_award"):
            result = await self.db.execute(stmt)
            if result.scalar_one_or_none() is None:
                raise DuplicateKeyError("user_badges", (user_id, badge_id))

    # --- Definitions ---

    async def list_challenges(self) -> list[ChallengeDefinition]:
        async with self._read("list_challenges"):
            result = await self.db.execute(select(Challenge).order_by(Challenge.id))
            rows = result.scalars().all()
        return [
            ChallengeDefinition(
                id=c.id,
                title=c.title,
                goal_type=c.goal_type,
                goal_value=c.goal_value,
                metadata=c.challenge_metadata or {},
            )
            for c in rows
        ]

    async def list_badges(self) -> list[BadgeDefinition]:
        async with self._read("list_badges"):
            result = await self.db.execute(select(Badge).order_by(Badge.threshold, Badge.id))
            rows = result.scalars().all()
        return [
            BadgeDefinition(id=b.id, name=b.name, tier=b.tier, rule_type=b.rule_type, threshold=b.threshold)
            for b in rows
        ]

    async def ensure_challenge(self, challenge: ChallengeDefinition) -> bool:
        stmt = (
            pg_insert(Challenge)
            .values(
                id=challenge.id,
                title=challenge.title,
                goal_type=challenge.goal_type,
                goal_value=challenge.goal_value,
                challenge_metadata=challenge.metadata,
            )
            .on_conflict_do_nothing(index_elements=["id"])
            .returning(Challenge.id)
        )
        async with self._write("ensure_challenge"):
            result = await self.db.execute(stmt)
            inserted = result.scalar_one_or_none() is not None
        return inserted

    async def ensure_badge(self, badge: BadgeDefinition) -> bool:
        stmt = (
            pg_insert(Badge)
            .values(
                id=badge.id,
                name=badge.name,
                tier=badge.tier,
                rule_type=badge.rule_type,
                threshold=badge.threshold,
            )
            .on_conflict_do_nothing(index_elements=["id"])
            .returning(Badge.id)
        )
        async with self._write("ensure_badge"):
            result = await self.db.execute(stmt)
            inserted = result.scalar_one_or_none() is not None
        return inserted

    # --- Reads ---

    async def get_profile(self, user_id: str) -> ProfileRecord | None:
        async with self._read("get_profile"):
            result = await self.db.execute(select(Profile).where(Profile.id == user_id))
            row = result.scalar_one_or_none()
        return _profile_record(row) if row else None

    async def get_challenge_progress(self, user_id: str, challenge_id: str) -> ChallengeProgressRecord | None:
        async with self._read("get_challenge_progress"):
            result = await self.db.execute(
                select(ChallengeProgress).where(
                    ChallengeProgress.user_id == user_id,
                    ChallengeProgress.challenge_id == challenge_id,
                )
            )
            row = result.scalar_one_or_none()
        return _progress_record(row) if row else None

    async def top_profiles(self, limit: int) -> list[ProfileRecord]:
        async with self._read("top_profiles"):
            result = await self.db.execute(
                select(Profile)
                .order_by(Profile.total_points.desc(), Profile.id)
                .limit(limit)
            )
            rows = result.scalars().all()
        return [_profile_record(p) for p in rows]

    async def list_ledger_entries(self, user_id: str, offset: int, limit: int) -> list[LedgerEntry]:
        async with self._read("list_ledger_entries"):
            result = await self.db.execute(
                select(PointTransaction)
                .where(PointTransaction.user_id == user_id)
                .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
                .offset(offset)
                .limit(limit)
            )
            rows = result.scalars().all()
        return [
            LedgerEntry(
                user_id=e.user_id,
                event_type=e.event_type,
                event_id=e.event_id,
                points=e.points,
                metadata=e.event_metadata or {},
                created_at=e.created_at,
            )
            for e in rows
        ]

    async def count_ledger_entries(self, user_id: str) -> int:
        async with self._read("count_ledger_entries"):
            result = await self.db.execute(
                select(func.count()).select_from(PointTransaction).where(PointTransaction.user_id == user_id)
            )
            total = result.scalar_one()
        return int(total)

    async def list_user_badges(self, user_id: str) -> list[BadgeAward]:
        async with self._read("list_user_badges"):
            result = await self.db.execute(
                select(UserBadge)
                .where(UserBadge.user_id == user_id)
                .order_by(UserBadge.earned_at.desc())
            )
            rows = result.scalars().all()
        return [BadgeAward(user_id=b.user_id, badge_id=b.badge_id, earned_at=b.earned_at) for b in rows]

    async def list_user_challenge_progress(self, user_id: str) -> list[ChallengeProgressRecord]:
        async with self._read("list_user_challenge_progress"):
            result = await self.db.execute(
                select(ChallengeProgress)
                .where(ChallengeProgress.user_id == user_id)
                .order_by(ChallengeProgress.challenge_id)
            )
            rows = result.scalars().all()
        return [_progress_record(p) for p in rows]
