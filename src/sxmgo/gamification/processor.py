"""Gamification event processor.

Turns one user action into its gamification side effects:

1. Look up the points for the event type.
2. Insert the ledger entry. A duplicate (user, type, event id) ends
   processing with a duplicate result and no other writes.
3. Atomically credit the points to the profile total.
4. Advance every challenge the event counts toward.
5. Award every points-threshold badge the new total has reached.

The steps run sequentially and are not wrapped in a transaction; a failure
after step 2 leaves the earlier writes in place. Resubmitting the same event
is always safe because step 2 rejects it.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

import structlog

from sxmgo.exceptions import DuplicateKeyError, MissingEventIdError, UnauthenticatedError
from sxmgo.gamification.entities import (
    AwardedBadge,
    ChallengeDefinition,
    EventResult,
    LedgerEntry,
    ProgressUpdate,
)
from sxmgo.gamification.rules import (
    CHECKIN,
    DEFAULT_POINT_RULES,
    LOCATION_GATED_GOALS,
    POINTS_THRESHOLD,
    GamifyEvent,
    event_counts_toward,
    points_for,
)
from sxmgo.gamification.store import GamificationStore

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventProcessor:
    """Applies point, challenge and badge rules for user events."""

    def __init__(
        self,
        store: GamificationStore,
        point_rules: Mapping[str, int] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.point_rules = dict(point_rules) if point_rules is not None else dict(DEFAULT_POINT_RULES)
        self.clock = clock

    async def process_event(
        self,
        user_id: str | None,
        event_type: str | None,
        event_id: str | None,
        meta: Mapping[str, Any] | None = None,
    ) -> EventResult:
        """Process one event and return the summary of its side effects.

        Raises:
            UnauthenticatedError: user_id is missing.
            MissingEventIdError: event_id is missing.
            ProfileNotFoundError: the user has no profile row.
            PersistenceError: any other store failure.
        """
        if not user_id:
            raise UnauthenticatedError("Missing authorization header")
        if not event_id:
            raise MissingEventIdError()

        event = GamifyEvent(
            user_id=user_id,
            event_type=event_type if event_type is not None else CHECKIN,
            event_id=event_id,
            meta=dict(meta or {}),
        )
        log = logger.bind(user_id=event.user_id, event_type=event.event_type, event_id=event.event_id)

        points = points_for(event.event_type, self.point_rules)

        try:
            await self.store.insert_ledger_entry(
                LedgerEntry(
                    user_id=event.user_id,
                    event_type=event.event_type,
                    event_id=event.event_id,
                    points=points,
                    metadata=event.meta,
                )
            )
        except DuplicateKeyError:
            log.info("duplicate_event")
            return EventResult.duplicate_event()

        new_total = await self.store.increment_total_points(event.user_id, points)

        result = EventResult(points_awarded=points, duplicate=False, new_total_points=new_total)
        await self._evaluate_challenges(event, result)
        await self._evaluate_badges(event.user_id, new_total, result)

        log.info(
            "gamify_event_processed",
            points_awarded=points,
            new_total_points=new_total,
            completed_challenges=result.completed_challenges,
            new_badges=[b.badge_id for b in result.new_badges],
        )
        return result

    async def _evaluate_challenges(self, event: GamifyEvent, result: EventResult) -> None:
        challenges = await self.store.list_challenges()
        for challenge in challenges:
            if not await self._qualifies(event, challenge):
                continue

            updated = await self.store.advance_challenge(
                event.user_id, challenge.id, challenge.goal_value, self.clock()
            )
            if updated is None:
                continue  # already completed

            result.progress_updates.append(
                ProgressUpdate(challenge_id=challenge.id, progress=updated.progress, goal=challenge.goal_value)
            )
            if updated.is_completed:
                result.completed_challenges.append(challenge.id)
                logger.info("challenge_completed", user_id=event.user_id, challenge_id=challenge.id)

    async def _qualifies(self, event: GamifyEvent, challenge: ChallengeDefinition) -> bool:
        if not event_counts_toward(challenge, event):
            return False
        if challenge.goal_type not in LOCATION_GATED_GOALS:
            return True

        location_id = event.location_id
        if location_id is None:
            return False
        existing = await self.store.get_challenge_progress(event.user_id, challenge.id)
        if existing is not None and existing.is_completed:
            return False
        return await self.store.record_location_visit(event.user_id, challenge.id, location_id)

    async def _evaluate_badges(self, user_id: str, total_points: int, result: EventResult) -> None:
        badges = await self.store.list_badges()
        for badge in badges:
            if badge.rule_type != POINTS_THRESHOLD:
                continue
            if total_points < badge.threshold:
                continue

            try:
                await self.store.insert_badge_award(user_id, badge.id, self.clock())
            except DuplicateKeyError:
                continue  # already awarded

            result.new_badges.append(AwardedBadge(badge_id=badge.id, tier=badge.tier))
            logger.info("badge_awarded", user_id=user_id, badge_id=badge.id, tier=badge.tier)
