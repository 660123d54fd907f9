"""Gamification tables.

Creates point_transactions, challenges, challenge_progress,
challenge_location_visits, badges and user_badges. The profiles table is
owned by the signup flow and is only created here when missing.

Revision ID: 001_gamification_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_gamification_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Profiles ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS profiles (
            id VARCHAR(64) PRIMARY KEY,
            display_name VARCHAR(64),
            avatar_url TEXT,
            total_points BIGINT NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_profiles_total_points
        ON profiles(total_points DESC, id)
    """)

    # --- Point ledger ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS point_transactions (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            event_type VARCHAR(64) NOT NULL,
            event_id VARCHAR(128) NOT NULL,
            points INTEGER NOT NULL,
            metadata JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_point_transactions_event UNIQUE (user_id, event_type, event_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_point_transactions_user_created
        ON point_transactions(user_id, created_at)
    """)

    # --- Challenges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS challenges (
            id VARCHAR(64) PRIMARY KEY,
            title VARCHAR(128) NOT NULL,
            goal_type VARCHAR(32) NOT NULL,
            goal_value INTEGER NOT NULL CHECK (goal_value > 0),
            metadata JSONB NOT NULL DEFAULT '{}'
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS challenge_progress (
            user_id VARCHAR(64) NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            challenge_id VARCHAR(64) NOT NULL REFERENCES challenges(id),
            progress INTEGER NOT NULL DEFAULT 0,
            completed_at TIMESTAMPTZ,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT challenge_progress_pkey PRIMARY KEY (user_id, challenge_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS challenge_location_visits (
            user_id VARCHAR(64) NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            challenge_id VARCHAR(64) NOT NULL REFERENCES challenges(id),
            location_id VARCHAR(128) NOT NULL,
            visited_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT challenge_location_visits_pkey PRIMARY KEY (user_id, challenge_id, location_id)
        )
    """)

    # --- Badges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS badges (
            id VARCHAR(64) PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            tier VARCHAR(16) NOT NULL,
            rule_type VARCHAR(32) NOT NULL,
            threshold INTEGER NOT NULL
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_badges (
            user_id VARCHAR(64) NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            badge_id VARCHAR(64) NOT NULL REFERENCES badges(id),
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_badges_pkey PRIMARY KEY (user_id, badge_id)
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_badges")
    op.execute("DROP TABLE IF EXISTS badges")
    op.execute("DROP TABLE IF EXISTS challenge_location_visits")
    op.execute("DROP TABLE IF EXISTS challenge_progress")
    op.execute("DROP TABLE IF EXISTS challenges")
    op.execute("DROP TABLE IF EXISTS point_transactions")
