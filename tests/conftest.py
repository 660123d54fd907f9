"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ["SXMGO_JWT_SECRET"] = "test-secret-with-enough-bytes-for-hs256"
os.environ["SXMGO_SEED_ON_STARTUP"] = "false"
os.environ["SXMGO_LOG_FORMAT"] = "console"

from sxmgo.config import get_settings  # noqa: E402
from sxmgo.dependencies import get_store  # noqa: E402
from sxmgo.gamification.entities import BadgeDefinition, ChallengeDefinition  # noqa: E402
from sxmgo.gamification.store import InMemoryGamificationStore  # noqa: E402
from sxmgo.main import create_app  # noqa: E402

get_settings.cache_clear()

TEST_USER_ID = "7f1c2a9e-4b1d-4c55-9a0e-2f5b1c3d4e5f"


def create_access_token(user_id: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Mint a token shaped like the auth provider's, signed with the test secret."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": user_id,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture
def store() -> InMemoryGamificationStore:
    """In-memory store with one profile at zero points and no definitions."""
    s = InMemoryGamificationStore()
    s.add_profile(TEST_USER_ID, total_points=0, display_name="Test Traveller")
    return s


@pytest.fixture
def beach_challenge() -> ChallengeDefinition:
    return ChallengeDefinition(
        id="beach_hopper",
        title="Beach Hopper",
        goal_type="count_by_category",
        goal_value=3,
        metadata={"category": "beach"},
    )


@pytest.fixture
def silver_badge() -> BadgeDefinition:
    return BadgeDefinition(id="points_silver", name="Silver", tier="silver", rule_type="points_threshold", threshold=50)


@pytest.fixture
def app(store: InMemoryGamificationStore):
    """Application with the store dependency pointed at the in-memory store."""
    application = create_app()
    application.dependency_overrides[get_store] = lambda: store
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client (no lifespan: no database or Redis)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization header for TEST_USER_ID."""
    return {"Authorization": f"Bearer {create_access_token(TEST_USER_ID)}"}


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, auth_headers: dict[str, str]) -> AsyncClient:
    client.headers.update(auth_headers)
    return client
