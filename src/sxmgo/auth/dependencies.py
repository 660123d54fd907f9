"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
import structlog
from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sxmgo.auth.jwt import verify_token
from sxmgo.exceptions import UnauthenticatedError

# auto_error=False so a missing header is reported as 401 in our error format.
_bearer = HTTPBearer(auto_error=False)

logger = structlog.get_logger()


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> str:
    """Verify the bearer token and return the user id from its ``sub`` claim."""
    if credentials is None:
        raise UnauthenticatedError("Missing authorization header")

    try:
        payload = verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        logger.info("token_rejected", reason=str(e))
        raise UnauthenticatedError("Invalid or expired token") from e

    return str(payload["sub"])
