"""
JWT verification for tokens issued by the managed auth provider.

This service never issues tokens; it only checks them.
"""

from __future__ import annotations

from typing import Any

import jwt

from sxmgo.config import get_settings


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode a bearer token.

    Args:
        token: The encoded JWT string.

    Returns:
        Decoded payload dictionary.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or has no subject.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        msg = "Token has no subject"
        raise jwt.InvalidTokenError(msg)

    return payload
