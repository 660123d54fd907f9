"""Application exceptions.

Each error carries the HTTP status and the public message the error handler
renders as ``{"error": message}``. Internal details stay in the log.
"""

from __future__ import annotations


class SxmGoError(Exception):
    """Base application exception."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class UnauthenticatedError(SxmGoError):
    """Missing or invalid bearer credential."""

    status_code = 401
    message = "Invalid or expired token"


class InvalidRequestError(SxmGoError):
    """Malformed request, rejected before any write."""

    status_code = 400
    message = "Invalid request body"


class MissingEventIdError(InvalidRequestError):
    message = "Missing eventId"


class DuplicateKeyError(SxmGoError):
    """A uniqueness constraint rejected an insert.

    Raised by stores for ledger and badge-award conflicts. The processor
    always absorbs it, so it never reaches a client.
    """

    status_code = 409
    message = "Duplicate key"

    def __init__(self, table: str, key: tuple[object, ...]) -> None:
        self.table = table
        self.key = key
        super().__init__(f"Duplicate key in {table}: {key!r}")


class ProfileNotFoundError(SxmGoError):
    """No profile row exists for the authenticated user."""

    status_code = 500
    message = "Profile not found"

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__()


class PersistenceError(SxmGoError):
    """Any data-store failure other than a uniqueness conflict."""

    status_code = 500
    message = "Failed to persist gamification data"

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__()
