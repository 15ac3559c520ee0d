"""
Application error taxonomy.

Services raise these; handlers registered in ``giving.main`` render them into
the response envelope. Messages are client-safe; details stay in the logs.
"""

from typing import Any


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, errors: list[dict[str, Any]] | None = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationFailed(AppError):
    status_code = 400
    default_message = "Validation failed"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class NoDonationsFound(NotFound):
    default_message = "No completed donations found for the specified tax year"


class Conflict(AppError):
    status_code = 400
    default_message = "Resource already exists"


class InvalidStateTransition(AppError):
    status_code = 400
    default_message = "Invalid status transition"


class ServerError(AppError):
    status_code = 500
