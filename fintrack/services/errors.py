"""Domain error hierarchy for the settlement and allocation engines.

Every error carries a stable machine-readable ``code`` so an outer layer
(HTTP, bot, CLI) can map it to its own response format.
"""


class FintrackError(Exception):
    """Base application error."""

    default_message = "Operation failed"
    code = "fintrack_error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(FintrackError):
    """A referenced category, user, bill, budget, goal, expense or link does not exist."""

    default_message = "Not found"
    code = "not_found"


class ForbiddenError(FintrackError):
    """Caller may not perform this operation on the entity."""

    default_message = "Forbidden"
    code = "forbidden"


class ValidationError(FintrackError):
    """Request payload is inconsistent (amount mismatch, bad participant list, ...)."""

    default_message = "Invalid request"
    code = "validation_error"


class ConcurrencyError(FintrackError):
    """A bucket total was changed by a concurrent transaction; retry the operation."""

    default_message = "Concurrent update detected, please retry"
    code = "concurrency_conflict"


def error_response(error: FintrackError) -> dict:
    """Create a standardized error payload."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
        }
    }


__all__ = [
    "FintrackError",
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "ConcurrencyError",
    "error_response",
]
