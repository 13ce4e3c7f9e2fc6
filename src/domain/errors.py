"""
Error taxonomy shared by components and the HTTP layer.

Components never raise for expected outcomes. They return outputs carrying
a list of ErrorDetail; the API maps the first error code to a status.
"""

from dataclasses import dataclass

VALIDATION_ERROR = "VALIDATION_ERROR"
UNAUTHORIZED = "UNAUTHORIZED"
FORBIDDEN = "FORBIDDEN"
NOT_FOUND = "NOT_FOUND"
CONFLICT = "CONFLICT"
INVALID_TRANSITION = "INVALID_TRANSITION"
DEPTH_EXCEEDED = "DEPTH_EXCEEDED"
EDIT_WINDOW_EXPIRED = "EDIT_WINDOW_EXPIRED"
NOT_PUBLISHED = "NOT_PUBLISHED"
INTERNAL = "INTERNAL"

HTTP_STATUS_BY_CODE: dict[str, int] = {
    VALIDATION_ERROR: 400,
    UNAUTHORIZED: 401,
    FORBIDDEN: 403,
    NOT_FOUND: 404,
    CONFLICT: 409,
    INVALID_TRANSITION: 400,
    DEPTH_EXCEEDED: 400,
    EDIT_WINDOW_EXPIRED: 400,
    NOT_PUBLISHED: 400,
    INTERNAL: 500,
}


def http_status_for(code: str) -> int:
    return HTTP_STATUS_BY_CODE.get(code, 500)


@dataclass(frozen=True)
class ErrorDetail:
    """A single expected failure returned by a component."""

    code: str
    message: str
    field: str = ""


def internal_error() -> ErrorDetail:
    # Store details are logged, never returned to callers
    return ErrorDetail(code=INTERNAL, message="Internal error, please retry")


class StoreError(RuntimeError):
    """Raised by the persistence layer when the database call itself fails."""


class InvalidTransitionError(ValueError):
    """Raised when a lifecycle edge is not in the state machine."""
