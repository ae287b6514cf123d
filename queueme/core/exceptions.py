"""
Queue error taxonomy.

Every failure surfaced by the engine, the policy store or the gateway is a
``QueueError`` subclass. Each one carries the HTTP-equivalent status code an
outer routing layer should answer with, and renders the same error envelope
so messages stay consistent across components.
"""

from typing import Any, Dict, Optional


class QueueError(Exception):
    """Base class for all queue errors."""

    code = "queue_error"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> Dict[str, Any]:
        """Render the error envelope returned to callers."""
        return {"success": False, "code": self.code, "message": self.message}


class NotFoundError(QueueError):
    """Business or queue entry does not exist."""

    code = "not_found"
    status_code = 404


class InvalidArgumentError(QueueError):
    """A request field is missing or out of range."""

    code = "invalid_argument"
    status_code = 400


class QueueFullError(QueueError):
    """The business has reached its maximum number of waiting entries."""

    code = "queue_full"
    status_code = 400

    def __init__(self, message: str = "Queue is currently full. Please try again later."):
        super().__init__(message)


class PrioritySlotsFullError(QueueError):
    """All reserved priority slots are occupied by waiting entries."""

    code = "priority_slots_full"
    status_code = 400

    def __init__(self, message: str = "Priority slots are full."):
        super().__init__(message)


class ForbiddenError(QueueError):
    """The acting user may not touch the target business or entry."""

    code = "forbidden"
    status_code = 403


class LockTimeoutError(QueueError):
    """The business's admission lock could not be acquired in time."""

    code = "busy"
    status_code = 503
