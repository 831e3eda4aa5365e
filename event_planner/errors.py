"""Request-terminating failures.

Services raise these; the API layer turns them into `{"msg": ...}` JSON
responses with the matching status code. Anything else is treated as an
internal error and reduced to a generic 500.
"""

from __future__ import annotations


class PlannerError(Exception):
    status_code: int = 500
    default_msg: str = "Server error"

    def __init__(self, msg: str | None = None):
        self.msg = msg or self.default_msg
        super().__init__(self.msg)


class BadRequest(PlannerError):
    status_code = 400
    default_msg = "Invalid request"


class Conflict(PlannerError):
    """Duplicate user or category."""

    status_code = 400
    default_msg = "Already exists"


class InvalidCredentials(PlannerError):
    status_code = 400
    default_msg = "Invalid credentials"


class Unauthorized(PlannerError):
    """Missing or invalid token."""

    status_code = 401
    default_msg = "Token is not valid"


class Forbidden(PlannerError):
    """Valid token, but the record belongs to someone else.

    Reported as 401 to match the established API contract.
    """

    status_code = 401
    default_msg = "Not authorized"


class NotFound(PlannerError):
    status_code = 404
    default_msg = "Not found"
