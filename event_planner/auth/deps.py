from __future__ import annotations

from fastapi import Request

from event_planner.errors import PlannerError, Unauthorized
from event_planner.models import Identity

from .security import verify_access_token


def get_current_identity(request: Request) -> Identity:
    """Authenticate a request from its token header.

    The token travels in a custom header (`x-auth-token` by default), not
    as a bearer credential. Only the token is checked here: no database
    access happens before the caller is authenticated.
    """

    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise PlannerError("Server error")

    token = request.headers.get(cfg.AUTH_TOKEN_HEADER)
    if not token:
        raise Unauthorized("No token, authorization denied")

    user_id = verify_access_token(token=token, secret=cfg.AUTH_JWT_SECRET)

    identity = Identity(user_id=user_id)
    request.state.identity = identity
    return identity
