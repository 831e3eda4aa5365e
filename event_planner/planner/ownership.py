from __future__ import annotations

from typing import Any

from event_planner.errors import Forbidden, NotFound


def is_owner(row: Any, user_id: int) -> bool:
    return row is not None and int(row["user_id"]) == int(user_id)


def require_owner(row: Any, user_id: int, *, what: str) -> Any:
    """Return `row` if it exists and belongs to `user_id`.

    Missing -> NotFound("<what> not found"); someone else's -> Forbidden.
    """
    if row is None:
        raise NotFound(f"{what} not found")
    if not is_owner(row, user_id):
        raise Forbidden("Not authorized")
    return row
