from __future__ import annotations

import datetime
from typing import Any, Dict, List, Optional

from event_planner.db import fits_row_id
from event_planner.errors import BadRequest
from event_planner.util.time import iso_date, utcnow_iso

from .categories import require_owned_category
from .ownership import require_owner


# Event row + resolved category name (NULL once the category is deleted).
# Ties on date keep creation order.
_SELECT_EVENTS = """
    SELECT e.*, c.name AS category_name
    FROM events e
    LEFT JOIN categories c ON c.category_id = e.category_id
"""

_UPDATABLE = ("name", "description", "date", "time")


def _required(value: Optional[str], field: str) -> str:
    v = (value or "").strip()
    if not v:
        raise BadRequest(f"Event {field} is required")
    return v


def _date_text(value: Any) -> str:
    try:
        return iso_date(value)
    except ValueError:
        raise BadRequest("Invalid event date")


def get_event(conn: Any, event_id: int) -> Optional[Any]:
    if not fits_row_id(event_id):
        return None
    return conn.execute(
        "SELECT * FROM events WHERE event_id=?",
        (int(event_id),),
    ).fetchone()


def get_event_with_category(conn: Any, event_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        _SELECT_EVENTS + " WHERE e.event_id=?",
        (int(event_id),),
    ).fetchone()
    return dict(row) if row is not None else None


def create_event(
    conn: Any,
    *,
    user_id: int,
    name: str,
    date: datetime.date | str,
    time: str,
    category_id: int,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    require_owned_category(conn, category_id=category_id, user_id=user_id)

    row = conn.execute(
        """
        INSERT INTO events (name, description, date, time, category_id, user_id, created_at)
        VALUES (?,?,?,?,?,?,?)
        RETURNING event_id
        """,
        (
            _required(name, "name"),
            description,
            _date_text(date),
            _required(time, "time"),
            int(category_id),
            int(user_id),
            utcnow_iso(),
        ),
    ).fetchone()
    return get_event_with_category(conn, int(row["event_id"]))


def list_events(conn: Any, *, user_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        _SELECT_EVENTS + " WHERE e.user_id=? ORDER BY e.date ASC, e.event_id ASC",
        (int(user_id),),
    ).fetchall()
    return [dict(r) for r in rows]


def list_events_by_category(conn: Any, *, user_id: int, category_id: int) -> List[Dict[str, Any]]:
    require_owned_category(conn, category_id=category_id, user_id=user_id)
    rows = conn.execute(
        _SELECT_EVENTS
        + " WHERE e.user_id=? AND e.category_id=? ORDER BY e.date ASC, e.event_id ASC",
        (int(user_id), int(category_id)),
    ).fetchall()
    return [dict(r) for r in rows]


def update_event(
    conn: Any,
    *,
    event_id: int,
    user_id: int,
    fields: Dict[str, Any],
    category_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Apply a partial update.

    Only keys present in `fields` are written; unknown keys are ignored.
    An explicit None clears `description` and is rejected for the
    required fields.
    """
    require_owner(get_event(conn, event_id), user_id, what="Event")
    if category_id is not None:
        require_owned_category(conn, category_id=category_id, user_id=user_id)

    # Build dynamic SQL so we only touch provided fields.
    sets: list[tuple[str, Any]] = []
    for key in _UPDATABLE:
        if key not in fields:
            continue
        value = fields[key]
        if key == "date":
            value = _date_text(value)
        elif key in ("name", "time"):
            value = _required(value, key)
        sets.append((key, value))
    if category_id is not None:
        sets.append(("category_id", int(category_id)))

    if sets:
        assignments = ", ".join([f"{k}=?" for k, _ in sets])
        params = [v for _, v in sets] + [int(event_id)]
        conn.execute(f"UPDATE events SET {assignments} WHERE event_id=?", params)

    return get_event_with_category(conn, event_id)


def delete_event(conn: Any, *, event_id: int, user_id: int) -> None:
    require_owner(get_event(conn, event_id), user_id, what="Event")
    conn.execute("DELETE FROM events WHERE event_id=?", (int(event_id),))
