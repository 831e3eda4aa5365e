from __future__ import annotations

from typing import Any, Dict, List, Optional

from event_planner.db import fits_row_id
from event_planner.errors import BadRequest, Conflict, NotFound
from event_planner.util.time import utcnow_iso

from .ownership import is_owner, require_owner


def _clean_name(name: str) -> str:
    n = (name or "").strip()
    if not n:
        raise BadRequest("Category name is required")
    return n


def get_category(conn: Any, category_id: int) -> Optional[Any]:
    if not fits_row_id(category_id):
        return None
    return conn.execute(
        "SELECT * FROM categories WHERE category_id=?",
        (int(category_id),),
    ).fetchone()


def require_owned_category(conn: Any, *, category_id: int, user_id: int) -> Any:
    """Category lookup for references from other records.

    Unknown and foreign categories are indistinguishable to the caller.
    """
    row = get_category(conn, category_id)
    if not is_owner(row, user_id):
        raise NotFound("Category not found")
    return row


def create_category(conn: Any, *, user_id: int, name: str) -> Dict[str, Any]:
    n = _clean_name(name)

    # Not atomic against a concurrent insert of the same name.
    existing = conn.execute(
        "SELECT 1 FROM categories WHERE user_id=? AND name=?",
        (int(user_id), n),
    ).fetchone()
    if existing is not None:
        raise Conflict("Category already exists")

    row = conn.execute(
        """
        INSERT INTO categories (name, user_id, created_at)
        VALUES (?,?,?)
        RETURNING category_id
        """,
        (n, int(user_id), utcnow_iso()),
    ).fetchone()
    return dict(get_category(conn, int(row["category_id"])))


def list_categories(conn: Any, *, user_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT * FROM categories WHERE user_id=? ORDER BY category_id",
        (int(user_id),),
    ).fetchall()
    return [dict(r) for r in rows]


def update_category(conn: Any, *, category_id: int, user_id: int, name: str) -> Dict[str, Any]:
    require_owner(get_category(conn, category_id), user_id, what="Category")
    n = _clean_name(name)

    conn.execute(
        "UPDATE categories SET name=? WHERE category_id=?",
        (n, int(category_id)),
    )
    return dict(get_category(conn, category_id))


def delete_category(conn: Any, *, category_id: int, user_id: int) -> None:
    """Remove a category. Its events stay, with category_id set to NULL."""
    require_owner(get_category(conn, category_id), user_id, what="Category")
    conn.execute("DELETE FROM categories WHERE category_id=?", (int(category_id),))
