from __future__ import annotations

from typing import Any, Dict, Optional

from event_planner.db import fits_row_id
from event_planner.errors import BadRequest, Conflict, InvalidCredentials, NotFound
from event_planner.util.time import utcnow_iso

from .security import hash_password, verify_password


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def public_user(row: Any | Dict[str, Any]) -> Dict[str, Any]:
    d = dict(row)
    d.pop("password_hash", None)
    return d


def get_user_by_email(conn: Any, email: str) -> Optional[Any]:
    e = normalize_email(email)
    if not e:
        return None
    return conn.execute(
        "SELECT * FROM users WHERE email=?",
        (e,),
    ).fetchone()


def get_user_by_username(conn: Any, username: str) -> Optional[Any]:
    u = (username or "").strip()
    if not u:
        return None
    return conn.execute(
        "SELECT * FROM users WHERE username=?",
        (u,),
    ).fetchone()


def get_user_by_id(conn: Any, user_id: int) -> Optional[Any]:
    if not fits_row_id(user_id):
        return None
    return conn.execute(
        "SELECT * FROM users WHERE user_id=?",
        (int(user_id),),
    ).fetchone()


def get_public_user(conn: Any, user_id: int) -> Dict[str, Any]:
    row = get_user_by_id(conn, user_id)
    if row is None:
        raise NotFound("User not found")
    return public_user(row)


def verify_user_credentials(conn: Any, email: str, password: str) -> Any:
    """Return the user row for a matching email/password pair.

    Unknown email and wrong password fail identically.
    """
    row = get_user_by_email(conn, email)
    if row is None:
        raise InvalidCredentials("Invalid credentials")
    if not verify_password(password, str(row["password_hash"])):
        raise InvalidCredentials("Invalid credentials")
    return row


def create_user(
    conn: Any,
    *,
    username: str,
    email: str,
    password: str,
) -> Dict[str, Any]:
    u = (username or "").strip()
    e = normalize_email(email)
    if not u or not e or not password:
        raise BadRequest("Please include username, email and password")

    # Check-then-insert: concurrent registrations can race; the unique
    # indexes on users turn the loser into an internal error.
    if get_user_by_email(conn, e) is not None:
        raise Conflict("User already exists")
    if get_user_by_username(conn, u) is not None:
        raise Conflict("User already exists")

    now = utcnow_iso()
    row = conn.execute(
        """
        INSERT INTO users (username, email, password_hash, created_at, updated_at)
        VALUES (?,?,?,?,?)
        RETURNING user_id
        """,
        (u, e, hash_password(password), now, now),
    ).fetchone()
    return get_public_user(conn, int(row["user_id"]))


def change_password(
    conn: Any,
    *,
    user_id: int,
    current_password: str,
    new_password: str,
) -> None:
    row = get_user_by_id(conn, user_id)
    if row is None:
        raise NotFound("User not found")
    if not verify_password(current_password, str(row["password_hash"])):
        raise InvalidCredentials("Invalid credentials")
    if not new_password:
        raise BadRequest("New password is required")

    conn.execute(
        "UPDATE users SET password_hash=?, updated_at=? WHERE user_id=?",
        (hash_password(new_password), utcnow_iso(), int(user_id)),
    )
