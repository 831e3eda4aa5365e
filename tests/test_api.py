from datetime import datetime, timedelta, timezone

import jwt
import pytest

from conftest import register
from event_planner.api import server
from event_planner.auth.security import verify_access_token


def _category(client, headers, name="Work") -> dict:
    res = client.post("/api/categories", json={"name": name}, headers=headers)
    assert res.status_code == 200, res.text
    return res.json()


def _event(client, headers, category_id, day, name="Standup") -> dict:
    res = client.post(
        "/api/events",
        json={"name": name, "date": day, "time": "09:00", "categoryId": category_id},
        headers=headers,
    )
    assert res.status_code == 200, res.text
    return res.json()


def test_root_and_health(client):
    res = client.get("/")
    assert res.status_code == 200
    assert res.text == "Event Planning API is running"
    assert client.get("/health").json() == {"status": "ok"}


# -----------------------------
# Auth
# -----------------------------


def test_register_token_identifies_new_user(client, cfg):
    headers = register(client, "alice")

    me = client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    body = me.json()
    assert body["username"] == "alice"
    assert body["email"] == "alice@example.com"
    assert "password_hash" not in body

    token_user = verify_access_token(token=headers["x-auth-token"], secret=cfg.AUTH_JWT_SECRET)
    assert token_user == body["user_id"]


def test_register_existing_email_conflicts(client):
    register(client, "alice")
    res = client.post(
        "/api/auth/register",
        json={"username": "another", "email": "alice@example.com", "password": "different"},
    )
    assert res.status_code == 400
    assert res.json() == {"msg": "User already exists"}


def test_register_missing_field_is_rejected(client):
    res = client.post("/api/auth/register", json={"username": "alice", "password": "password123"})
    assert res.status_code == 422
    body = res.json()
    assert set(body) == {"msg"}
    assert body["msg"].startswith("email")


def test_login(client):
    register(client, "alice")

    ok = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "password123"})
    assert ok.status_code == 200
    assert ok.json()["token"]

    bad = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong"})
    assert bad.status_code == 400
    assert bad.json() == {"msg": "Invalid credentials"}

    unknown = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "password123"})
    assert unknown.status_code == 400
    assert unknown.json() == {"msg": "Invalid credentials"}


def test_change_password(client):
    headers = register(client, "alice")

    res = client.put(
        "/api/auth/password",
        json={"currentPassword": "password123", "newPassword": "brand-new-pw"},
        headers=headers,
    )
    assert res.status_code == 200
    assert res.json() == {"msg": "Password updated"}

    old = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "password123"})
    assert old.status_code == 400
    new = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "brand-new-pw"})
    assert new.status_code == 200


# -----------------------------
# Authorization guard
# -----------------------------


PROTECTED = [
    ("get", "/api/auth/me"),
    ("put", "/api/auth/password"),
    ("post", "/api/categories"),
    ("get", "/api/categories"),
    ("put", "/api/categories/1"),
    ("delete", "/api/categories/1"),
    ("post", "/api/events"),
    ("get", "/api/events"),
    ("get", "/api/events/category/1"),
    ("put", "/api/events/1"),
    ("delete", "/api/events/1"),
]


@pytest.mark.parametrize("method,path", PROTECTED)
def test_missing_token_is_rejected_before_data_access(client, monkeypatch, method, path):
    def _no_db(*args, **kwargs):
        raise AssertionError("database touched")

    monkeypatch.setattr(server, "connect", _no_db)

    res = client.request(method, path, json={})
    assert res.status_code == 401
    assert res.json() == {"msg": "No token, authorization denied"}


def test_invalid_and_expired_tokens_are_rejected(client, cfg):
    res = client.get("/api/categories", headers={"x-auth-token": "garbage"})
    assert res.status_code == 401
    assert res.json() == {"msg": "Token is not valid"}

    past = datetime.now(timezone.utc) - timedelta(hours=2)
    expired = jwt.encode({"user": {"id": 1}, "exp": int(past.timestamp())}, cfg.AUTH_JWT_SECRET, algorithm="HS256")
    res = client.get("/api/categories", headers={"x-auth-token": expired})
    assert res.status_code == 401

    forged = jwt.encode({"user": {"id": 1}}, "not-the-secret", algorithm="HS256")
    res = client.get("/api/categories", headers={"x-auth-token": forged})
    assert res.status_code == 401


def test_bearer_scheme_is_not_accepted(client):
    headers = register(client, "alice")
    res = client.get("/api/categories", headers={"Authorization": f"Bearer {headers['x-auth-token']}"})
    assert res.status_code == 401


# -----------------------------
# Categories
# -----------------------------


def test_category_crud(client):
    headers = register(client, "alice")

    work = _category(client, headers, "Work")
    assert work["name"] == "Work"

    dup = client.post("/api/categories", json={"name": "Work"}, headers=headers)
    assert dup.status_code == 400
    assert dup.json() == {"msg": "Category already exists"}

    res = client.put(f"/api/categories/{work['category_id']}", json={"name": "Office"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["name"] == "Office"

    assert [c["name"] for c in client.get("/api/categories", headers=headers).json()] == ["Office"]

    res = client.delete(f"/api/categories/{work['category_id']}", headers=headers)
    assert res.json() == {"msg": "Category removed"}
    assert client.get("/api/categories", headers=headers).json() == []

    missing = client.put("/api/categories/9999", json={"name": "x"}, headers=headers)
    assert missing.status_code == 404
    assert missing.json() == {"msg": "Category not found"}
    assert client.delete("/api/categories/9999", headers=headers).status_code == 404


def test_other_user_cannot_touch_category(client):
    a = register(client, "alice")
    b = register(client, "bob")
    c = _category(client, a, "C")

    res = client.put(f"/api/categories/{c['category_id']}", json={"name": "mine now"}, headers=b)
    assert res.status_code == 401
    assert res.json() == {"msg": "Not authorized"}

    res = client.delete(f"/api/categories/{c['category_id']}", headers=b)
    assert res.status_code == 401

    assert [x["name"] for x in client.get("/api/categories", headers=a).json()] == ["C"]
    assert client.get("/api/categories", headers=b).json() == []


# -----------------------------
# Events
# -----------------------------


def test_scenario_events_listed_by_date(client):
    register(client, "u1")
    login = client.post("/api/auth/login", json={"email": "u1@example.com", "password": "password123"})
    headers = {"x-auth-token": login.json()["token"]}

    work = _category(client, headers, "Work")
    _event(client, headers, work["category_id"], "2024-01-05", name="later")
    _event(client, headers, work["category_id"], "2024-01-01", name="earlier")

    events = client.get("/api/events", headers=headers).json()
    assert [e["date"] for e in events] == ["2024-01-01", "2024-01-05"]
    assert {e["category_name"] for e in events} == {"Work"}

    by_cat = client.get(f"/api/events/category/{work['category_id']}", headers=headers).json()
    assert [e["name"] for e in by_cat] == ["earlier", "later"]


def test_event_with_foreign_category_is_not_created(client):
    a = register(client, "alice")
    b = register(client, "bob")
    theirs = _category(client, b, "Gym")

    res = client.post(
        "/api/events",
        json={"name": "x", "date": "2024-01-01", "time": "09:00", "categoryId": theirs["category_id"]},
        headers=a,
    )
    assert res.status_code == 404
    assert res.json() == {"msg": "Category not found"}
    assert client.get("/api/events", headers=a).json() == []

    res = client.get(f"/api/events/category/{theirs['category_id']}", headers=a)
    assert res.status_code == 404


def test_event_update_and_delete(client):
    a = register(client, "alice")
    b = register(client, "bob")
    work = _category(client, a, "Work")
    home = _category(client, a, "Home")
    e = _event(client, a, work["category_id"], "2024-01-05")

    res = client.put(
        f"/api/events/{e['event_id']}",
        json={"description": "daily sync", "categoryId": home["category_id"]},
        headers=a,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["description"] == "daily sync"
    assert body["category_name"] == "Home"
    assert body["name"] == "Standup"
    assert body["date"] == "2024-01-05"

    assert client.put(f"/api/events/{e['event_id']}", json={"name": "x"}, headers=b).status_code == 401
    assert client.delete(f"/api/events/{e['event_id']}", headers=b).status_code == 401
    assert client.put("/api/events/9999", json={"name": "x"}, headers=a).json() == {"msg": "Event not found"}

    res = client.delete(f"/api/events/{e['event_id']}", headers=a)
    assert res.json() == {"msg": "Event removed"}
    assert client.get("/api/events", headers=a).json() == []


def test_event_accepts_iso_datetime(client):
    headers = register(client, "alice")
    work = _category(client, headers, "Work")

    e = _event(client, headers, work["category_id"], "2024-01-05T10:00:00.000Z")
    assert e["date"] == "2024-01-05"

    res = client.post(
        "/api/events",
        json={"name": "x", "date": "someday", "time": "09:00", "categoryId": work["category_id"]},
        headers=headers,
    )
    assert res.status_code == 400
    assert res.json() == {"msg": "Invalid event date"}


def test_event_update_explicit_null_clears_description(client):
    headers = register(client, "alice")
    work = _category(client, headers, "Work")
    res = client.post(
        "/api/events",
        json={
            "name": "Review",
            "description": "quarterly",
            "date": "2024-01-05",
            "time": "10:30",
            "categoryId": work["category_id"],
        },
        headers=headers,
    )
    event_id = res.json()["event_id"]

    kept = client.put(f"/api/events/{event_id}", json={"time": "11:00"}, headers=headers).json()
    assert kept["description"] == "quarterly"

    cleared = client.put(f"/api/events/{event_id}", json={"description": None}, headers=headers).json()
    assert cleared["description"] is None
    assert cleared["time"] == "11:00"


def test_events_survive_category_delete(client):
    headers = register(client, "alice")
    work = _category(client, headers, "Work")
    _event(client, headers, work["category_id"], "2024-01-05", name="kept")

    res = client.delete(f"/api/categories/{work['category_id']}", headers=headers)
    assert res.status_code == 200

    events = client.get("/api/events", headers=headers).json()
    assert [(e["name"], e["category_id"], e["category_name"]) for e in events] == [("kept", None, None)]


# -----------------------------
# Errors
# -----------------------------


def test_unhandled_error_becomes_generic_500(client, monkeypatch):
    headers = register(client, "alice")

    def _boom(*args, **kwargs):
        raise RuntimeError("store exploded")

    monkeypatch.setattr(server, "list_categories", _boom)

    res = client.get("/api/categories", headers=headers)
    assert res.status_code == 500
    assert res.json() == {"msg": "Server error"}


@pytest.mark.parametrize(
    "method,path,body",
    [
        ("put", "/api/categories/99999999999999999999", {"name": "x"}),
        ("delete", "/api/categories/99999999999999999999", None),
        ("get", "/api/events/category/99999999999999999999", None),
        ("put", "/api/events/99999999999999999999", {"name": "x"}),
        ("delete", "/api/events/99999999999999999999", None),
        (
            "post",
            "/api/events",
            {"name": "x", "date": "2024-01-01", "time": "09:00", "categoryId": 99999999999999999999},
        ),
    ],
)
def test_oversized_ids_are_not_found(client, method, path, body):
    headers = register(client, "alice")
    res = client.request(method, path, json=body, headers=headers)
    assert res.status_code == 404
    assert res.json()["msg"].endswith("not found")


def test_validation_errors_use_msg_shape(client):
    headers = register(client, "alice")
    res = client.post("/api/events", json={"name": "x"}, headers=headers)
    assert res.status_code == 422
    assert set(res.json()) == {"msg"}

    res = client.put("/api/categories/abc", json={"name": "x"}, headers=headers)
    assert res.status_code == 422
    assert res.json()["msg"].startswith("path.category_id")
