from typing import Dict

import pytest
from fastapi.testclient import TestClient

from event_planner.api.server import create_app
from event_planner.config import Config
from event_planner.db import connect, init_db


@pytest.fixture
def cfg(tmp_path) -> Config:
    return Config(DB_DSN=str(tmp_path / "planner.sqlite"), AUTH_JWT_SECRET="test-secret")


@pytest.fixture
def conn(cfg):
    init_db(cfg.DB_DSN)
    with connect(cfg.DB_DSN) as c:
        yield c


@pytest.fixture
def client(cfg):
    app = create_app(cfg)
    # Unhandled errors should come back as 500 responses, not test failures.
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


def register(client: TestClient, name: str, password: str = "password123") -> Dict[str, str]:
    """Register `name` and return headers carrying its token."""
    res = client.post(
        "/api/auth/register",
        json={"username": name, "email": f"{name}@example.com", "password": password},
    )
    assert res.status_code == 200, res.text
    return {"x-auth-token": res.json()["token"]}
