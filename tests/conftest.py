# Pytest configuration for API tests.
# Forces a local SQLite DB, disables Redis, and wires the JWT secret for deterministic runs.
import os
from typing import Callable, Iterator, Tuple

import pytest
from fastapi.testclient import TestClient

# Test-time environment: local SQLite DB, Redis disabled, predictable JWT secret
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.pop("AUTH_MODE", None)

import sys
# Ensure the repo root is on sys.path so 'app' resolves when running pytest from anywhere
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app.main import app  # noqa: E402
from app.db import Base, SessionLocal, engine  # noqa: E402
from app import models  # noqa: E402


@pytest.fixture(autouse=True)
def _clean_db() -> Iterator[None]:
    """
    Function-level isolation: drop and recreate schema before each test.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def client() -> Iterator[TestClient]:
    """
    FastAPI TestClient bound to the application for HTTP-level tests.
    """
    with TestClient(app) as c:
        yield c


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def set_role(email: str, role: str) -> None:
    """Change a user's role directly in the database (bootstrap admins and agents)."""
    db = SessionLocal()
    try:
        user = db.query(models.User).filter(models.User.email == email).first()
        assert user is not None, email
        user.role = role
        db.add(user)
        db.commit()
    finally:
        db.close()


@pytest.fixture()
def register(client: TestClient) -> Callable[..., Tuple[dict, dict]]:
    """
    Register a user, optionally set their role, and mint a token.

    Returns (auth headers, user JSON as served by GET /users/{email}).
    """
    def _register(email: str, role: str = "user", name: str | None = None) -> Tuple[dict, dict]:
        r = client.post("/users", json={"email": email, "name": name or email.split("@")[0]})
        assert r.status_code == 201, r.text
        if role != "user":
            set_role(email, role)
        r = client.post("/jwt", json={"email": email})
        assert r.status_code == 200, r.text
        headers = auth_headers(r.json()["token"])
        me = client.get(f"/users/{email}", headers=headers)
        assert me.status_code == 200, me.text
        return headers, me.json()

    return _register


@pytest.fixture()
def create_property(client: TestClient) -> Callable[..., str]:
    """POST a property as the given caller and return its id."""
    def _create(headers: dict, title: str = "Lake House", price_range: str = "$300,000 - $400,000", **extra) -> str:
        body = {
            "title": title,
            "location": extra.pop("location", "Austin, TX"),
            "priceRange": price_range,
            "description": extra.pop("description", "Three bedrooms near the lake"),
            **extra,
        }
        r = client.post("/properties", headers=headers, json=body)
        assert r.status_code == 201, r.text
        return r.json()["insertedId"]

    return _create
