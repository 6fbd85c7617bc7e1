# User API: registration, lookups, role changes, deletion, and the fraud cascade.
from __future__ import annotations

from fastapi.testclient import TestClient

from app.db import SessionLocal
from app import models


def test_register_defaults_to_user_role_and_is_idempotent(client: TestClient, register):
    r = client.post("/users", json={"email": "a@x.com", "name": "Alice"})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["acknowledged"] is True
    assert len(body["insertedId"]) == 24

    r2 = client.post("/users", json={"email": "A@X.com"})
    assert r2.status_code == 200
    assert r2.json() == {"message": "user already exists"}

    admin_headers, _ = register("root@example.com", role="admin")
    users = client.get("/users", headers=admin_headers).json()
    alice = next(u for u in users if u["email"] == "a@x.com")
    assert alice["role"] == "user"
    assert alice["name"] == "Alice"
    assert "passwordHash" not in alice and "password_hash" not in alice


def test_admin_emails_bootstrap(client: TestClient, monkeypatch):
    monkeypatch.setenv("ADMIN_EMAILS", "boss@example.com, other@example.com")
    r = client.post("/users", json={"email": "boss@example.com", "password": "boss-pass-123"})
    assert r.status_code == 201, r.text
    token = client.post("/jwt", json={"email": "boss@example.com", "password": "boss-pass-123"}).json()["token"]
    r = client.get("/users", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()[0]["role"] == "admin"


def test_admin_emails_bootstrap_requires_password(client: TestClient, monkeypatch):
    monkeypatch.setenv("ADMIN_EMAILS", "boss@example.com")
    r = client.post("/users", json={"email": "boss@example.com"})
    assert r.status_code == 400
    assert r.json() == {"error": True, "message": "A password is required for administrator accounts"}
    assert client.post("/jwt", json={"email": "boss@example.com"}).status_code == 401


def test_get_user_self_or_admin_only(client: TestClient, register):
    alice_headers, alice = register("alice@example.com")
    register("bob@example.com")
    admin_headers, _ = register("admin@example.com", role="admin")

    assert client.get("/users/alice@example.com", headers=alice_headers).json()["_id"] == alice["_id"]
    assert client.get("/users/bob@example.com", headers=alice_headers).status_code == 403
    assert client.get("/users/bob@example.com", headers=admin_headers).status_code == 200
    assert client.get("/users/nobody@example.com", headers=admin_headers).status_code == 404


def test_promote_to_agent_and_admin(client: TestClient, register):
    admin_headers, _ = register("admin@example.com", role="admin")
    user_headers, user = register("rising@example.com")

    r = client.patch(f"/users/agent/{user['_id']}", headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json() == {"acknowledged": True, "matchedCount": 1, "modifiedCount": 1}
    assert client.get("/users/rising@example.com", headers=user_headers).json()["role"] == "agent"

    r = client.patch(f"/users/admin/{user['_id']}", headers=admin_headers)
    assert r.json()["modifiedCount"] == 1
    assert client.get("/users/rising@example.com", headers=user_headers).json()["role"] == "admin"

    # Non-admins cannot promote
    plain_headers, plain = register("plain@example.com")
    assert client.patch(f"/users/admin/{plain['_id']}", headers=plain_headers).status_code == 403


def test_role_change_validates_id(client: TestClient, register):
    admin_headers, _ = register("admin@example.com", role="admin")
    r = client.patch("/users/agent/not-an-id", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["error"] is True

    r = client.patch("/users/agent/507f1f77bcf86cd799439011", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["matchedCount"] == 0


def test_delete_user(client: TestClient, register):
    admin_headers, _ = register("admin@example.com", role="admin")
    _, victim = register("leaving@example.com")

    r = client.delete(f"/users/{victim['_id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["deletedCount"] == 1

    r = client.delete(f"/users/{victim['_id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["deletedCount"] == 0


def test_fraud_cascade_rejects_agent_listings(client: TestClient, register, create_property):
    admin_headers, _ = register("admin@example.com", role="admin")
    agent_headers, agent = register("shady@example.com", role="agent")
    other_headers, _ = register("honest@example.com", role="agent")

    p1 = create_property(agent_headers, title="Shady One")
    p2 = create_property(agent_headers, title="Shady Two")
    p3 = create_property(other_headers, title="Honest Place")
    for pid in (p1, p2, p3):
        assert client.patch(f"/properties/verify/{pid}", headers=admin_headers).status_code == 200
    client.patch(f"/properties/advertise/{p1}", headers=admin_headers)

    r = client.patch(f"/users/fraud/{agent['_id']}", headers=admin_headers, json={"email": "shady@example.com"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["matchedCount"] == 1
    assert body["modifiedCount"] == 1
    assert body["propertiesRejected"] == 2

    for pid in (p1, p2):
        prop = client.get(f"/properties/{pid}").json()
        assert prop["status"] == "rejected"
        assert prop["advertised"] is False
    assert client.get(f"/properties/{p3}").json()["status"] == "verified"

    # Flagged accounts can no longer write
    r = client.post(
        "/properties",
        headers=agent_headers,
        json={"title": "Again", "location": "Nowhere", "priceRange": "$1"},
    )
    assert r.status_code == 403


def test_fraud_cascade_refuses_mismatched_email(client: TestClient, register, create_property):
    admin_headers, _ = register("admin@example.com", role="admin")
    agent_headers, agent = register("agent@example.com", role="agent")
    victim_headers, _ = register("victim@example.com", role="agent")
    victim_pid = create_property(victim_headers)

    r = client.patch(f"/users/fraud/{agent['_id']}", headers=admin_headers, json={"email": "victim@example.com"})
    assert r.status_code == 400

    db = SessionLocal()
    try:
        assert db.get(models.User, agent["_id"]).role == "agent"
        assert db.get(models.Property, victim_pid).status == "pending"
    finally:
        db.close()


def test_fraud_without_body_uses_stored_email(client: TestClient, register, create_property):
    admin_headers, _ = register("admin@example.com", role="admin")
    agent_headers, agent = register("agent@example.com", role="agent")
    pid = create_property(agent_headers)

    r = client.patch(f"/users/fraud/{agent['_id']}", headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json()["propertiesRejected"] == 1
    assert client.get(f"/properties/{pid}").json()["status"] == "rejected"

    r = client.patch("/users/fraud/507f1f77bcf86cd799439011", headers=admin_headers)
    assert r.status_code == 404
