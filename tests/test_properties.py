# Property API: initial status by role, moderation, search/filter/sort/paging, ownership, and deletion.
from __future__ import annotations

from fastapi.testclient import TestClient


def test_initial_status_depends_on_author_role(client: TestClient, register, create_property):
    agent_headers, agent = register("agent@example.com", role="agent")
    admin_headers, _ = register("admin@example.com", role="admin")

    agent_pid = create_property(agent_headers, title="Agent Listing")
    admin_pid = create_property(admin_headers, title="Admin Listing")

    agent_prop = client.get(f"/properties/{agent_pid}").json()
    assert agent_prop["status"] == "pending"
    assert agent_prop["advertised"] is False
    assert agent_prop["agentEmail"] == "agent@example.com"
    assert agent_prop["priceRange"] == "$300,000 - $400,000"
    assert agent_prop["priceMin"] == 300000
    assert agent_prop["priceMax"] == 400000

    assert client.get(f"/properties/{admin_pid}").json()["status"] == "verified"


def test_agent_email_comes_from_caller_not_body(client: TestClient, register, create_property):
    headers, _ = register("real@example.com", role="agent")
    pid = create_property(headers, agentEmail="spoofed@example.com")
    assert client.get(f"/properties/{pid}").json()["agentEmail"] == "real@example.com"


def test_user_listing_stays_pending_until_admin_verifies(client: TestClient, register, create_property):
    user_headers, user = register("a@x.com")
    admin_headers, _ = register("admin@example.com", role="admin")

    pid = create_property(user_headers)
    assert client.get(f"/properties/{pid}").json()["status"] == "pending"

    r = client.patch(f"/users/agent/{user['_id']}", headers=admin_headers)
    assert r.status_code == 200
    assert client.get(f"/properties/{pid}").json()["status"] == "pending"

    r = client.patch(f"/properties/verify/{pid}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["modifiedCount"] == 1
    assert client.get(f"/properties/{pid}").json()["status"] == "verified"


def test_moderation_is_admin_only(client: TestClient, register, create_property):
    agent_headers, _ = register("agent@example.com", role="agent")
    admin_headers, _ = register("admin@example.com", role="admin")
    pid = create_property(agent_headers)

    assert client.patch(f"/properties/verify/{pid}").status_code == 401
    assert client.patch(f"/properties/verify/{pid}", headers=agent_headers).status_code == 403
    assert client.patch(f"/properties/advertise/{pid}", headers=agent_headers).status_code == 403

    r = client.patch(f"/properties/reject/{pid}", headers=admin_headers)
    assert r.status_code == 200
    assert client.get(f"/properties/{pid}").json()["status"] == "rejected"

    # Advertising does not touch status
    client.patch(f"/properties/advertise/{pid}", headers=admin_headers)
    prop = client.get(f"/properties/{pid}").json()
    assert prop["advertised"] is True
    assert prop["status"] == "rejected"

    # Repeating a transition matches without modifying
    r = client.patch(f"/properties/reject/{pid}", headers=admin_headers)
    assert r.json() == {"acknowledged": True, "matchedCount": 1, "modifiedCount": 0}


def test_public_listing_shows_only_verified(client: TestClient, register, create_property):
    agent_headers, _ = register("agent@example.com", role="agent")
    admin_headers, _ = register("admin@example.com", role="admin")
    pending = create_property(agent_headers, title="Pending Place")
    verified = create_property(admin_headers, title="Verified Place")

    body = client.get("/properties").json()
    ids = [p["_id"] for p in body["items"]]
    assert ids == [verified]
    assert body["total"] == 1

    assert client.get("/properties?status=pending").status_code == 403
    assert client.get("/properties?status=pending", headers=agent_headers).status_code == 403
    r = client.get("/properties?status=pending", headers=admin_headers)
    assert r.status_code == 200
    assert [p["_id"] for p in r.json()["items"]] == [pending]
    r = client.get("/properties?status=all", headers=admin_headers)
    assert r.json()["total"] == 2
    assert client.get("/properties?status=bogus", headers=admin_headers).status_code == 400


def test_search_is_case_insensitive_over_title_location_description(client: TestClient, register, create_property):
    admin_headers, _ = register("admin@example.com", role="admin")
    create_property(admin_headers, title="Lake House", location="Austin, TX", description="Quiet street")
    create_property(admin_headers, title="City Loft", location="Denver, CO", description="Near the LAKE shore")
    create_property(admin_headers, title="Farm", location="Boise, ID", description="Barn included")

    titles = sorted(p["title"] for p in client.get("/properties?search=lake").json()["items"])
    assert titles == ["City Loft", "Lake House"]
    assert [p["title"] for p in client.get("/properties?search=DENVER").json()["items"]] == ["City Loft"]
    assert client.get("/properties", params={"search": "100%"}).json()["total"] == 0


def test_price_filter_uses_leading_figure(client: TestClient, register, create_property):
    admin_headers, _ = register("admin@example.com", role="admin")
    create_property(admin_headers, title="Cheap", price_range="$250,000 - $300,000")
    create_property(admin_headers, title="Middle", price_range="$350,000 - $500,000")
    create_property(admin_headers, title="Top", price_range="$400,000")
    create_property(admin_headers, title="Unknown", price_range="Call for price")

    r = client.get("/properties?minPrice=300000&maxPrice=400000")
    assert r.status_code == 200
    assert sorted(p["title"] for p in r.json()["items"]) == ["Middle", "Top"]

    # Unparsable prices count as 0
    r = client.get("/properties?maxPrice=1000")
    assert [p["title"] for p in r.json()["items"]] == ["Unknown"]


def test_sorting_and_pagination(client: TestClient, register, create_property):
    admin_headers, _ = register("admin@example.com", role="admin")
    create_property(admin_headers, title="B", price_range="$200,000 - $900,000")
    create_property(admin_headers, title="A", price_range="$100,000 - $150,000")
    create_property(admin_headers, title="C", price_range="$300,000 - $350,000")

    asc = [p["title"] for p in client.get("/properties?sort=price-asc").json()["items"]]
    assert asc == ["A", "B", "C"]
    desc = [p["title"] for p in client.get("/properties?sort=price-desc").json()["items"]]
    assert desc == ["B", "C", "A"]

    page2 = client.get("/properties?sort=price-asc&limit=2&page=2").json()
    assert [p["title"] for p in page2["items"]] == ["C"]
    assert page2["total"] == 3
    assert page2["page"] == 2 and page2["limit"] == 2

    assert client.get("/properties?sort=cheapest").status_code == 422
    assert client.get("/properties?limit=0").status_code == 422


def test_get_property_errors(client: TestClient):
    r = client.get("/properties/123")
    assert r.status_code == 400
    assert r.json()["error"] is True
    r = client.get("/properties/507f1f77bcf86cd799439011")
    assert r.status_code == 404
    assert r.json() == {"error": True, "message": "Property not found"}


def test_update_requires_owner_or_admin(client: TestClient, register, create_property):
    owner_headers, _ = register("owner@example.com", role="agent")
    other_headers, _ = register("other@example.com", role="agent")
    admin_headers, _ = register("admin@example.com", role="admin")
    pid = create_property(owner_headers)

    body = {"title": "Renovated", "location": "Austin, TX", "priceRange": "$500,000 - $550,000", "image": "https://img/x.jpg"}
    assert client.put(f"/properties/{pid}", headers=other_headers, json=body).status_code == 403

    r = client.put(f"/properties/{pid}", headers=owner_headers, json=body)
    assert r.status_code == 200, r.text
    prop = client.get(f"/properties/{pid}").json()
    assert prop["title"] == "Renovated"
    assert prop["priceMin"] == 500000
    assert prop["image"] == "https://img/x.jpg"
    # Editing does not change moderation state
    assert prop["status"] == "pending"

    body["title"] = "Admin Edit"
    assert client.put(f"/properties/{pid}", headers=admin_headers, json=body).status_code == 200
    assert client.put("/properties/507f1f77bcf86cd799439011", headers=admin_headers, json=body).status_code == 404


def test_delete_property(client: TestClient, register, create_property):
    owner_headers, _ = register("owner@example.com", role="agent")
    other_headers, _ = register("other@example.com", role="agent")
    pid = create_property(owner_headers)

    assert client.delete(f"/properties/{pid}", headers=other_headers).status_code == 403

    r = client.delete(f"/properties/{pid}", headers=owner_headers)
    assert r.status_code == 200
    assert r.json() == {"acknowledged": True, "deletedCount": 1}
    assert client.get(f"/properties/{pid}").status_code == 404

    # Unknown but well-formed id: zero count, not an error
    r = client.delete("/properties/507f1f77bcf86cd799439011", headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["deletedCount"] == 0

    assert client.delete("/properties/xyz", headers=owner_headers).status_code == 400


def test_advertised_properties_top_four_verified(client: TestClient, register, create_property):
    admin_headers, _ = register("admin@example.com", role="admin")
    agent_headers, _ = register("agent@example.com", role="agent")

    for i in range(5):
        pid = create_property(admin_headers, title=f"Ad {i}")
        client.patch(f"/properties/advertise/{pid}", headers=admin_headers)
    pending = create_property(agent_headers, title="Pending Ad")
    client.patch(f"/properties/advertise/{pending}", headers=admin_headers)
    create_property(admin_headers, title="Not advertised")

    items = client.get("/advertised-properties").json()
    assert len(items) == 4
    assert all(p["advertised"] and p["status"] == "verified" for p in items)
    assert "Pending Ad" not in {p["title"] for p in items}


def test_agent_listings(client: TestClient, register, create_property):
    agent_headers, _ = register("agent@example.com", role="agent")
    create_property(agent_headers, title="One")
    create_property(agent_headers, title="Two")

    assert client.get("/properties/agent/agent@example.com").status_code == 401
    r = client.get("/properties/agent/agent@example.com", headers=agent_headers)
    assert r.status_code == 200
    assert sorted(p["title"] for p in r.json()) == ["One", "Two"]
