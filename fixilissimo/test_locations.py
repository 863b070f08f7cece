"""
Location API tests: CRUD, per-user ids, delete guard and category sweep.

Run: pytest fixilissimo/test_locations.py -v
"""

from sqlalchemy import text

from fixilissimo.models import DEFAULT_LOCATION_COLOR, DEFAULT_LOCATION_ICON


class TestLocationCreate:
    def test_create_and_get(self, client, alice):
        response = client.post(
            "/api/locations",
            json={"id": "cabin", "name": "Cabin", "icon": "🌲", "color": "#065F46"},
            headers=alice.headers,
        )
        assert response.status_code == 201
        created = response.json()
        assert created["id"] == "cabin"
        assert created["icon"] == "🌲"
        assert "owner_id" not in created

        fetched = client.get("/api/locations/cabin", headers=alice.headers).json()
        assert fetched == created

    def test_defaults_for_icon_and_color(self, client, alice, api):
        created = api.create_location(alice, "garage", "Garage")
        assert created["icon"] == DEFAULT_LOCATION_ICON
        assert created["color"] == DEFAULT_LOCATION_COLOR

    def test_id_and_name_required(self, client, alice):
        response = client.post("/api/locations", json={"id": "shed"}, headers=alice.headers)
        assert response.status_code == 400
        assert response.json()["error"] == "ID and name are required"

        response = client.post("/api/locations", json={"name": "Shed"}, headers=alice.headers)
        assert response.status_code == 400

    def test_id_cannot_contain_slash(self, client, alice):
        response = client.post("/api/locations", json={"id": "a/b", "name": "Bad"}, headers=alice.headers)
        assert response.status_code == 400
        assert "id" in response.json()["error"]

    def test_stats_is_a_reserved_id(self, client, alice):
        response = client.post("/api/locations", json={"id": "stats", "name": "Stats"}, headers=alice.headers)
        assert response.status_code == 400
        assert response.json()["error"].startswith("id:")
        assert "reserved" in response.json()["error"]
        assert client.get("/api/locations", headers=alice.headers).json() == []

    def test_duplicate_id_rejected(self, client, alice, api):
        api.create_location(alice, "cabin")
        response = client.post("/api/locations", json={"id": "cabin", "name": "Again"}, headers=alice.headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Location ID already exists"

        locations = client.get("/api/locations", headers=alice.headers).json()
        assert [loc["name"] for loc in locations] == ["Cabin"]

    def test_same_id_for_different_users(self, client, alice, bob, api):
        api.create_location(alice, "cabin", "Alice's Cabin")
        api.create_location(bob, "cabin", "Bob's Cabin")

        assert client.get("/api/locations/cabin", headers=alice.headers).json()["name"] == "Alice's Cabin"
        assert client.get("/api/locations/cabin", headers=bob.headers).json()["name"] == "Bob's Cabin"


class TestLocationList:
    def test_list_is_oldest_first(self, client, alice, api):
        for slug in ("first", "second", "third"):
            api.create_location(alice, slug)

        locations = client.get("/api/locations", headers=alice.headers).json()
        assert [loc["id"] for loc in locations] == ["first", "second", "third"]

    def test_list_empty_for_new_user(self, client, alice):
        assert client.get("/api/locations", headers=alice.headers).json() == []

    def test_get_unknown_location_is_404(self, client, alice):
        response = client.get("/api/locations/nowhere", headers=alice.headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Location not found"


class TestLocationUpdate:
    def test_update_name_icon_color(self, client, alice, api):
        api.create_location(alice, "cabin")
        response = client.put(
            "/api/locations/cabin",
            json={"name": "Log Cabin", "icon": "🪵", "color": "#92400E"},
            headers=alice.headers,
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Log Cabin"
        assert response.json()["color"] == "#92400E"

    def test_update_requires_name(self, client, alice, api):
        api.create_location(alice, "cabin")
        response = client.put("/api/locations/cabin", json={"icon": "🪵"}, headers=alice.headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Name is required"

    def test_update_unknown_is_404(self, client, alice):
        response = client.put("/api/locations/nowhere", json={"name": "X"}, headers=alice.headers)
        assert response.status_code == 404


class TestLocationDelete:
    def test_delete_sweeps_categories(self, client, alice, api, database):
        api.create_location(alice, "cabin")
        api.create_category(alice, "cabin", "Roof")

        response = client.delete("/api/locations/cabin", headers=alice.headers)
        assert response.status_code == 200
        assert client.get("/api/locations/cabin", headers=alice.headers).status_code == 404

        with database.connect() as conn:
            remaining = conn.execute(
                text("SELECT COUNT(*) FROM categories WHERE owner_id = :owner_id"), {"owner_id": alice.id}
            ).scalar()
        assert remaining == 0

    def test_delete_refused_while_projects_reference_it(self, client, alice, api):
        location = api.create_location(alice, "cabin")
        project = api.create_project(alice, "New roof", location="cabin")

        response = client.delete("/api/locations/cabin", headers=alice.headers)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Cannot delete location that is being used by projects"
        assert body["projectCount"] == 1

        assert client.get("/api/locations/cabin", headers=alice.headers).json() == location
        after = client.get(f"/api/projects/{project['id']}", headers=alice.headers).json()
        assert after == project

    def test_delete_allowed_after_project_moves(self, client, alice, api):
        api.create_location(alice, "cabin")
        api.create_location(alice, "shed")
        project = api.create_project(alice, "New roof", location="cabin")

        client.put(f"/api/projects/{project['id']}", json={"name": "New roof", "location": "shed"}, headers=alice.headers)
        assert client.delete("/api/locations/cabin", headers=alice.headers).status_code == 200

    def test_delete_unknown_is_404(self, client, alice):
        assert client.delete("/api/locations/nowhere", headers=alice.headers).status_code == 404


def test_project_count(client, alice, api):
    api.create_location(alice, "cabin")
    api.create_project(alice, "Roof", location="cabin")
    api.create_project(alice, "Porch", location="cabin")
    api.create_project(alice, "Unplaced")

    response = client.get("/api/locations/cabin/project-count", headers=alice.headers)
    assert response.status_code == 200
    assert response.json() == {"locationId": "cabin", "projectCount": 2}
