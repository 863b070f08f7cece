"""
Category API tests.

Run: pytest fixilissimo/test_categories.py -v
"""


class TestCategoryCreate:
    def test_create_and_list_sorted_by_name(self, client, alice, api):
        api.create_location(alice, "cabin")
        for name in ("Roof", "Deck", "Kitchen"):
            api.create_category(alice, "cabin", name)

        response = client.get("/api/categories/cabin", headers=alice.headers)
        assert response.status_code == 200
        categories = response.json()
        assert [c["name"] for c in categories] == ["Deck", "Kitchen", "Roof"]
        assert all(c["location_id"] == "cabin" for c in categories)

    def test_name_required(self, client, alice, api):
        api.create_location(alice, "cabin")
        response = client.post("/api/categories/cabin", json={"name": "   "}, headers=alice.headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Category name is required"

    def test_duplicate_name_in_same_location(self, client, alice, api):
        api.create_location(alice, "cabin")
        api.create_category(alice, "cabin", "Roof")

        response = client.post("/api/categories/cabin", json={"name": "Roof"}, headers=alice.headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Category already exists for this location"
        assert len(client.get("/api/categories/cabin", headers=alice.headers).json()) == 1

    def test_same_name_in_different_locations(self, client, alice, api):
        api.create_location(alice, "cabin")
        api.create_location(alice, "boat")
        api.create_category(alice, "cabin", "Electrical")
        api.create_category(alice, "boat", "Electrical")

        assert len(client.get("/api/categories/boat", headers=alice.headers).json()) == 1

    def test_unknown_location_is_404(self, client, alice):
        response = client.post("/api/categories/nowhere", json={"name": "Roof"}, headers=alice.headers)
        assert response.status_code == 404
        assert client.get("/api/categories/nowhere", headers=alice.headers).status_code == 404


class TestCategoryUpdate:
    def test_rename_carries_onto_projects(self, client, alice, api):
        api.create_location(alice, "cabin")
        category = api.create_category(alice, "cabin", "Kitchen")
        project = api.create_project(alice, "Countertops", location="cabin", category="Kitchen")

        response = client.put(
            f"/api/categories/cabin/{category['id']}", json={"name": "Kitchen & Pantry"}, headers=alice.headers
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Kitchen & Pantry"

        refreshed = client.get(f"/api/projects/{project['id']}", headers=alice.headers).json()
        assert refreshed["category"] == "Kitchen & Pantry"

    def test_rename_to_existing_name_rejected(self, client, alice, api):
        api.create_location(alice, "cabin")
        api.create_category(alice, "cabin", "Roof")
        deck = api.create_category(alice, "cabin", "Deck")

        response = client.put(f"/api/categories/cabin/{deck['id']}", json={"name": "Roof"}, headers=alice.headers)
        assert response.status_code == 400
        names = [c["name"] for c in client.get("/api/categories/cabin", headers=alice.headers).json()]
        assert names == ["Deck", "Roof"]

    def test_category_of_other_location_is_404(self, client, alice, api):
        api.create_location(alice, "cabin")
        api.create_location(alice, "boat")
        hull = api.create_category(alice, "boat", "Hull")

        response = client.put(f"/api/categories/cabin/{hull['id']}", json={"name": "X"}, headers=alice.headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Category not found"


class TestCategoryDelete:
    def test_delete_unused_category(self, client, alice, api):
        api.create_location(alice, "cabin")
        roof = api.create_category(alice, "cabin", "Roof")

        response = client.delete(f"/api/categories/cabin/{roof['id']}", headers=alice.headers)
        assert response.status_code == 200
        assert client.get("/api/categories/cabin", headers=alice.headers).json() == []

    def test_delete_refused_while_in_use(self, client, alice, api):
        api.create_location(alice, "cabin")
        roof = api.create_category(alice, "cabin", "Roof")
        project = api.create_project(alice, "Shingles", location="cabin", category="Roof")

        response = client.delete(f"/api/categories/cabin/{roof['id']}", headers=alice.headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot delete category that is being used by projects"
        assert response.json()["projectCount"] == 1

        names = [c["name"] for c in client.get("/api/categories/cabin", headers=alice.headers).json()]
        assert names == ["Roof"]
        after = client.get(f"/api/projects/{project['id']}", headers=alice.headers).json()
        assert after == project

    def test_same_name_used_in_another_location_blocks_delete(self, client, alice, api):
        api.create_location(alice, "cabin")
        api.create_location(alice, "boat")
        cabin_electrical = api.create_category(alice, "cabin", "Electrical")
        api.create_category(alice, "boat", "Electrical")
        api.create_project(alice, "Rewire", location="boat", category="Electrical")

        response = client.delete(f"/api/categories/cabin/{cabin_electrical['id']}", headers=alice.headers)
        assert response.status_code == 400
        assert response.json()["projectCount"] == 1
        assert [c["name"] for c in client.get("/api/categories/cabin", headers=alice.headers).json()] == ["Electrical"]

    def test_other_users_projects_do_not_block(self, client, alice, bob, api):
        api.create_location(alice, "cabin")
        roof = api.create_category(alice, "cabin", "Roof")
        api.create_location(bob, "cabin")
        api.create_category(bob, "cabin", "Roof")
        api.create_project(bob, "Shingles", location="cabin", category="Roof")

        response = client.delete(f"/api/categories/cabin/{roof['id']}", headers=alice.headers)
        assert response.status_code == 200
