"""
Ownership store tests: transaction atomicity and storage error translation.

Run: pytest fixilissimo/test_store.py -v
"""

import pytest
from sqlalchemy import text

from fixilissimo.db import Database
from fixilissimo.errors import ConflictError, NotFoundError, UnavailableError
from fixilissimo.migrate import run_migrations


def _location(location_id):
    return {"id": location_id, "name": location_id.title(), "icon": "🏠", "color": "#fff", "created_at": "2025-01-01"}


def test_failed_cascade_rolls_back(store, alice, database):
    with store.transaction() as conn:
        project = store.insert_project(conn, alice.id, {"name": "Deck", "status": "planning", "doer": "me"}, "2025-01-01")
        store.insert_note(conn, alice.id, project["id"], "Buy stain", "2025-01-01")

    with pytest.raises(RuntimeError):
        with store.transaction() as conn:
            store.delete_project(conn, alice.id, project["id"])
            raise RuntimeError("crash mid-delete")

    with store.read() as conn:
        assert store.get_project(conn, alice.id, project["id"])["name"] == "Deck"
        assert len(store.list_notes(conn, alice.id, project["id"])) == 1


def test_unique_violation_becomes_conflict(store, alice):
    with store.transaction() as conn:
        store.insert_location(conn, alice.id, _location("home"))

    with pytest.raises(ConflictError) as excinfo:
        with store.transaction(conflict="Location ID already exists") as conn:
            store.insert_location(conn, alice.id, _location("home"))
    assert excinfo.value.message == "Location ID already exists"
    assert excinfo.value.status_code == 400


def test_storage_failure_becomes_unavailable(store):
    with pytest.raises(UnavailableError) as excinfo:
        with store.read() as conn:
            conn.execute(text("SELECT * FROM no_such_table"))
    assert excinfo.value.status_code == 500
    assert excinfo.value.to_body() == {"error": "Database error"}


def test_not_found_passes_through_transaction(store, alice):
    with pytest.raises(NotFoundError):
        with store.transaction() as conn:
            store.get_location(conn, alice.id, "missing")


def test_location_delete_sweeps_only_its_categories(store, alice, bob, database):
    with store.transaction() as conn:
        for owner in (alice, bob):
            store.insert_location(conn, owner.id, _location("home"))
            store.insert_category(conn, owner.id, "home", "Kitchen", "2025-01-01")

    with store.transaction() as conn:
        store.delete_location(conn, alice.id, "home")

    with store.read() as conn:
        assert [c["name"] for c in store.list_categories(conn, bob.id, "home")] == ["Kitchen"]
        count = conn.execute(
            text("SELECT COUNT(*) FROM categories WHERE owner_id = :owner_id"), {"owner_id": alice.id}
        ).scalar()
    assert count == 0


def test_migrations_are_idempotent(database):
    run_migrations(database)
    run_migrations(database)
    with database.connect() as conn:
        tables = {row[0] for row in conn.execute(text("SELECT name FROM sqlite_master WHERE type = 'table'"))}
    assert {"users", "locations", "categories", "projects", "photos", "notes"} <= tables


def test_missing_actual_cost_column_is_added(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'old.db'}")
    with db.transaction() as conn:
        conn.execute(text("CREATE TABLE users (id INTEGER PRIMARY KEY, username TEXT, password_hash TEXT, created_at TEXT)"))
        conn.execute(
            text(
                "CREATE TABLE projects (id INTEGER PRIMARY KEY, owner_id INTEGER, name TEXT, location TEXT, status TEXT, "
                "doer TEXT, created_at TEXT, updated_at TEXT)"
            )
        )
    run_migrations(db)
    with db.connect() as conn:
        columns = {row[1] for row in conn.execute(text("PRAGMA table_info(projects)"))}
    db.dispose()
    assert "actual_cost" in columns


def test_children_are_owned_through_their_project(store, alice, bob):
    with store.transaction() as conn:
        project = store.insert_project(conn, alice.id, {"name": "Deck", "status": "planning", "doer": "me"}, "2025-01-01")
        note = store.insert_note(conn, alice.id, project["id"], "Buy stain", "2025-01-01")
        photo = store.insert_photo(
            conn,
            alice.id,
            project["id"],
            {
                "filename": "abc.jpg",
                "original_name": "deck.jpg",
                "caption": None,
                "is_before_photo": True,
                "upload_date": "2025-01-01",
            },
        )

    with store.read() as conn:
        assert store.get_note(conn, alice.id, note["id"])["content"] == "Buy stain"
        assert store.get_photo(conn, alice.id, photo["id"])["is_before_photo"] is True
        with pytest.raises(NotFoundError):
            store.get_note(conn, bob.id, note["id"])
        with pytest.raises(NotFoundError):
            store.get_photo(conn, bob.id, photo["id"])
        with pytest.raises(NotFoundError):
            store.insert_note(conn, bob.id, project["id"], "Sneaky", "2025-01-02")
