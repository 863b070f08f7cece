"""
Shared pytest fixtures.

Every test gets its own SQLite file and upload directory under tmp_path, and
an app built around them with create_app(). Nothing is shared between tests.
"""

import os
import tempfile

# Keep the module-level app in fixilissimo.main away from the package directory
_IMPORT_DIR = tempfile.mkdtemp(prefix="fixilissimo-tests-")
os.environ.setdefault("DATABASE_PATH", os.path.join(_IMPORT_DIR, "import.db"))
os.environ.setdefault("UPLOAD_DIR", os.path.join(_IMPORT_DIR, "uploads"))

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import text  # noqa: E402

from fixilissimo import routes_auth  # noqa: E402
from fixilissimo.auth_context import create_access_token  # noqa: E402
from fixilissimo.db import Database, now_iso  # noqa: E402
from fixilissimo.main import create_app  # noqa: E402
from fixilissimo.migrate import run_migrations  # noqa: E402
from fixilissimo.store import OwnershipStore  # noqa: E402
from fixilissimo.uploads import BlobStore  # noqa: E402


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    monkeypatch.setattr(routes_auth, "PBKDF2_ITERATIONS", 1_000)


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    run_migrations(db)
    yield db
    db.dispose()


@pytest.fixture
def blob_store(tmp_path):
    return BlobStore(tmp_path / "uploads")


@pytest.fixture
def store(database):
    return OwnershipStore(database)


@pytest.fixture
def client(database, blob_store):
    return TestClient(create_app(database, blob_store))


@pytest.fixture
def make_user(database):
    """
    Insert a bare user (no seeded locations) and mint a token for it.
    Registration through the API is covered separately in test_auth.
    """
    def _make(username):
        with database.transaction() as conn:
            user_id = conn.execute(
                text(
                    "INSERT INTO users (username, password_hash, created_at) "
                    "VALUES (:username, 'unused', :created_at) RETURNING id"
                ),
                {"username": username, "created_at": now_iso()},
            ).scalar_one()
        token = create_access_token(user_id, username)
        return SimpleNamespace(
            id=user_id,
            username=username,
            token=token,
            headers={"Authorization": f"Bearer {token}"},
        )

    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


@pytest.fixture
def api(client):
    """Small helpers for the setup steps most tests repeat."""
    def create_location(user, location_id, name=None, **extra):
        response = client.post(
            "/api/locations",
            json={"id": location_id, "name": name or location_id.title(), **extra},
            headers=user.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    def create_category(user, location_id, name):
        response = client.post(f"/api/categories/{location_id}", json={"name": name}, headers=user.headers)
        assert response.status_code == 201, response.text
        return response.json()

    def create_project(user, name, **fields):
        response = client.post("/api/projects", json={"name": name, **fields}, headers=user.headers)
        assert response.status_code == 201, response.text
        return response.json()

    return SimpleNamespace(
        create_location=create_location,
        create_category=create_category,
        create_project=create_project,
    )
