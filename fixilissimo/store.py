"""
fixilissimo/store.py

Ownership store: owner-scoped persistence for locations, categories, projects,
photos and notes.

Security guarantees:
- Every statement on locations, categories and projects filters on owner_id
- Photos and notes are reached only through a join on their owned project
- owner_id always comes from the authenticated caller, never from payloads
- A row owned by someone else is reported exactly like a missing row
- Cascading deletes sweep children and parent inside one transaction
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fixilissimo import config
from fixilissimo.db import Database, row_to_dict
from fixilissimo.errors import ConflictError, FixitError, NotFoundError, UnavailableError
from fixilissimo.tenant import assert_row_scoped, assert_rows_scoped, require_owner_id

PROJECT_COLUMNS = (
    "name",
    "description",
    "category",
    "location",
    "status",
    "start_month",
    "start_year",
    "budget",
    "actual_cost",
    "estimated_days",
    "doer",
    "image_filename",
)


# ---------------------------------------------------------
# Query helpers
# ---------------------------------------------------------
def fetch_one(conn: Connection, sql: str, params: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    # fetchall so INSERT/UPDATE ... RETURNING cursors are drained before commit
    rows = conn.execute(text(sql), dict(params)).fetchall()
    return row_to_dict(rows[0]) if rows else None


def fetch_all(conn: Connection, sql: str, params: Mapping[str, Any]) -> List[Dict[str, Any]]:
    return [row_to_dict(row) for row in conn.execute(text(sql), dict(params)).fetchall()]


def fetch_count(conn: Connection, sql: str, params: Mapping[str, Any]) -> int:
    value = conn.execute(text(sql), dict(params)).scalar()
    return int(value or 0)


def _photo(row: Dict[str, Any]) -> Dict[str, Any]:
    # SQLite hands BOOLEAN columns back as 0/1
    row["is_before_photo"] = bool(row.get("is_before_photo"))
    return row


class OwnershipStore:
    """Owner-scoped CRUD over an injected Database."""

    def __init__(self, db: Database):
        self.db = db

    # -----------------------------------------------------
    # Transactions and error translation
    # -----------------------------------------------------
    @contextmanager
    def transaction(self, conflict: str = "Resource already exists") -> Generator[Connection, None, None]:
        """
        Atomic unit of work. Unique-constraint violations surface as
        ConflictError(conflict); any other storage failure as UnavailableError.
        """
        try:
            with self.db.transaction() as conn:
                yield conn
        except FixitError:
            raise
        except IntegrityError as e:
            if config.IS_DEV:
                print(f"[DB] Integrity error (rolled back): {e.orig}")
            raise ConflictError(conflict) from e
        except SQLAlchemyError as e:
            print(f"[DB] Storage failure (rolled back): {type(e).__name__}: {e}")
            raise UnavailableError() from e

    @contextmanager
    def read(self) -> Generator[Connection, None, None]:
        try:
            with self.db.connect() as conn:
                yield conn
        except FixitError:
            raise
        except SQLAlchemyError as e:
            print(f"[DB] Storage failure on read: {type(e).__name__}: {e}")
            raise UnavailableError() from e

    # -----------------------------------------------------
    # Locations
    # -----------------------------------------------------
    def list_locations(self, conn: Connection, owner_id: int) -> List[Dict[str, Any]]:
        owner_id = require_owner_id(owner_id)
        rows = fetch_all(
            conn,
            """
            SELECT id, owner_id, name, icon, color, created_at
            FROM locations
            WHERE owner_id = :owner_id
            ORDER BY created_at ASC, pk ASC
            """,
            {"owner_id": owner_id},
        )
        assert_rows_scoped(rows, owner_id, label="list_locations")
        return rows

    def get_location(self, conn: Connection, owner_id: int, location_id: str) -> Dict[str, Any]:
        owner_id = require_owner_id(owner_id)
        row = fetch_one(
            conn,
            """
            SELECT id, owner_id, name, icon, color, created_at
            FROM locations
            WHERE id = :id AND owner_id = :owner_id
            """,
            {"id": location_id, "owner_id": owner_id},
        )
        if row is None:
            # 404 whether the location doesn't exist or belongs to someone else
            raise NotFoundError("Location")
        assert_row_scoped(row, owner_id, label="get_location")
        return row

    def insert_location(self, conn: Connection, owner_id: int, values: Mapping[str, Any]) -> Dict[str, Any]:
        owner_id = require_owner_id(owner_id)
        return fetch_one(
            conn,
            """
            INSERT INTO locations (id, owner_id, name, icon, color, created_at)
            VALUES (:id, :owner_id, :name, :icon, :color, :created_at)
            RETURNING id, owner_id, name, icon, color, created_at
            """,
            {**values, "owner_id": owner_id},
        )

    def update_location(
        self, conn: Connection, owner_id: int, location_id: str, values: Mapping[str, Any]
    ) -> Dict[str, Any]:
        owner_id = require_owner_id(owner_id)
        row = fetch_one(
            conn,
            """
            UPDATE locations
            SET name = :name, icon = :icon, color = :color
            WHERE id = :id AND owner_id = :owner_id
            RETURNING id, owner_id, name, icon, color, created_at
            """,
            {**values, "id": location_id, "owner_id": owner_id},
        )
        if row is None:
            raise NotFoundError("Location")
        return row

    def delete_location(self, conn: Connection, owner_id: int, location_id: str) -> None:
        """Delete a location and sweep its categories (caller holds the transaction)."""
        self.get_location(conn, owner_id, location_id)
        conn.execute(
            text("DELETE FROM categories WHERE owner_id = :owner_id AND location_id = :location_id"),
            {"owner_id": owner_id, "location_id": location_id},
        )
        conn.execute(
            text("DELETE FROM locations WHERE id = :id AND owner_id = :owner_id"),
            {"id": location_id, "owner_id": owner_id},
        )

    def count_projects_in_location(self, conn: Connection, owner_id: int, location_id: str) -> int:
        owner_id = require_owner_id(owner_id)
        return fetch_count(
            conn,
            "SELECT COUNT(*) FROM projects WHERE owner_id = :owner_id AND location = :location_id",
            {"owner_id": owner_id, "location_id": location_id},
        )

    # -----------------------------------------------------
    # Categories (owned through their location)
    # -----------------------------------------------------
    def list_categories(self, conn: Connection, owner_id: int, location_id: str) -> List[Dict[str, Any]]:
        self.get_location(conn, owner_id, location_id)
        rows = fetch_all(
            conn,
            """
            SELECT id, owner_id, location_id, name, created_at
            FROM categories
            WHERE owner_id = :owner_id AND location_id = :location_id
            ORDER BY name ASC
            """,
            {"owner_id": owner_id, "location_id": location_id},
        )
        assert_rows_scoped(rows, owner_id, label="list_categories")
        return rows

    def get_category(self, conn: Connection, owner_id: int, location_id: str, category_id: int) -> Dict[str, Any]:
        owner_id = require_owner_id(owner_id)
        row = fetch_one(
            conn,
            """
            SELECT id, owner_id, location_id, name, created_at
            FROM categories
            WHERE id = :id AND location_id = :location_id AND owner_id = :owner_id
            """,
            {"id": category_id, "location_id": location_id, "owner_id": owner_id},
        )
        if row is None:
            raise NotFoundError("Category")
        assert_row_scoped(row, owner_id, label="get_category")
        return row

    def category_exists(self, conn: Connection, owner_id: int, location_id: str, name: str) -> bool:
        owner_id = require_owner_id(owner_id)
        return fetch_count(
            conn,
            """
            SELECT COUNT(*) FROM categories
            WHERE owner_id = :owner_id AND location_id = :location_id AND name = :name
            """,
            {"owner_id": owner_id, "location_id": location_id, "name": name},
        ) > 0

    def insert_category(
        self, conn: Connection, owner_id: int, location_id: str, name: str, created_at: str
    ) -> Dict[str, Any]:
        owner_id = require_owner_id(owner_id)
        return fetch_one(
            conn,
            """
            INSERT INTO categories (owner_id, location_id, name, created_at)
            VALUES (:owner_id, :location_id, :name, :created_at)
            RETURNING id, owner_id, location_id, name, created_at
            """,
            {"owner_id": owner_id, "location_id": location_id, "name": name, "created_at": created_at},
        )

    def rename_category(
        self, conn: Connection, owner_id: int, location_id: str, category_id: int, name: str
    ) -> Dict[str, Any]:
        """Rename a category and carry the new name onto the projects that use it."""
        current = self.get_category(conn, owner_id, location_id, category_id)
        row = fetch_one(
            conn,
            """
            UPDATE categories SET name = :name
            WHERE id = :id AND location_id = :location_id AND owner_id = :owner_id
            RETURNING id, owner_id, location_id, name, created_at
            """,
            {"name": name, "id": category_id, "location_id": location_id, "owner_id": owner_id},
        )
        conn.execute(
            text(
                """
                UPDATE projects SET category = :new_name
                WHERE owner_id = :owner_id AND location = :location_id AND category = :old_name
                """
            ),
            {"new_name": name, "owner_id": owner_id, "location_id": location_id, "old_name": current["name"]},
        )
        return row

    def count_projects_in_category(self, conn: Connection, owner_id: int, category: Mapping[str, Any]) -> int:
        owner_id = require_owner_id(owner_id)
        return fetch_count(
            conn,
            """
            SELECT COUNT(*) FROM projects
            WHERE owner_id = :owner_id AND category = :name
            """,
            {"owner_id": owner_id, "name": category["name"]},
        )

    def delete_category(self, conn: Connection, owner_id: int, location_id: str, category_id: int) -> None:
        self.get_category(conn, owner_id, location_id, category_id)
        conn.execute(
            text("DELETE FROM categories WHERE id = :id AND location_id = :location_id AND owner_id = :owner_id"),
            {"id": category_id, "location_id": location_id, "owner_id": owner_id},
        )

    # -----------------------------------------------------
    # Projects
    # -----------------------------------------------------
    def list_projects(
        self,
        conn: Connection,
        owner_id: int,
        category: Optional[str] = None,
        status: Optional[str] = None,
        location: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        owner_id = require_owner_id(owner_id)
        clauses = ["owner_id = :owner_id"]
        params: Dict[str, Any] = {"owner_id": owner_id}

        if category:
            clauses.append("category = :category")
            params["category"] = category
        if status:
            clauses.append("status = :status")
            params["status"] = status
        if location:
            clauses.append("location = :location")
            params["location"] = location
        if search:
            # Fold both sides the same way; on SQLite casefold() is registered by db.py
            if self.db.is_sqlite:
                fold, term = "casefold", search.casefold()
            else:
                fold, term = "LOWER", search.lower()
            escaped = term.replace("!", "!!").replace("%", "!%").replace("_", "!_")
            clauses.append(
                f"({fold}(name) LIKE :pattern ESCAPE '!' "
                f"OR {fold}(COALESCE(description, '')) LIKE :pattern ESCAPE '!')"
            )
            params["pattern"] = f"%{escaped}%"

        rows = fetch_all(
            conn,
            f"""
            SELECT * FROM projects
            WHERE {' AND '.join(clauses)}
            ORDER BY updated_at DESC, id DESC
            """,
            params,
        )
        assert_rows_scoped(rows, owner_id, label="list_projects")
        return rows

    def get_project(self, conn: Connection, owner_id: int, project_id: int) -> Dict[str, Any]:
        owner_id = require_owner_id(owner_id)
        row = fetch_one(
            conn,
            "SELECT * FROM projects WHERE id = :id AND owner_id = :owner_id",
            {"id": project_id, "owner_id": owner_id},
        )
        if row is None:
            raise NotFoundError("Project")
        assert_row_scoped(row, owner_id, label="get_project")
        return row

    def insert_project(self, conn: Connection, owner_id: int, values: Mapping[str, Any], now: str) -> Dict[str, Any]:
        owner_id = require_owner_id(owner_id)
        params = {column: values.get(column) for column in PROJECT_COLUMNS}
        params.update({"owner_id": owner_id, "created_at": now, "updated_at": now})
        return fetch_one(
            conn,
            f"""
            INSERT INTO projects (owner_id, {', '.join(PROJECT_COLUMNS)}, created_at, updated_at)
            VALUES (:owner_id, {', '.join(':' + column for column in PROJECT_COLUMNS)}, :created_at, :updated_at)
            RETURNING *
            """,
            params,
        )

    def update_project(
        self, conn: Connection, owner_id: int, project_id: int, values: Mapping[str, Any], now: str
    ) -> Dict[str, Any]:
        """Full replace of the mutable project fields."""
        owner_id = require_owner_id(owner_id)
        params = {column: values.get(column) for column in PROJECT_COLUMNS}
        params.update({"id": project_id, "owner_id": owner_id, "updated_at": now})
        row = fetch_one(
            conn,
            f"""
            UPDATE projects
            SET {', '.join(f'{column} = :{column}' for column in PROJECT_COLUMNS)}, updated_at = :updated_at
            WHERE id = :id AND owner_id = :owner_id
            RETURNING *
            """,
            params,
        )
        if row is None:
            raise NotFoundError("Project")
        return row

    def set_project_image(
        self, conn: Connection, owner_id: int, project_id: int, filename: str, now: str
    ) -> Dict[str, Any]:
        owner_id = require_owner_id(owner_id)
        row = fetch_one(
            conn,
            """
            UPDATE projects SET image_filename = :filename, updated_at = :updated_at
            WHERE id = :id AND owner_id = :owner_id
            RETURNING *
            """,
            {"filename": filename, "updated_at": now, "id": project_id, "owner_id": owner_id},
        )
        if row is None:
            raise NotFoundError("Project")
        return row

    def delete_project(self, conn: Connection, owner_id: int, project_id: int) -> List[str]:
        """
        Delete a project with its photos and notes (caller holds the transaction).
        Returns the blob filenames that belonged to it.
        """
        project = self.get_project(conn, owner_id, project_id)
        photos = self.list_photos(conn, owner_id, project_id)
        blobs = [photo["filename"] for photo in photos]
        if project.get("image_filename"):
            blobs.append(project["image_filename"])

        conn.execute(text("DELETE FROM photos WHERE project_id = :project_id"), {"project_id": project_id})
        conn.execute(text("DELETE FROM notes WHERE project_id = :project_id"), {"project_id": project_id})
        conn.execute(
            text("DELETE FROM projects WHERE id = :id AND owner_id = :owner_id"),
            {"id": project_id, "owner_id": owner_id},
        )
        return blobs

    # -----------------------------------------------------
    # Photos and notes (owned through their project)
    # -----------------------------------------------------
    def list_photos(self, conn: Connection, owner_id: int, project_id: int) -> List[Dict[str, Any]]:
        owner_id = require_owner_id(owner_id)
        rows = fetch_all(
            conn,
            """
            SELECT ph.id, ph.project_id, ph.filename, ph.original_name, ph.caption,
                   ph.is_before_photo, ph.upload_date
            FROM photos ph
            JOIN projects p ON p.id = ph.project_id
            WHERE ph.project_id = :project_id AND p.owner_id = :owner_id
            ORDER BY ph.upload_date DESC, ph.id DESC
            """,
            {"project_id": project_id, "owner_id": owner_id},
        )
        return [_photo(row) for row in rows]

    def get_photo(self, conn: Connection, owner_id: int, photo_id: int) -> Dict[str, Any]:
        owner_id = require_owner_id(owner_id)
        row = fetch_one(
            conn,
            """
            SELECT ph.id, ph.project_id, ph.filename, ph.original_name, ph.caption,
                   ph.is_before_photo, ph.upload_date
            FROM photos ph
            JOIN projects p ON p.id = ph.project_id
            WHERE ph.id = :id AND p.owner_id = :owner_id
            """,
            {"id": photo_id, "owner_id": owner_id},
        )
        if row is None:
            raise NotFoundError("Photo")
        return _photo(row)

    def insert_photo(self, conn: Connection, owner_id: int, project_id: int, values: Mapping[str, Any]) -> Dict[str, Any]:
        self.get_project(conn, owner_id, project_id)
        row = fetch_one(
            conn,
            """
            INSERT INTO photos (project_id, filename, original_name, caption, is_before_photo, upload_date)
            VALUES (:project_id, :filename, :original_name, :caption, :is_before_photo, :upload_date)
            RETURNING id, project_id, filename, original_name, caption, is_before_photo, upload_date
            """,
            {**values, "project_id": project_id},
        )
        return _photo(row)

    def list_notes(self, conn: Connection, owner_id: int, project_id: int) -> List[Dict[str, Any]]:
        owner_id = require_owner_id(owner_id)
        return fetch_all(
            conn,
            """
            SELECT n.id, n.project_id, n.content, n.created_at
            FROM notes n
            JOIN projects p ON p.id = n.project_id
            WHERE n.project_id = :project_id AND p.owner_id = :owner_id
            ORDER BY n.created_at DESC, n.id DESC
            """,
            {"project_id": project_id, "owner_id": owner_id},
        )

    def get_note(self, conn: Connection, owner_id: int, note_id: int) -> Dict[str, Any]:
        owner_id = require_owner_id(owner_id)
        row = fetch_one(
            conn,
            """
            SELECT n.id, n.project_id, n.content, n.created_at
            FROM notes n
            JOIN projects p ON p.id = n.project_id
            WHERE n.id = :id AND p.owner_id = :owner_id
            """,
            {"id": note_id, "owner_id": owner_id},
        )
        if row is None:
            raise NotFoundError("Note")
        return row

    def insert_note(self, conn: Connection, owner_id: int, project_id: int, content: str, now: str) -> Dict[str, Any]:
        self.get_project(conn, owner_id, project_id)
        return fetch_one(
            conn,
            """
            INSERT INTO notes (project_id, content, created_at)
            VALUES (:project_id, :content, :created_at)
            RETURNING id, project_id, content, created_at
            """,
            {"project_id": project_id, "content": content, "created_at": now},
        )
