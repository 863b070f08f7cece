# fixilissimo/migrate.py
# Database migrations for PostgreSQL and SQLite
# Run: python -m fixilissimo.migrate

from __future__ import annotations

from typing import List, Tuple

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection

from fixilissimo.db import Database

# Locations (id, name, icon, color) and their categories, seeded for every new user
DEFAULT_LOCATIONS: List[Tuple[str, str, str, str]] = [
    ("home", "Home", "🏠", "#3B82F6"),
    ("summer_house", "Summer House", "🏖️", "#10B981"),
    ("boat", "Boat", "⛵", "#8B5CF6"),
]

DEFAULT_CATEGORIES = {
    "home": [
        "Kitchen", "Bathroom", "Living Room", "Bedroom", "Basement",
        "Attic", "Garage", "Exterior", "Yard/Garden",
    ],
    "summer_house": [
        "Kitchen", "Living Area", "Bedroom", "Deck/Patio",
        "Exterior", "Dock", "Winterization",
    ],
    "boat": [
        "Engine", "Hull", "Electronics", "Electrical",
        "Plumbing", "Interior", "Rigging", "Safety Equipment",
    ],
}


def _schema(serial_pk: str, money: str) -> List[str]:
    return [
        f"""
        CREATE TABLE IF NOT EXISTS users (
            id {serial_pk},
            username TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            email TEXT,
            created_at TEXT NOT NULL
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS locations (
            pk {serial_pk},
            id TEXT NOT NULL,
            owner_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            icon TEXT NOT NULL DEFAULT '🏠',
            color TEXT NOT NULL DEFAULT '#3B82F6',
            created_at TEXT NOT NULL,
            UNIQUE (owner_id, id)
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS categories (
            id {serial_pk},
            owner_id INTEGER NOT NULL,
            location_id TEXT NOT NULL,
            name TEXT NOT NULL,
            created_at TEXT NOT NULL,
            FOREIGN KEY (owner_id, location_id) REFERENCES locations (owner_id, id) ON DELETE CASCADE,
            UNIQUE (owner_id, location_id, name)
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS projects (
            id {serial_pk},
            owner_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            description TEXT,
            category TEXT,
            location TEXT,
            status TEXT NOT NULL DEFAULT 'planning',
            start_month INTEGER,
            start_year INTEGER,
            budget {money},
            actual_cost {money},
            estimated_days INTEGER,
            doer TEXT NOT NULL DEFAULT 'me',
            image_filename TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS photos (
            id {serial_pk},
            project_id INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            filename TEXT NOT NULL,
            original_name TEXT NOT NULL,
            caption TEXT,
            is_before_photo BOOLEAN NOT NULL DEFAULT FALSE,
            upload_date TEXT NOT NULL
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS notes (
            id {serial_pk},
            project_id INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_locations_owner_created ON locations(owner_id, created_at)",
        "CREATE INDEX IF NOT EXISTS idx_categories_owner_location ON categories(owner_id, location_id)",
        "CREATE INDEX IF NOT EXISTS idx_projects_owner_location ON projects(owner_id, location)",
        "CREATE INDEX IF NOT EXISTS idx_projects_owner_updated ON projects(owner_id, updated_at)",
        "CREATE INDEX IF NOT EXISTS idx_photos_project_id ON photos(project_id)",
        "CREATE INDEX IF NOT EXISTS idx_notes_project_id ON notes(project_id)",
    ]


def run_migrations(db: Database) -> None:
    """
    Run all database migrations (idempotent).
    Creates tables, adds columns, and creates indexes if missing.
    Safe to run multiple times.
    """
    if db.is_postgres:
        statements = _schema("SERIAL PRIMARY KEY", "DOUBLE PRECISION")
    else:
        statements = _schema("INTEGER PRIMARY KEY AUTOINCREMENT", "REAL")

    with db.transaction() as conn:
        for statement in statements:
            conn.execute(text(statement))
        # Databases created before cost tracking lack actual_cost
        _ensure_column(conn, "projects", "actual_cost", "DOUBLE PRECISION" if db.is_postgres else "REAL")

    print("[MIGRATE] Schema up to date")


def _ensure_column(conn: Connection, table: str, column: str, ddl: str) -> bool:
    """Add column to table if missing. Returns True if the column was added."""
    columns = {col["name"] for col in inspect(conn).get_columns(table)}
    if column in columns:
        return False
    conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}"))
    print(f"[MIGRATE] Added column {table}.{column} ({ddl})")
    return True


def seed_owner_defaults(conn: Connection, owner_id: int, now: str) -> None:
    """Give a freshly registered user the default locations and categories."""
    for location_id, name, icon, color in DEFAULT_LOCATIONS:
        conn.execute(
            text(
                """
                INSERT INTO locations (id, owner_id, name, icon, color, created_at)
                VALUES (:id, :owner_id, :name, :icon, :color, :created_at)
                """
            ),
            {"id": location_id, "owner_id": owner_id, "name": name, "icon": icon, "color": color, "created_at": now},
        )
        for category in DEFAULT_CATEGORIES[location_id]:
            conn.execute(
                text(
                    """
                    INSERT INTO categories (owner_id, location_id, name, created_at)
                    VALUES (:owner_id, :location_id, :name, :created_at)
                    """
                ),
                {"owner_id": owner_id, "location_id": location_id, "name": category, "created_at": now},
            )


if __name__ == "__main__":
    from fixilissimo.config import database_url

    run_migrations(Database(database_url()))
