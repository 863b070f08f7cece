# fixilissimo/db.py
# Database handle supporting PostgreSQL (production) and SQLite (dev/tests)
#
# A Database is created once per application and injected into every service,
# so tests can point each app at its own throwaway database.

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, Optional
from urllib.parse import urlparse

from sqlalchemy import create_engine, event, pool
from sqlalchemy.engine import Connection, Engine, Row


class Database:
    """Owns the SQLAlchemy engine for one database URL."""

    def __init__(self, url: str, echo: bool = False):
        parsed = urlparse(url)
        if not parsed.scheme:
            raise ValueError(f"Invalid database URL: {url[:20]}...")

        self.url = url
        self.is_sqlite = parsed.scheme.startswith("sqlite")
        self.is_postgres = parsed.scheme.startswith("postgresql")

        if self.is_sqlite:
            self.engine: Engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                echo=echo,
            )
            event.listen(self.engine, "connect", _configure_sqlite_connection)
            print(f"[DB] Using SQLite ({parsed.path or 'memory'})")
        else:
            self.engine = create_engine(
                url,
                poolclass=pool.QueuePool,
                pool_size=5,
                max_overflow=10,
                pool_pre_ping=True,  # Verify connections before use
                echo=echo,
            )
            print(f"[DB] Using PostgreSQL ({parsed.hostname})")

    @contextmanager
    def connect(self) -> Generator[Connection, None, None]:
        """Connection for read-only work (no explicit transaction)."""
        with self.engine.connect() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Generator[Connection, None, None]:
        """
        Connection inside a transaction.
        Commits when the block exits normally, rolls back on any exception.
        """
        with self.engine.begin() as conn:
            yield conn

    def dispose(self) -> None:
        self.engine.dispose()


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


def _configure_sqlite_connection(dbapi_connection: Any, connection_record: Any) -> None:
    # SQLite leaves foreign keys off unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    # Built-in LOWER() only folds ASCII
    dbapi_connection.create_function("casefold", 1, _casefold, deterministic=True)


def row_to_dict(row: Optional[Row]) -> Dict[str, Any]:
    """
    Convert a SQLAlchemy Row to a plain dict.
    This is the single boundary for turning DB rows into payloads.
    """
    if row is None:
        return {}
    return dict(row._mapping)


def now_iso() -> str:
    # Fixed width so stored timestamps sort correctly as text
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")
