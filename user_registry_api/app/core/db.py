"""
SQLite database integration and simple migration system.

The ``Database`` object owns the location of the SQLite file and hands
out short-lived connections: one per operation, so request threads
never share a connection.  Two scopes are offered:

* ``cursor()`` for reads, which only guarantees the connection is closed;
* ``transaction()`` for writes, which opens ``BEGIN IMMEDIATE``, commits
  when the block succeeds and rolls back every statement when it raises.

Driver errors (``sqlite3.Error``) leave both scopes as ``StoreError``.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Tuple

from .config import Settings
from .exceptions import StoreError

logger = logging.getLogger(__name__)


MIGRATIONS: List[Tuple[int, str]] = [
    # Migration 1: user records and the external identifier mapping
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL,
            age INTEGER NOT NULL,
            email TEXT NOT NULL,
            phone TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        -- One row per user.  ``uuid`` is the only key clients ever see;
        -- ``user_id`` points at the internal primary key.
        CREATE TABLE IF NOT EXISTS uuid_map (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            uuid TEXT NOT NULL UNIQUE,
            user_id INTEGER NOT NULL UNIQUE,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(user_id) REFERENCES users(id)
        );
        """,
    ),
]


def get_database_path(db_url: str) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths are used as is; relative ones are resolved against
    the current working directory.
    """
    if os.path.isabs(db_url):
        return db_url
    return str((Path.cwd() / db_url).resolve())


class Database:
    """Connection factory and transaction scopes for one SQLite file."""

    def __init__(self, path: str, timeout: float = 5.0) -> None:
        self.path = path
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(get_database_path(settings.database_url), settings.database_timeout)

    def get_connection(self) -> sqlite3.Connection:
        """Create and return a new SQLite connection.

        The connection runs in autocommit mode (``isolation_level=None``)
        so transactions are only ever opened explicitly by
        ``transaction()``.  Rows are returned as ``sqlite3.Row`` and
        foreign key enforcement is switched on for the connection.
        """
        try:
            conn = sqlite3.connect(self.path, timeout=self.timeout, isolation_level=None)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        return conn

    @contextmanager
    def cursor(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor for reads and close the connection on exit."""
        conn = self.get_connection()
        try:
            yield conn.cursor()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor inside ``BEGIN IMMEDIATE``.

        The write lock is taken up front, so a lookup made inside the
        block cannot be invalidated by a concurrent writer before the
        block commits.  Any exception rolls back the whole block.
        """
        conn = self.get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn.cursor()
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create the database file if needed and apply pending migrations.

        Each migration runs in its own transaction together with the
        insert recording its version, so a failed migration leaves no
        partial schema behind.  To change the schema, append a new
        entry to ``MIGRATIONS`` with an incremented version number.
        """
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        conn = self.get_connection()
        try:
            conn.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
            row = conn.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0

            for version, sql in MIGRATIONS:
                if version > current_version:
                    logger.info("Applying migration %s to %s", version, self.path)
                    conn.executescript(
                        f"BEGIN;\n{sql}\nINSERT INTO migrations (version) VALUES ({version});\nCOMMIT;"
                    )
                    current_version = version
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def schema_version(self) -> int:
        """Return the highest applied migration version (0 when none)."""
        with self.cursor() as cursor:
            row = cursor.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
        return row["version"] if row["version"] is not None else 0
