"""Schema versioning for the SQLite store.

``init_db`` always creates the current baseline idempotently; the version number
lives in the metadata table under ``schema_version``. Future schema changes
register an upgrade step in ``MIGRATIONS`` under the version they produce.
"""

from __future__ import annotations
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Callable, Dict

from .schema import BASIC_UTC_NOW, init_db

CURRENT_SCHEMA_VERSION = 1
SCHEMA_VERSION_KEY = "schema_version"

MIGRATIONS: Dict[int, Callable[[sqlite3.Connection], None]] = {}


def read_schema_version(conn: sqlite3.Connection) -> int:
    row = conn.execute(
        "SELECT value FROM metadata WHERE key = ?", (SCHEMA_VERSION_KEY,)
    ).fetchone()
    # A database created by init_db but never stamped is the baseline.
    return int(row[0]) if row else 1


def apply_migrations(db_path: Path) -> int:
    """Bring the database at ``db_path`` to CURRENT_SCHEMA_VERSION and return it."""
    init_db(db_path)
    with closing(sqlite3.connect(db_path)) as conn:
        with conn:
            version = read_schema_version(conn)
            if version > CURRENT_SCHEMA_VERSION:
                raise RuntimeError(
                    f"database schema v{version} is newer than supported "
                    f"v{CURRENT_SCHEMA_VERSION}"
                )
            for target in range(version + 1, CURRENT_SCHEMA_VERSION + 1):
                MIGRATIONS[target](conn)
            conn.execute(
                f"""
                INSERT INTO metadata (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = ({BASIC_UTC_NOW})
                """,
                (SCHEMA_VERSION_KEY, str(CURRENT_SCHEMA_VERSION)),
            )
    return CURRENT_SCHEMA_VERSION
