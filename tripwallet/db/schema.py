"""Database schema DDL definitions and initialization utilities.

Tables:
  - trips: trips with a primary currency and budget limit; at most one active
  - expenses: expense records with their frozen converted amount
  - rate_snapshots: the single most recent exchange-rate table
  - metadata: key/value store (API key, schema version)
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

TRIPS_DDL = f"""
CREATE TABLE IF NOT EXISTS trips (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    primary_currency TEXT NOT NULL,
    budget_limit REAL NOT NULL DEFAULT 0 CHECK (budget_limit >= 0),
    is_active INTEGER NOT NULL DEFAULT 0 CHECK (is_active IN (0, 1)),
    start_date TEXT,
    end_date TEXT,
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

EXPENSES_DDL = f"""
CREATE TABLE IF NOT EXISTS expenses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    trip_id INTEGER NOT NULL,
    amount REAL NOT NULL CHECK (amount > 0),
    local_currency TEXT NOT NULL,
    converted_amount REAL NOT NULL, -- frozen at create/edit time
    exchange_rate REAL NOT NULL,
    category TEXT NOT NULL,
    note TEXT,
    date INTEGER NOT NULL, -- epoch nanoseconds
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    FOREIGN KEY (trip_id) REFERENCES trips(id) ON DELETE CASCADE
);
"""

RATE_SNAPSHOTS_DDL = f"""
CREATE TABLE IF NOT EXISTS rate_snapshots (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    base_currency TEXT NOT NULL,
    rates_json TEXT NOT NULL,
    fetched_at INTEGER NOT NULL, -- epoch nanoseconds
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

EXPENSES_TRIP_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_expenses_trip_date ON expenses(trip_id, date);"
)
SINGLE_ACTIVE_TRIP_INDEX_DDL = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_trips_single_active
ON trips(is_active)
WHERE is_active = 1;
"""

DDL_ORDER: Sequence[str] = (
    TRIPS_DDL,
    EXPENSES_DDL,
    RATE_SNAPSHOTS_DDL,
    METADATA_DDL,
    EXPENSES_TRIP_INDEX_DDL,
    SINGLE_ACTIVE_TRIP_INDEX_DDL,
)


def init_db(path: Path) -> None:
    """Create all tables idempotently.

    Parameters
    ----------
    path: Path to SQLite database file.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        conn.commit()
    finally:
        conn.close()
