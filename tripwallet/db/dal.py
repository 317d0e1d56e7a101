"""Data Access Layer for trips, expenses, the rate snapshot and the API key.

Responsibilities
----------------
- CRUD helpers for trips, keeping at most one trip active.
- Expense CRUD scoped to trips; deleting a trip removes its expenses.
- Persistence of the latest rate snapshot so staleness survives restarts.
- Storage of the validated exchange-rate API key.

Rows are returned as plain dicts; callers convert them to models.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import closing, contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from tripwallet.models.rates import RateSnapshot

UTC_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"
API_KEY_META = "api_key"
_UNSET = object()


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    # ------------------------------------------------------------------
    # Connection helpers
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _tx(self) -> Iterator[sqlite3.Cursor]:
        """Cursor inside a transaction; commits on success, rolls back on error."""
        with closing(self._connect()) as conn:
            with conn:
                yield conn.cursor()

    # ------------------------------------------------------------------
    # Trips
    def list_trips(self) -> List[Dict[str, Any]]:
        with self._tx() as cur:
            cur.execute("SELECT * FROM trips ORDER BY created_at ASC, id ASC")
            return [dict(r) for r in cur.fetchall()]

    def get_trip(self, trip_id: int) -> Optional[Dict[str, Any]]:
        with self._tx() as cur:
            cur.execute("SELECT * FROM trips WHERE id = ?", (trip_id,))
            row = cur.fetchone()
            return dict(row) if row else None

    def create_trip(
        self,
        name: str,
        primary_currency: str,
        budget_limit: float,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        make_active: bool = False,
    ) -> int:
        if budget_limit < 0:
            raise ValueError("budget_limit cannot be negative")
        with self._tx() as cur:
            cur.execute(
                f"""
                INSERT INTO trips (name, primary_currency, budget_limit, start_date,
                                   end_date, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ({UTC_NOW_SQL}), ({UTC_NOW_SQL}))
                """,
                (
                    name,
                    primary_currency,
                    float(budget_limit),
                    start_date.isoformat() if start_date else None,
                    end_date.isoformat() if end_date else None,
                ),
            )
            trip_id = int(cur.lastrowid)
            cur.execute("SELECT 1 FROM trips WHERE is_active = 1")
            if make_active or cur.fetchone() is None:
                self._set_active_trip(cur, trip_id)
            return trip_id

    def update_trip(
        self,
        trip_id: int,
        *,
        name: Any = _UNSET,
        budget_limit: Any = _UNSET,
        start_date: Any = _UNSET,
        end_date: Any = _UNSET,
    ) -> bool:
        fields: Dict[str, Any] = {}
        if name is not _UNSET:
            fields["name"] = name
        if budget_limit is not _UNSET:
            if budget_limit is None or budget_limit < 0:
                raise ValueError("budget_limit must be a non-negative number")
            fields["budget_limit"] = float(budget_limit)
        if start_date is not _UNSET:
            fields["start_date"] = start_date.isoformat() if start_date else None
        if end_date is not _UNSET:
            fields["end_date"] = end_date.isoformat() if end_date else None
        if not fields:
            return self.get_trip(trip_id) is not None
        assignments = ", ".join(f"{col} = ?" for col in fields)
        with self._tx() as cur:
            cur.execute(
                f"UPDATE trips SET {assignments}, updated_at = ({UTC_NOW_SQL}) WHERE id = ?",
                (*fields.values(), trip_id),
            )
            return cur.rowcount > 0

    def delete_trip(self, trip_id: int) -> bool:
        with self._tx() as cur:
            # Explicit cascade; also covered by the FK when enabled.
            cur.execute("DELETE FROM expenses WHERE trip_id = ?", (trip_id,))
            cur.execute("DELETE FROM trips WHERE id = ?", (trip_id,))
            return cur.rowcount > 0

    def _set_active_trip(self, cur: sqlite3.Cursor, trip_id: int) -> None:
        cur.execute(
            f"UPDATE trips SET is_active = 0, updated_at = ({UTC_NOW_SQL}) "
            "WHERE is_active = 1 AND id != ?",
            (trip_id,),
        )
        cur.execute(
            f"UPDATE trips SET is_active = 1, updated_at = ({UTC_NOW_SQL}) WHERE id = ?",
            (trip_id,),
        )

    def set_active_trip(self, trip_id: int) -> bool:
        with self._tx() as cur:
            cur.execute("SELECT id FROM trips WHERE id = ?", (trip_id,))
            if cur.fetchone() is None:
                return False
            self._set_active_trip(cur, trip_id)
            return True

    def get_active_trip(self) -> Optional[Dict[str, Any]]:
        """Return the active trip, activating the oldest trip when none is."""
        with self._tx() as cur:
            cur.execute("SELECT * FROM trips WHERE is_active = 1")
            row = cur.fetchone()
            if row:
                return dict(row)
            cur.execute("SELECT id FROM trips ORDER BY created_at ASC, id ASC LIMIT 1")
            first = cur.fetchone()
            if not first:
                return None
            self._set_active_trip(cur, int(first["id"]))
            cur.execute("SELECT * FROM trips WHERE id = ?", (int(first["id"]),))
            return dict(cur.fetchone())

    # ------------------------------------------------------------------
    # Expenses
    def insert_expense(
        self,
        trip_id: int,
        amount: float,
        local_currency: str,
        converted_amount: float,
        exchange_rate: float,
        category: str,
        note: Optional[str],
        date_ns: int,
    ) -> int:
        with self._tx() as cur:
            cur.execute(
                f"""
                INSERT INTO expenses (trip_id, amount, local_currency, converted_amount,
                                      exchange_rate, category, note, date,
                                      created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ({UTC_NOW_SQL}), ({UTC_NOW_SQL}))
                """,
                (
                    trip_id,
                    amount,
                    local_currency,
                    converted_amount,
                    exchange_rate,
                    category,
                    note,
                    date_ns,
                ),
            )
            return int(cur.lastrowid)

    def get_expense(self, expense_id: int) -> Optional[Dict[str, Any]]:
        with self._tx() as cur:
            cur.execute("SELECT * FROM expenses WHERE id = ?", (expense_id,))
            row = cur.fetchone()
            return dict(row) if row else None

    def list_expenses(self, trip_id: int) -> List[Dict[str, Any]]:
        """Expenses of one trip, newest first."""
        with self._tx() as cur:
            cur.execute(
                "SELECT * FROM expenses WHERE trip_id = ? ORDER BY date DESC, id DESC",
                (trip_id,),
            )
            return [dict(r) for r in cur.fetchall()]

    def update_expense(
        self,
        expense_id: int,
        *,
        amount: float,
        local_currency: str,
        converted_amount: float,
        exchange_rate: float,
        category: str,
        note: Optional[str],
        date_ns: int,
    ) -> bool:
        with self._tx() as cur:
            cur.execute(
                f"""
                UPDATE expenses
                SET amount = ?, local_currency = ?, converted_amount = ?,
                    exchange_rate = ?, category = ?, note = ?, date = ?,
                    updated_at = ({UTC_NOW_SQL})
                WHERE id = ?
                """,
                (
                    amount,
                    local_currency,
                    converted_amount,
                    exchange_rate,
                    category,
                    note,
                    date_ns,
                    expense_id,
                ),
            )
            return cur.rowcount > 0

    def delete_expense(self, expense_id: int) -> bool:
        with self._tx() as cur:
            cur.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
            return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Rate snapshot
    def save_rate_snapshot(self, snapshot: RateSnapshot) -> None:
        with self._tx() as cur:
            cur.execute(
                f"""
                INSERT INTO rate_snapshots (id, base_currency, rates_json, fetched_at)
                VALUES (1, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    base_currency = excluded.base_currency,
                    rates_json = excluded.rates_json,
                    fetched_at = excluded.fetched_at,
                    updated_at = ({UTC_NOW_SQL})
                """,
                (
                    snapshot.base_currency,
                    json.dumps(dict(snapshot.table), sort_keys=True),
                    snapshot.fetched_at,
                ),
            )

    def load_rate_snapshot(self) -> Optional[RateSnapshot]:
        with self._tx() as cur:
            cur.execute(
                "SELECT base_currency, rates_json, fetched_at FROM rate_snapshots WHERE id = 1"
            )
            row = cur.fetchone()
        if not row:
            return None
        return RateSnapshot(
            table=json.loads(row["rates_json"]),
            fetched_at=int(row["fetched_at"]),
            base_currency=row["base_currency"],
        )

    # ------------------------------------------------------------------
    # API key (metadata)
    def get_api_key(self) -> Optional[str]:
        with self._tx() as cur:
            cur.execute("SELECT value FROM metadata WHERE key = ?", (API_KEY_META,))
            row = cur.fetchone()
            return row[0] if row else None

    def set_api_key(self, key: str) -> None:
        with self._tx() as cur:
            cur.execute(
                f"""
                INSERT INTO metadata (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = ({UTC_NOW_SQL})
                """,
                (API_KEY_META, key),
            )

    def delete_api_key(self) -> bool:
        with self._tx() as cur:
            cur.execute("DELETE FROM metadata WHERE key = ?", (API_KEY_META,))
            return cur.rowcount > 0
