"""Expense write path.

Creating or editing an expense reads the rate store exactly once, converts the
local amount into the trip's primary currency, and stores the result as the
expense's ``converted_amount``. Nothing recomputes that value afterwards; a
later rate refresh leaves existing expenses untouched. If the conversion fails
no row is written.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional

from tripwallet.core.errors import NotFound
from tripwallet.db.dal import Database
from tripwallet.models.expense import ExpenseIn, ExpenseUpdateIn
from tripwallet.services.feature_gate import FeatureGate
from tripwallet.services.rates.conversion import ConversionResult, convert_with_snapshot
from tripwallet.services.rates.store import RateStore


def resolve_trip(db: Database, trip_id: Optional[int]) -> Dict[str, Any]:
    trip = db.get_trip(trip_id) if trip_id is not None else db.get_active_trip()
    if trip is None:
        raise NotFound("trip not found" if trip_id is not None else "no active trip")
    return trip


def freeze_amount(
    amount: float, local_currency: str, trip: Dict[str, Any], store: RateStore
) -> ConversionResult:
    snapshot = store.current()
    return convert_with_snapshot(amount, local_currency, trip["primary_currency"], snapshot)


def create_expense(
    db: Database,
    gate: FeatureGate,
    store: RateStore,
    payload: ExpenseIn,
    clock: Callable[[], int] = time.time_ns,
) -> Dict[str, Any]:
    gate.require_enabled()
    trip = resolve_trip(db, payload.trip_id)
    frozen = freeze_amount(payload.amount, payload.local_currency, trip, store)
    expense_id = db.insert_expense(
        trip_id=int(trip["id"]),
        amount=payload.amount,
        local_currency=payload.local_currency,
        converted_amount=frozen.converted_amount,
        exchange_rate=frozen.rate,
        category=payload.category,
        note=payload.note,
        date_ns=payload.date if payload.date is not None else clock(),
    )
    row = db.get_expense(expense_id)
    if row is None:  # pragma: no cover
        raise RuntimeError("expense not found after insert")
    return row


def edit_expense(
    db: Database,
    store: RateStore,
    expense_id: int,
    payload: ExpenseUpdateIn,
) -> Dict[str, Any]:
    """Apply a partial edit and re-freeze with the rates current right now."""
    row = db.get_expense(expense_id)
    if row is None:
        raise NotFound("expense not found")
    trip = resolve_trip(db, int(row["trip_id"]))

    amount = payload.amount if payload.amount is not None else float(row["amount"])
    local_currency = payload.local_currency or row["local_currency"]
    frozen = freeze_amount(amount, local_currency, trip, store)

    db.update_expense(
        expense_id,
        amount=amount,
        local_currency=local_currency,
        converted_amount=frozen.converted_amount,
        exchange_rate=frozen.rate,
        category=payload.category if payload.category is not None else row["category"],
        note=payload.note if payload.note is not None else row["note"],
        date_ns=payload.date if payload.date is not None else int(row["date"]),
    )
    updated = db.get_expense(expense_id)
    if updated is None:
        raise NotFound("expense not found")
    return updated
