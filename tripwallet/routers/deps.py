"""Shared route dependencies and row -> model helpers."""

from __future__ import annotations

from datetime import date, datetime

from fastapi import Request

from tripwallet.db.dal import Database
from tripwallet.models.expense import ExpenseOut
from tripwallet.models.trip import TripOut
from tripwallet.services.rate_service import RateService


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_rate_service(request: Request) -> RateService:
    return request.app.state.rates


def _parse_ts(raw):
    return datetime.fromisoformat(raw.replace("Z", "")) if isinstance(raw, str) else raw


def row_to_trip(row: dict) -> TripOut:
    start_raw = row.get("start_date")
    end_raw = row.get("end_date")
    return TripOut(
        id=int(row["id"]),
        name=row["name"],
        primary_currency=row["primary_currency"],
        budget_limit=float(row["budget_limit"]),
        is_active=bool(row["is_active"]),
        start_date=date.fromisoformat(start_raw) if start_raw else None,
        end_date=date.fromisoformat(end_raw) if end_raw else None,
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def row_to_expense(row: dict) -> ExpenseOut:
    return ExpenseOut(
        id=int(row["id"]),
        trip_id=int(row["trip_id"]),
        amount=float(row["amount"]),
        local_currency=row["local_currency"],
        converted_amount=float(row["converted_amount"]),
        exchange_rate=float(row["exchange_rate"]),
        category=row["category"],
        note=row.get("note"),
        date=int(row["date"]),
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )
