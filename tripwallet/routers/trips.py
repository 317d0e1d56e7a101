from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tripwallet.core.errors import NotFound
from tripwallet.db.dal import Database
from tripwallet.models.expense import ExpenseOut
from tripwallet.models.summary import TripSummaryOut
from tripwallet.models.trip import TripCreate, TripOut, TripUpdate
from tripwallet.routers.deps import get_db, row_to_expense, row_to_trip
from tripwallet.services import budget_utils

router = APIRouter(prefix="/trips", tags=["trips"])


def _require_trip(db: Database, trip_id: int) -> dict:
    row = db.get_trip(trip_id)
    if not row:
        raise NotFound("trip not found")
    return row


@router.get("/", response_model=List[TripOut], summary="List trips")
async def list_trips(db: Database = Depends(get_db)):
    return [row_to_trip(r) for r in db.list_trips()]


@router.post(
    "/",
    response_model=TripOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create trip",
)
async def create_trip(payload: TripCreate, db: Database = Depends(get_db)):
    trip_id = db.create_trip(
        name=payload.name,
        primary_currency=payload.primary_currency,
        budget_limit=payload.budget_limit,
        start_date=payload.start_date,
        end_date=payload.end_date,
        make_active=payload.make_active,
    )
    row = db.get_trip(trip_id)
    if not row:
        raise HTTPException(status_code=500, detail="trip not found after creation")
    return row_to_trip(row)


@router.get("/active", response_model=TripOut, summary="Get the active trip")
async def get_active_trip(db: Database = Depends(get_db)):
    row = db.get_active_trip()
    if not row:
        raise NotFound("no trips configured")
    return row_to_trip(row)


@router.get("/{trip_id}", response_model=TripOut, summary="Get trip details")
async def get_trip(trip_id: int, db: Database = Depends(get_db)):
    return row_to_trip(_require_trip(db, trip_id))


@router.patch("/{trip_id}", response_model=TripOut, summary="Update trip metadata")
async def update_trip(trip_id: int, payload: TripUpdate, db: Database = Depends(get_db)):
    row = _require_trip(db, trip_id)
    start = payload.start_date if payload.start_date is not None else row.get("start_date")
    end = payload.end_date if payload.end_date is not None else row.get("end_date")
    # ISO dates order correctly as strings
    if start and end and str(end) < str(start):
        raise HTTPException(status_code=400, detail="end_date cannot be before start_date")
    db.update_trip(trip_id, **payload.model_dump(exclude_none=True))
    return row_to_trip(_require_trip(db, trip_id))


@router.delete(
    "/{trip_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a trip and all of its expenses",
)
async def delete_trip(trip_id: int, db: Database = Depends(get_db)):
    if not db.delete_trip(trip_id):
        raise NotFound("trip not found")
    return None


@router.post("/{trip_id}/activate", response_model=TripOut, summary="Make a trip active")
async def activate_trip(trip_id: int, db: Database = Depends(get_db)):
    if not db.set_active_trip(trip_id):
        raise NotFound("trip not found")
    return row_to_trip(_require_trip(db, trip_id))


@router.get(
    "/{trip_id}/expenses",
    response_model=List[ExpenseOut],
    summary="List a trip's expenses, newest first",
)
async def list_trip_expenses(trip_id: int, db: Database = Depends(get_db)):
    _require_trip(db, trip_id)
    return [row_to_expense(r) for r in db.list_expenses(trip_id)]


@router.get(
    "/{trip_id}/summary",
    response_model=TripSummaryOut,
    summary="Budget status for a trip in its primary currency",
)
async def trip_summary(
    trip_id: int,
    recent: int = Query(5, ge=0, le=50, description="Number of recent expenses"),
    db: Database = Depends(get_db),
):
    trip = row_to_trip(_require_trip(db, trip_id))
    expenses = [row_to_expense(r) for r in db.list_expenses(trip_id)]
    summary = budget_utils.summarize(trip, expenses)
    return TripSummaryOut(
        trip_id=trip.id,
        primary_currency=trip.primary_currency,
        budget_limit=trip.budget_limit,
        summary=summary,
        alert=budget_utils.budget_alert(summary),
        overspent_by=budget_utils.overspent_by(summary),
        recent_expenses=budget_utils.recent_expenses(expenses, limit=recent),
    )
