from fastapi import APIRouter, Depends, status

from tripwallet.core.errors import NotFound
from tripwallet.db.dal import Database
from tripwallet.models.expense import ExpenseIn, ExpenseOut, ExpenseUpdateIn
from tripwallet.routers.deps import get_db, get_rate_service, row_to_expense
from tripwallet.services import expenses as expense_service
from tripwallet.services.rate_service import RateService

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post(
    "/",
    response_model=ExpenseOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create an expense",
)
async def create_expense(
    payload: ExpenseIn,
    db: Database = Depends(get_db),
    rates: RateService = Depends(get_rate_service),
):
    # Gate check, single snapshot read, frozen conversion, insert.
    row = expense_service.create_expense(db, rates.gate, rates.store, payload)
    return row_to_expense(row)


@router.get("/{expense_id}", response_model=ExpenseOut, summary="Get an expense")
async def get_expense(expense_id: int, db: Database = Depends(get_db)):
    row = db.get_expense(expense_id)
    if not row:
        raise NotFound("expense not found")
    return row_to_expense(row)


@router.patch(
    "/{expense_id}", response_model=ExpenseOut, summary="Edit an expense (partial)"
)
async def patch_expense(
    expense_id: int,
    payload: ExpenseUpdateIn,
    db: Database = Depends(get_db),
    rates: RateService = Depends(get_rate_service),
):
    row = expense_service.edit_expense(db, rates.store, expense_id, payload)
    return row_to_expense(row)


@router.delete(
    "/{expense_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an expense"
)
async def delete_expense(expense_id: int, db: Database = Depends(get_db)):
    if not db.delete_expense(expense_id):
        raise NotFound("expense not found")
    return None
