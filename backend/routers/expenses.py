"""
Expenses Router

POST   /api/expenses          — validate and append an expense
GET    /api/expenses          — full ledger, newest first
DELETE /api/expenses/{id}     — remove one expense
DELETE /api/expenses          — clear the ledger
POST   /api/expenses/sync     — apply a realtime insert/update/delete event
POST   /api/expenses/reconcile — replace the ledger with the remote room's records
"""
import logging
from typing import Optional

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from db.database import get_db
from models.schemas import Expense, ExpenseCreate, ExpenseWriteResult, SyncMessage
from services import ledger_service
from services.errors import ValidationError, SyncFailed
from services.expense_service import validate_expense
from services.sync_service import LedgerSync, get_sync

logger = logging.getLogger("splitter.expenses")
router = APIRouter()


@router.get("", response_model=list[Expense])
async def list_expenses(db: aiosqlite.Connection = Depends(get_db)):
    return await ledger_service.read_all(db)


@router.post("", response_model=ExpenseWriteResult, status_code=201)
async def create_expense(
    body: ExpenseCreate,
    db: aiosqlite.Connection = Depends(get_db),
    sync: Optional[LedgerSync] = Depends(get_sync),
):
    try:
        expense = validate_expense(body)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    await ledger_service.append_expense(db, expense)
    logger.info("Added expense %s (%.2f by %s, %s)",
                expense.id, expense.amount, expense.buyer, expense.split_type)

    sync_error = None
    if sync:
        try:
            await sync.push_insert(expense)
        except SyncFailed as e:
            sync_error = str(e)
    return ExpenseWriteResult(expense=expense, sync_error=sync_error)


@router.delete("/{expense_id}", response_model=ExpenseWriteResult)
async def delete_expense(
    expense_id: str,
    db: aiosqlite.Connection = Depends(get_db),
    sync: Optional[LedgerSync] = Depends(get_sync),
):
    removed = await ledger_service.remove_expense(db, expense_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Expense not found")

    sync_error = None
    if sync:
        try:
            await sync.push_delete(expense_id)
        except SyncFailed as e:
            sync_error = str(e)
    return ExpenseWriteResult(removed=removed, sync_error=sync_error)


@router.delete("", response_model=ExpenseWriteResult)
async def clear_expenses(
    db: aiosqlite.Connection = Depends(get_db),
    sync: Optional[LedgerSync] = Depends(get_sync),
):
    removed = await ledger_service.clear_expenses(db)

    sync_error = None
    if sync:
        try:
            await sync.push_clear()
        except SyncFailed as e:
            sync_error = str(e)
    return ExpenseWriteResult(removed=removed, sync_error=sync_error)


@router.post("/sync")
async def apply_sync_event(
    message: SyncMessage,
    db: aiosqlite.Connection = Depends(get_db),
):
    """Inbound realtime event from the remote room (normalized before storage)."""
    await ledger_service.apply_sync_to_store(db, message)
    return {"status": "ok", "op": message.op}


@router.post("/reconcile", response_model=list[Expense])
async def reconcile_with_room(
    db: aiosqlite.Connection = Depends(get_db),
    sync: Optional[LedgerSync] = Depends(get_sync),
):
    """Pull the room's full record set and make it the stored ledger."""
    if sync is None:
        raise HTTPException(status_code=409, detail="Realtime sync is not configured")
    try:
        await sync.reconcile_store(db)
    except SyncFailed as e:
        raise HTTPException(status_code=502, detail=str(e))
    return await ledger_service.read_all(db)
