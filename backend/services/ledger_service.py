"""
Ledger Service — SQLite persistence for the expense ledger.

Writes are append, remove, clear, replace (realtime updates) and replace_all
(reconciling with the remote room).  Reads return the whole ledger
newest-first and every row passes through normalize_expense, so a corrupted
row can never break the settlement maths downstream.
"""
import logging

import aiosqlite

from config import PARTICIPANTS
from models.schemas import Expense, SyncMessage, SyncOp
from services.expense_service import normalize_expense

logger = logging.getLogger("splitter.db")


async def read_all(
    db: aiosqlite.Connection,
    participants: tuple[str, str] = PARTICIPANTS,
) -> list[Expense]:
    async with db.execute(
        """SELECT id, item_name, amount, buyer, date, split_type, category, provider
           FROM expenses
           ORDER BY seq DESC"""
    ) as cur:
        rows = await cur.fetchall()
    return [normalize_expense(dict(row), participants) for row in rows]


async def append_expense(db: aiosqlite.Connection, expense: Expense):
    """Insert (or replace, keyed by id) and commit.  Replaced rows move to the front."""
    await db.execute("DELETE FROM expenses WHERE id = ?", (expense.id,))
    await db.execute(
        """INSERT INTO expenses
           (id, item_name, amount, buyer, date, split_type, category, provider)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (expense.id, expense.item_name, expense.amount, expense.buyer,
         expense.date.isoformat(), expense.split_type, expense.category, expense.provider),
    )
    await db.commit()


async def remove_expense(db: aiosqlite.Connection, expense_id: str) -> int:
    """Delete by id.  Returns the number of rows removed (0 or 1)."""
    cur = await db.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
    await db.commit()
    return cur.rowcount


async def clear_expenses(db: aiosqlite.Connection) -> int:
    cur = await db.execute("DELETE FROM expenses")
    await db.commit()
    logger.info("Cleared ledger (%d rows)", cur.rowcount)
    return cur.rowcount


async def replace_expense(db: aiosqlite.Connection, expense: Expense) -> bool:
    """Overwrite an existing row in place (keeps its position).  False if unknown."""
    cur = await db.execute(
        """UPDATE expenses
           SET item_name = ?, amount = ?, buyer = ?, date = ?,
               split_type = ?, category = ?, provider = ?
           WHERE id = ?""",
        (expense.item_name, expense.amount, expense.buyer, expense.date.isoformat(),
         expense.split_type, expense.category, expense.provider, expense.id),
    )
    await db.commit()
    return cur.rowcount > 0


async def apply_sync_to_store(
    db: aiosqlite.Connection,
    message: SyncMessage,
    participants: tuple[str, str] = PARTICIPANTS,
) -> None:
    """
    Persist one realtime event.  Mirrors expense_service.apply_sync_message
    so the stored ledger and an in-memory fold of the same events agree.
    """
    if message.op == SyncOp.delete:
        expense_id = message.record.get("id")
        if expense_id is None:
            logger.warning("Ignoring delete event without an id")
            return
        await remove_expense(db, str(expense_id))
        return

    expense = normalize_expense(message.record, participants)
    if message.op == SyncOp.update and await replace_expense(db, expense):
        return
    await append_expense(db, expense)


async def replace_all(db: aiosqlite.Connection, expenses: list[Expense]) -> int:
    """
    Swap the whole stored ledger for ``expenses`` (newest first) in one
    commit.  Used to adopt a room's full record set after reconciling.
    """
    rows = _dedupe(expenses)
    await db.execute("DELETE FROM expenses")
    # Insert oldest first so seq order matches the given order
    await db.executemany(
        """INSERT INTO expenses
           (id, item_name, amount, buyer, date, split_type, category, provider)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        [
            (e.id, e.item_name, e.amount, e.buyer, e.date.isoformat(),
             e.split_type, e.category, e.provider)
            for e in reversed(rows)
        ],
    )
    await db.commit()
    logger.info("Replaced ledger with %d reconciled rows", len(rows))
    return len(rows)


def _dedupe(expenses: list[Expense]) -> list[Expense]:
    """First occurrence of each id wins (ids are UNIQUE in the table)."""
    seen = set()
    kept = []
    for e in expenses:
        if e.id not in seen:
            seen.add(e.id)
            kept.append(e)
    return kept
