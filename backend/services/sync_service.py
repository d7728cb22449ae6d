"""
Sync Service — boundary to an optional remote realtime ledger (one "room"
shared by both participants).

Local state is the optimistic source of truth: the caller applies a mutation
to the local ledger first, then pushes it here.  A failed push raises
SyncFailed for that one operation and is never rolled back locally; the
divergence heals on the next successful ``reconcile_store`` of the room.
"""
import logging
from typing import AsyncContextManager, Awaitable, Callable, Optional, Protocol

import aiosqlite

from config import PARTICIPANTS, SYNC_ROOM_ID
from models.schemas import Expense, SyncMessage
from services import ledger_service
from services.errors import SyncFailed
from services.expense_service import normalize_expense, apply_sync_message

logger = logging.getLogger("splitter.sync")


class RemoteLedger(Protocol):
    """What a realtime datastore client must provide."""

    async def insert(self, room_id: str, record: dict) -> None: ...
    async def delete(self, room_id: str, expense_id: str) -> None: ...
    async def clear(self, room_id: str) -> None: ...
    async def fetch_all(self, room_id: str) -> list[dict]: ...
    def subscribe(self, room_id: str, on_message: Callable[[SyncMessage], Awaitable[None]]) -> None: ...


class LedgerSync:
    def __init__(self, remote: RemoteLedger, room_id: str,
                 participants: tuple[str, str] = PARTICIPANTS):
        self.remote = remote
        self.room_id = room_id
        self.participants = participants

    async def _call(self, op: str, coro: Awaitable):
        try:
            return await coro
        except Exception as e:
            logger.error("Sync %s failed for room %s: %s", op, self.room_id, e)
            raise SyncFailed(op, self.room_id, str(e)) from e

    async def push_insert(self, expense: Expense) -> None:
        await self._call("insert", self.remote.insert(self.room_id, expense.model_dump(mode="json", by_alias=True)))

    async def push_delete(self, expense_id: str) -> None:
        await self._call("delete", self.remote.delete(self.room_id, expense_id))

    async def push_clear(self) -> None:
        await self._call("clear", self.remote.clear(self.room_id))

    async def reconcile(self) -> list[Expense]:
        """Fetch the room's full record set, normalized.  Newest first as delivered."""
        records = await self._call("fetch", self.remote.fetch_all(self.room_id))
        return [normalize_expense(r, self.participants) for r in records or []]

    def fold(self, ledger: list[Expense], message: SyncMessage) -> list[Expense]:
        return apply_sync_message(ledger, message, self.participants)

    def subscribe(self, on_message: Callable[[SyncMessage], Awaitable[None]]) -> None:
        self.remote.subscribe(self.room_id, on_message)

    async def handle_message(self, db: aiosqlite.Connection, message: SyncMessage) -> None:
        """Persist one inbound event; the record is normalized on the way in."""
        await ledger_service.apply_sync_to_store(db, message, self.participants)

    async def reconcile_store(self, db: aiosqlite.Connection) -> list[Expense]:
        """
        Adopt the room's full record set as the stored ledger.  This is how a
        divergence left by an earlier failed push heals.  Raises SyncFailed
        (and leaves the store untouched) when the fetch fails.
        """
        expenses = await self.reconcile()
        await ledger_service.replace_all(db, expenses)
        logger.info("Reconciled room %s: %d record(s)", self.room_id, len(expenses))
        return expenses

    def listen(self, open_db: Callable[[], AsyncContextManager[aiosqlite.Connection]]) -> None:
        """Subscribe to the room and write every inbound event to the store."""
        async def on_message(message: SyncMessage) -> None:
            async with open_db() as db:
                await self.handle_message(db, message)

        self.subscribe(on_message)


_sync: Optional[LedgerSync] = None


def configure_sync(remote: Optional[RemoteLedger], room_id: str = SYNC_ROOM_ID) -> Optional[LedgerSync]:
    """Install (or remove, with remote=None) the process-wide sync client."""
    global _sync
    _sync = LedgerSync(remote, room_id) if remote is not None and room_id else None
    if _sync:
        logger.info("Realtime sync enabled for room %s", room_id)
    return _sync


def get_sync() -> Optional[LedgerSync]:
    """Dependency: the configured sync client, or None when sync is off."""
    return _sync
