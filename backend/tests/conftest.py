"""
Shared fixtures for backend tests.

Every test gets a fresh in-memory SQLite database with the production schema
from db/database.py, and the realtime sync client switched off unless a test
installs one.
"""
import pytest
import aiosqlite

from db.database import SCHEMA
from services.sync_service import configure_sync


@pytest.fixture
async def db():
    """Yield a fresh in-memory SQLite connection with the full schema."""
    async with aiosqlite.connect(":memory:") as conn:
        conn.row_factory = aiosqlite.Row
        await conn.executescript(SCHEMA)
        yield conn


@pytest.fixture(autouse=True)
def no_sync():
    configure_sync(None)
    yield
    configure_sync(None)


# ── Fake realtime datastore ───────────────────────────────────────────────────

class FakeRemote:
    """In-memory stand-in for a realtime datastore room."""

    def __init__(self, records=None, fail=False):
        self.records = list(records or [])
        self.fail = fail
        self.calls = []
        self.subscribers = {}

    async def insert(self, room_id, record):
        self.calls.append(("insert", room_id, record))
        if self.fail:
            raise ConnectionError("network down")
        self.records.insert(0, record)

    async def delete(self, room_id, expense_id):
        self.calls.append(("delete", room_id, expense_id))
        if self.fail:
            raise ConnectionError("network down")
        self.records = [r for r in self.records if r.get("id") != expense_id]

    async def clear(self, room_id):
        self.calls.append(("clear", room_id))
        if self.fail:
            raise TimeoutError("timed out")
        self.records = []

    async def fetch_all(self, room_id):
        if self.fail:
            raise ConnectionError("network down")
        return self.records

    def subscribe(self, room_id, on_message):
        self.subscribers[room_id] = on_message


@pytest.fixture
def make_remote():
    """Factory: make_remote(records=[...], fail=True) → FakeRemote."""
    return FakeRemote
