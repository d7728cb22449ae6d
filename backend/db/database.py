import logging
import aiosqlite
import os
from contextlib import asynccontextmanager

logger = logging.getLogger("splitter.db")
DB_PATH = os.environ.get("DB_PATH", "/data/splitter.db")

@asynccontextmanager
async def open_db():
    """Open a connection outside a request (startup, realtime listeners)."""
    async with aiosqlite.connect(DB_PATH) as db:
        db.row_factory = aiosqlite.Row
        yield db

async def get_db() -> aiosqlite.Connection:
    """Dependency: yields an open DB connection."""
    async with open_db() as db:
        yield db

async def init_db():
    """Create all tables if they don't exist."""
    os.makedirs(os.path.dirname(DB_PATH) or ".", exist_ok=True)
    async with aiosqlite.connect(DB_PATH) as db:
        await db.executescript(SCHEMA)
        await db.commit()
    logger.info("Initialized at %s", DB_PATH)


SCHEMA = """
-- The ledger: one row per expense
CREATE TABLE IF NOT EXISTS expenses (
    seq         INTEGER PRIMARY KEY AUTOINCREMENT,   -- insertion order (newest = highest)
    id          TEXT NOT NULL UNIQUE,                -- opaque id assigned at creation
    item_name   TEXT NOT NULL DEFAULT '',
    amount      REAL NOT NULL,
    buyer       TEXT NOT NULL,
    date        TEXT NOT NULL,                       -- ISO YYYY-MM-DD
    split_type  TEXT NOT NULL DEFAULT 'equal',       -- equal | personal
    category    TEXT,
    provider    TEXT NOT NULL DEFAULT 'Local',
    created_at  TEXT DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);
"""
