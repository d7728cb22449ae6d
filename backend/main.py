from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
import time

from config import PARTICIPANTS
from db.database import init_db, open_db
from routers import expenses, receipts, categories, trends
from services.errors import SyncFailed
from services.sync_service import get_sync

# ── Logging setup ─────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# Quiet noisy libraries unless we're in DEBUG
if LOG_LEVEL != "DEBUG":
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)

logger = logging.getLogger("splitter")

app = FastAPI(
    title="Grocery Splitter",
    description="Shared grocery expenses with receipt scanning and two-way settlement",
    version="0.1.0",
)

_cors_origins = os.environ.get("CORS_ORIGINS", "").strip()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins.split(",") if _cors_origins else ["*"],
    allow_credentials=bool(_cors_origins),  # only send credentials when origins are explicit
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(expenses.router,   prefix="/api/expenses",   tags=["expenses"])
app.include_router(receipts.router,   prefix="/api/receipts",   tags=["receipts"])
app.include_router(categories.router, prefix="/api/categories", tags=["categories"])
app.include_router(trends.router,     prefix="/api/trends",     tags=["trends"])

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    elapsed = (time.time() - start) * 1000
    if LOG_LEVEL == "DEBUG" or response.status_code >= 400:
        logger.log(
            logging.WARNING if response.status_code >= 400 else logging.DEBUG,
            "%s %s → %s (%.0fms)",
            request.method, request.url.path, response.status_code, elapsed,
        )
    return response

@app.on_event("startup")
async def on_startup():
    logger.info("Starting Grocery Splitter v0.1.0  LOG_LEVEL=%s  DB=%s  participants=%s",
                LOG_LEVEL, os.environ.get("DB_PATH", "(default)"), " / ".join(PARTICIPANTS))
    await init_db()
    await start_sync()

async def start_sync():
    """When a realtime room is configured: adopt its records, then follow it."""
    sync = get_sync()
    if sync is None:
        return
    try:
        async with open_db() as db:
            await sync.reconcile_store(db)
    except SyncFailed as e:
        logger.warning("Starting with local ledger, reconcile failed: %s", e)
    sync.listen(open_db)

@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "0.1.0", "participants": list(PARTICIPANTS)}
