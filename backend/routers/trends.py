"""
Trends Router

GET /api/trends/summary                 — global paid / owed / net balance
GET /api/trends/monthly                 — rolling six-month spend series
GET /api/trends/monthly/{year}/{month}  — month summary with category + store breakdown
GET /api/trends/share                   — plain-text summary for sharing

Everything is recomputed from the full ledger on each request.
"""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse
import aiosqlite

from db.database import get_db
from models.schemas import Summary, MonthSummary, TrendsResponse
from services import ledger_service
from services.settlement_service import summarize, month_summary, last_six_months, share_text

router = APIRouter()


@router.get("/summary", response_model=Summary)
async def ledger_summary(db: aiosqlite.Connection = Depends(get_db)):
    return summarize(await ledger_service.read_all(db))


@router.get("/monthly", response_model=TrendsResponse)
async def monthly_trends(db: aiosqlite.Connection = Depends(get_db)):
    expenses = await ledger_service.read_all(db)
    return TrendsResponse(months=last_six_months(expenses, date.today()))


@router.get("/monthly/{year}/{month}", response_model=MonthSummary)
async def single_month(
    year: int,
    month: int,
    db: aiosqlite.Connection = Depends(get_db),
):
    if not 1 <= year <= 9999:
        raise HTTPException(status_code=422, detail="Year must be between 1 and 9999")
    if not 1 <= month <= 12:
        raise HTTPException(status_code=422, detail="Month must be between 1 and 12")
    expenses = await ledger_service.read_all(db)
    return month_summary(expenses, f"{year:04d}-{month:02d}")


@router.get("/share", response_class=PlainTextResponse)
async def share_summary(db: aiosqlite.Connection = Depends(get_db)):
    return share_text(summarize(await ledger_service.read_all(db)))
