"""
Categories Router

GET /api/categories           — the fixed category labels, in match order
GET /api/categories/classify  — category inferred for an item name
"""
from fastapi import APIRouter, Query

from services.categorize_service import CATEGORIES, classify

router = APIRouter()


@router.get("")
async def list_categories():
    return CATEGORIES


@router.get("/classify")
async def classify_item(name: str = Query(default="")):
    return {"name": name, "category": classify(name)}
