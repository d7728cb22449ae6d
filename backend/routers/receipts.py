"""
Receipts Router

POST /api/receipts/scan    — upload image, preprocess + OCR + suggest total
POST /api/receipts/parse   — parse already-recognized text (no OCR)

Nothing here writes to the ledger: the user confirms a suggestion in the
entry form, which then goes through POST /api/expenses.
"""
import logging

from fastapi import APIRouter, File, UploadFile, HTTPException, Form

from config import OCR_LANGUAGE
from models.schemas import ParseRequest, ScanResult
from services import ocr_service
from services.errors import PreprocessingUnsupported, OcrFailed

logger = logging.getLogger("splitter.receipts")
router = APIRouter()


@router.post("/scan", response_model=ScanResult)
async def scan_receipt(
    file: UploadFile = File(...),
    total_only: bool = Form(True),
    ignore_fees: bool = Form(True),
):
    """
    Run the full receipt pipeline.  A scan that finds no amounts is still a
    200 with ``total`` null — "no suggestion" is a valid outcome.
    """
    contents = await file.read()
    try:
        return await ocr_service.scan_receipt(
            contents, total_only=total_only, ignore_fees=ignore_fees, language=OCR_LANGUAGE,
        )
    except PreprocessingUnsupported as e:
        logger.warning("Preprocessing failed for %s: %s", file.filename, e)
        raise HTTPException(status_code=422, detail=f"Unsupported image: {e}")
    except OcrFailed as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/parse", response_model=ScanResult)
async def parse_receipt_text(body: ParseRequest):
    parsed = ocr_service.parse_lines(body.text, total_only=body.total_only, ignore_fees=body.ignore_fees)
    return ScanResult(
        items=parsed.items[:ocr_service.MAX_SUGGESTIONS],
        totals=parsed.totals,
        total=ocr_service.select_total(parsed),
        status="Parsed." if parsed.items else "No lines detected.",
    )
