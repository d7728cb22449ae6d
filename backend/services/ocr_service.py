"""
OCR Service — runs Tesseract over a preprocessed receipt, then mines the raw
text for amount-bearing lines with heuristic regexes and picks the most
plausible bill total.

Parsing and total selection are pure functions of the text; only
``recognize`` and ``scan_receipt`` touch the OCR engine.
"""
import asyncio
import io
import logging
import math
import re
from typing import Optional

import pytesseract
from PIL import Image

from config import OCR_LANGUAGE, OCR_TIMEOUT
from models.schemas import ParsedLines, ReceiptLine, TotalCandidate, ScanResult
from services.errors import OcrFailed
from services.image_service import preprocess_image

logger = logging.getLogger("splitter.ocr")

# Max suggestions offered back to the entry form after a scan
MAX_SUGGESTIONS = 8


# ── OCR engine ───────────────────────────────────────────────────────────────

async def recognize(image_bytes: bytes, language: str = OCR_LANGUAGE) -> str:
    """
    Run Tesseract on image bytes, return raw text.
    Every failure (binary missing, timeout, engine crash) surfaces as OcrFailed.
    """
    def _run() -> str:
        image = Image.open(io.BytesIO(image_bytes))
        return pytesseract.image_to_string(image, lang=language, timeout=OCR_TIMEOUT)

    try:
        text = await asyncio.to_thread(_run)
    except Exception as e:
        logger.warning("OCR failed (%s): %s", type(e).__name__, e)
        raise OcrFailed(f"{type(e).__name__}: {e}") from e
    return text or ""


# ── Receipt Text Parser ───────────────────────────────────────────────────────

# Optional rupee sign, 1–6 integer digits, optional 2-digit fraction with . or ,
#   "Milk 120"          → "120"
#   "To Pay ₹450.00"    → "₹450.00"
#   "Paneer 200g 85,50" → "85,50"   (last token wins)
AMOUNT_RE = re.compile(r'₹?\s?\d{1,6}(?:[.,]\d{2})?', re.ASCII)
CURRENCY_RE = re.compile(r'[₹\s]')
MULTISPACE_RE = re.compile(r'\s{2,}')
LINE_SPLIT_RE = re.compile(r'\r?\n')

# Fee / discount lines on delivery-app receipts (Zepto, Blinkit, Instamart …)
FEE_KEYWORDS = (
    "delivery", "surge", "handling", "fee", "packaging", "platform", "tip",
    "tax", "gst", "saving", "saved", "discount", "coupon", "promo",
)

TOTAL_KEYWORDS = ("to pay", "total", "grand", "payable")


def is_total_line(line: str) -> bool:
    lower = line.lower()
    return any(kw in lower for kw in TOTAL_KEYWORDS)


def _is_fee_line(line: str) -> bool:
    lower = line.lower()
    return any(kw in lower for kw in FEE_KEYWORDS)


def parse_amount(token: str) -> Optional[float]:
    """'₹ 1,50' → 1.5.  Returns None unless the result is finite and positive."""
    cleaned = CURRENCY_RE.sub('', token).replace(',', '.')
    try:
        amount = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount


def score_total(line: str) -> int:
    """
    Confidence that a line states the bill total.  First rule that matches
    wins; scores are not cumulative.
    """
    lower = line.lower()
    if "total bill" in lower:
        return 4
    if "to pay" in lower or "amount due" in lower or "payable" in lower:
        return 4
    if "grand total" in lower:
        return 3
    if "item total" in lower:
        return 2
    if "total" in lower:
        return 1
    return 0


def parse_lines(raw_text: str, total_only: bool = True, ignore_fees: bool = True) -> ParsedLines:
    """
    Extract amount-bearing lines from OCR text.

    Each line contributes at most one item and at most one total candidate.
    With ``total_only`` set, only total-looking lines are returned as items.
    The price is the *last* amount on the line, so "2 x 50.00" reads as 50.00
    but "50.00 x 2" would read as 2 — a known limitation of the heuristic.
    """
    result = ParsedLines()
    lines = [ln.strip() for ln in LINE_SPLIT_RE.split(raw_text or "")]

    for line in lines:
        if len(line) <= 2:
            continue
        if ignore_fees and _is_fee_line(line):
            continue
        if "free" in line.lower():
            continue

        tokens = AMOUNT_RE.findall(line)
        if not tokens:
            continue

        last = tokens[-1]
        amount = parse_amount(last)
        if amount is None:
            continue

        label = MULTISPACE_RE.sub(' ', line.replace(last, '', 1)).strip()
        is_total = is_total_line(line)

        if not total_only or is_total:
            result.items.append(ReceiptLine(line=line, label=label or line, amount=amount))
        if is_total:
            result.totals.append(TotalCandidate(line=line, amount=amount, score=score_total(line)))

    return result


def select_total(parsed: ParsedLines) -> Optional[float]:
    """
    Pick the single best total: highest score, ties broken by the smallest
    line text.  Without any total line fall back to the largest item amount.
    Returns None when nothing was found — a normal outcome, not an error.
    """
    if parsed.totals:
        best = min(parsed.totals, key=lambda t: (-t.score, t.line))
        return best.amount
    if parsed.items:
        return max(item.amount for item in parsed.items)
    return None


# ── Full pipeline ─────────────────────────────────────────────────────────────

async def scan_receipt(
    image_bytes: bytes,
    total_only: bool = True,
    ignore_fees: bool = True,
    language: str = OCR_LANGUAGE,
) -> ScanResult:
    """
    preprocess → OCR → parse → select total.

    Raises PreprocessingUnsupported or OcrFailed; an empty scan is returned
    as a result with ``total=None``.
    """
    prepared = await preprocess_image(image_bytes)
    text = await recognize(prepared, language)

    parsed = parse_lines(text, total_only=total_only, ignore_fees=ignore_fees)
    total = select_total(parsed)
    logger.info("Scan parsed %d item line(s), %d total candidate(s), total=%s",
                len(parsed.items), len(parsed.totals), total)

    return ScanResult(
        items=parsed.items[:MAX_SUGGESTIONS],
        totals=parsed.totals,
        total=total,
        status="Scan complete." if parsed.items else "Scan complete (no lines detected).",
    )
