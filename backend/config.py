"""
Runtime settings read from the environment.

The two participants and the provider list are closed sets: every service
takes them from here (or from an explicit argument) instead of hard-coding
names, so a deployment can rename "User A" / "User B" without code changes.
"""
import os


def _parse_participants(raw: str) -> tuple[str, str]:
    names = [p.strip() for p in raw.split(",") if p.strip()]
    if len(names) != 2 or names[0] == names[1]:
        raise ValueError(
            f"SPLITTER_PARTICIPANTS must name exactly two distinct people, got {raw!r}"
        )
    return names[0], names[1]


PARTICIPANTS: tuple[str, str] = _parse_participants(
    os.environ.get("SPLITTER_PARTICIPANTS", "User A,User B")
)

DEFAULT_PROVIDER = os.environ.get("DEFAULT_PROVIDER", "Local")
PROVIDERS = ["Local", "Zepto", "Blinkit", "Instamart", "BigBasket", "Other"]

CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "₹")

# Tesseract
OCR_LANGUAGE = os.environ.get("OCR_LANGUAGE", "eng")
OCR_TIMEOUT = float(os.environ.get("OCR_TIMEOUT", "0"))   # seconds, 0 = no limit

# Realtime sync room; empty disables remote pushes
SYNC_ROOM_ID = os.environ.get("SYNC_ROOM_ID", "")
