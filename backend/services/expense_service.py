"""
Expense Service

The single boundary where outside records (entry form, SQLite rows, remote
sync payloads) become canonical ``Expense`` objects, plus the pure ledger
reducers.  Nothing here touches I/O: every function takes a ledger and
returns a new one.
"""
import logging
import math
import uuid
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Optional

from config import PARTICIPANTS, DEFAULT_PROVIDER
from models.schemas import Expense, ExpenseCreate, SplitType, SyncMessage, SyncOp
from services.categorize_service import classify, is_category
from services.errors import ValidationError

logger = logging.getLogger("splitter.expenses")

# Wire records use camelCase; SQLite rows use snake_case.  Accept either.
_FIELD_ALIASES = {
    "item_name": ("itemName", "item_name"),
    "split_type": ("splitType", "split_type"),
}


def new_expense_id() -> str:
    return uuid.uuid4().hex


def _get(raw: Mapping, field: str) -> Any:
    for key in _FIELD_ALIASES.get(field, (field,)):
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _as_mapping(raw: Any) -> Mapping:
    if isinstance(raw, Expense):
        return raw.model_dump()
    if isinstance(raw, Mapping):
        return raw
    if raw is not None and hasattr(raw, "keys"):
        # aiosqlite.Row
        return {k: raw[k] for k in raw.keys()}
    return {}


def _coerce_amount(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    try:
        amount = float(value)
    except (OverflowError, ValueError):
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return round(amount, 2)


def _coerce_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    return date.today()


def normalize_expense(raw: Any, participants: tuple[str, str] = PARTICIPANTS) -> Expense:
    """
    Coerce an arbitrary record into a valid Expense.  Never raises.

    Missing id → fresh id; non-text item name → ""; non-finite or non-numeric
    amount → 0; unknown buyer → first participant; missing/garbled date →
    today; split type is "personal" only when exactly that; missing or unknown
    category → classified from the item name; missing provider → default.
    Applying it twice gives the same result as applying it once.
    """
    data = _as_mapping(raw)

    expense_id = data.get("id")
    if expense_id is None or (isinstance(expense_id, str) and not expense_id.strip()):
        expense_id = new_expense_id()

    item_name = _get(data, "item_name")
    item_name = item_name.strip() if isinstance(item_name, str) else ""

    buyer = data.get("buyer")
    if buyer not in participants:
        buyer = participants[0]

    split_type = SplitType.personal if _get(data, "split_type") == "personal" else SplitType.equal

    category = data.get("category")
    if not is_category(category):
        category = classify(item_name)

    provider = data.get("provider")
    if not isinstance(provider, str) or not provider.strip():
        provider = DEFAULT_PROVIDER

    return Expense(
        id=str(expense_id),
        item_name=item_name,
        amount=_coerce_amount(data.get("amount")),
        buyer=buyer,
        date=_coerce_date(data.get("date")),
        split_type=split_type,
        category=category,
        provider=provider.strip(),
    )


def _parse_entry_amount(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    elif not isinstance(value, (int, float)):
        return None
    try:
        amount = float(value)
    except (OverflowError, ValueError):
        return None
    if not math.isfinite(amount):
        return None
    return amount


def validate_expense(
    payload: ExpenseCreate,
    participants: tuple[str, str] = PARTICIPANTS,
) -> Expense:
    """
    Entry-form check.  Raises ValidationError for an empty item name or a
    non-positive / non-numeric amount; otherwise returns a committed-ready
    Expense with a fresh id and an inferred category.
    """
    name = (payload.item_name or "").strip()
    if not name:
        raise ValidationError("Item name is required.")

    amount = _parse_entry_amount(payload.amount)
    if amount is None or amount <= 0:
        raise ValidationError("Amount must be greater than 0.")

    if payload.buyer is not None and payload.buyer not in participants:
        raise ValidationError(f"Buyer must be one of: {', '.join(participants)}")

    return normalize_expense({
        "id": new_expense_id(),
        "item_name": name,
        "amount": amount,
        "buyer": payload.buyer,
        "date": payload.date,
        "split_type": payload.split_type,
        "category": payload.category,
        "provider": payload.provider,
    }, participants)


# ── Ledger reducers ───────────────────────────────────────────────────────────

def add_expense(ledger: list[Expense], expense: Expense) -> list[Expense]:
    """Newest first; a record with the same id is replaced, never duplicated."""
    return [expense] + [e for e in ledger if e.id != expense.id]


def remove_expense(ledger: list[Expense], expense_id: str) -> list[Expense]:
    return [e for e in ledger if e.id != expense_id]


def clear_ledger() -> list[Expense]:
    return []


def apply_sync_message(
    ledger: list[Expense],
    message: SyncMessage,
    participants: tuple[str, str] = PARTICIPANTS,
) -> list[Expense]:
    """
    Fold one realtime event into the ledger.  Independent of how the event
    was delivered; inbound records always pass through normalize_expense.
    """
    if message.op == SyncOp.delete:
        expense_id = message.record.get("id")
        if expense_id is None:
            logger.warning("Ignoring delete event without an id")
            return list(ledger)
        return remove_expense(ledger, str(expense_id))

    expense = normalize_expense(message.record, participants)
    if message.op == SyncOp.update and any(e.id == expense.id for e in ledger):
        return [expense if e.id == expense.id else e for e in ledger]
    return add_expense(ledger, expense)
