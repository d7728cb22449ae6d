"""
Settlement Service

Pure folds over the full ledger: who paid, each person's fair share, and the
net balance between the two participants, plus the monthly dashboard
breakdowns.  Nothing is cached; callers recompute from the ledger on every
change.

Sign convention: ``net[P1] > 0`` means P2 owes P1 that amount.
"""
from calendar import month_abbr
from datetime import date
from typing import Iterable, Optional

from config import PARTICIPANTS, CURRENCY_SYMBOL
from models.schemas import (
    Expense, SplitType, Summary, CategoryTotal, ProviderTotal, MonthSummary, MonthlyTotal,
)

# Balances that round to 0.00 are settled
SETTLED_EPSILON = 0.005
TREND_MONTHS = 6


def format_currency(value: float, currency: str = CURRENCY_SYMBOL) -> str:
    return f"{currency}{value:.2f}"


def summarize(expenses: Iterable[Expense], participants: tuple[str, str] = PARTICIPANTS) -> Summary:
    first, second = participants
    paid = {first: 0.0, second: 0.0}
    owed = {first: 0.0, second: 0.0}

    for e in expenses:
        paid[e.buyer] += e.amount
        if e.split_type == SplitType.personal:
            owed[e.buyer] += e.amount
        else:
            half = e.amount / 2
            owed[first] += half
            owed[second] += half

    net = {p: paid[p] - owed[p] for p in participants}
    summary = Summary(
        total_spent=paid[first] + paid[second],
        paid=paid,
        owed=owed,
        net=net,
        balance="",
    )
    summary.balance = balance_sentence(summary, participants)
    return summary


def balance_sentence(
    summary: Summary,
    participants: tuple[str, str] = PARTICIPANTS,
    currency: str = "",
) -> str:
    """'User B owes User A 65.00', or 'All settled up.' when the net is zero."""
    first, second = participants
    net_first = summary.net[first]
    if abs(net_first) < SETTLED_EPSILON:
        return "All settled up."
    if net_first > 0:
        return f"{second} owes {first} {format_currency(net_first, currency)}"
    return f"{first} owes {second} {format_currency(abs(net_first), currency)}"


def share_text(
    summary: Summary,
    participants: tuple[str, str] = PARTICIPANTS,
    currency: str = CURRENCY_SYMBOL,
) -> str:
    """Human-readable block for pasting into a chat message."""
    first, second = participants
    balance = balance_sentence(summary, participants, currency)
    if not balance.endswith("."):
        balance += "."
    return "\n".join([
        "Grocery Splitter Summary",
        f"Total Spent: {format_currency(summary.total_spent, currency)}",
        f"{first} Paid: {format_currency(summary.paid[first], currency)}",
        f"{second} Paid: {format_currency(summary.paid[second], currency)}",
        balance,
    ])


# ── Monthly breakdowns ────────────────────────────────────────────────────────

def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def month_label(key: str) -> str:
    year, month = key.split("-")
    return f"{month_abbr[int(month)]} {int(year)}"


def group_by_month(expenses: Iterable[Expense]) -> dict[str, list[Expense]]:
    """Bucket by year-month of the expense date; keys in chronological order."""
    buckets: dict[str, list[Expense]] = {}
    for e in expenses:
        buckets.setdefault(month_key(e.date), []).append(e)
    return {key: buckets[key] for key in sorted(buckets)}


def category_totals(bucket: list[Expense]) -> list[CategoryTotal]:
    totals: dict[str, float] = {}
    for e in bucket:
        totals[e.category] = totals.get(e.category, 0.0) + e.amount
    denominator = sum(totals.values()) or 1
    return sorted(
        (CategoryTotal(name=name, total=total, percent=total / denominator * 100)
         for name, total in totals.items()),
        key=lambda c: (-c.total, c.name),
    )


def provider_totals(bucket: list[Expense]) -> list[ProviderTotal]:
    totals: dict[str, float] = {}
    for e in bucket:
        totals[e.provider] = totals.get(e.provider, 0.0) + e.amount
    return sorted(
        (ProviderTotal(name=name, total=total) for name, total in totals.items()),
        key=lambda p: (-p.total, p.name),
    )


def month_summary(
    expenses: Iterable[Expense],
    key: str,
    participants: tuple[str, str] = PARTICIPANTS,
) -> MonthSummary:
    bucket = group_by_month(expenses).get(key, [])
    return MonthSummary(
        month=key,
        month_label=month_label(key),
        expense_count=len(bucket),
        summary=summarize(bucket, participants),
        categories=category_totals(bucket),
        providers=provider_totals(bucket),
    )


def _previous_months(today: date, count: int) -> list[str]:
    keys = []
    year, month = today.year, today.month
    for _ in range(count):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def last_six_months(expenses: Iterable[Expense], today: Optional[date] = None) -> list[MonthlyTotal]:
    """Rolling six-month spend series ending at ``today``'s month, zero-filled."""
    buckets = group_by_month(expenses)
    return [
        MonthlyTotal(
            month=key,
            month_label=month_label(key),
            total=sum(e.amount for e in buckets.get(key, [])),
        )
        for key in _previous_months(today or date.today(), TREND_MONTHS)
    ]
