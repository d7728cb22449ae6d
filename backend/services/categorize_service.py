"""
Categorization Service

Keyword classifier for grocery item names.  The table is ordered: when a name
contains keywords from several categories the earliest entry wins, so
"Potato Chips" lands in Produce rather than Snacks.
"""
from typing import Optional

DEFAULT_CATEGORY = "Other"

# (label, keywords): keywords are matched as lower-case substrings of the item name
CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Produce",   ("vegetable", "veg", "tomato", "onion", "potato", "apple", "banana", "fruit", "greens")),
    ("Dairy",     ("milk", "cheese", "butter", "yogurt", "curd", "paneer", "cream")),
    ("Meat",      ("chicken", "mutton", "beef", "fish", "prawn", "egg", "steak")),
    ("Pantry",    ("rice", "flour", "atta", "oil", "dal", "lentil", "spice", "masala", "salt", "sugar")),
    ("Snacks",    ("chips", "biscuit", "cookies", "chocolate", "namkeen", "snack")),
    ("Beverages", ("juice", "soda", "coffee", "tea", "cola", "water")),
    ("Household", ("soap", "detergent", "cleaner", "tissue", "toilet", "broom", "mop")),
]

CATEGORIES: list[str] = [label for label, _ in CATEGORY_KEYWORDS] + [DEFAULT_CATEGORY]


def classify(
    item_name: Optional[str],
    table: list[tuple[str, tuple[str, ...]]] = CATEGORY_KEYWORDS,
) -> str:
    """Return the first category whose keywords appear in ``item_name``, else Other."""
    if not isinstance(item_name, str) or not item_name:
        return DEFAULT_CATEGORY
    lower = item_name.lower()
    for label, words in table:
        if any(word in lower for word in words):
            return label
    return DEFAULT_CATEGORY


def is_category(label: object) -> bool:
    return isinstance(label, str) and label in CATEGORIES
