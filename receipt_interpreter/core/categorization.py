"""
Categorization logic for receipts based on keyword rules.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .models import FALLBACK_CATEGORY, LineItem

KeywordTable = Mapping[str, Tuple[str, ...]]


def _freeze(table: Mapping[str, Iterable[str]]) -> KeywordTable:
    # dicts keep insertion order, which is the first-match-wins order
    return MappingProxyType({
        category: tuple(k.lower() for k in keywords)
        for category, keywords in table.items()
    })


@dataclass(frozen=True)
class CategoryRuleSet:
    """
    Keyword rules for guessing a spending category.

    `merchants` is matched against the merchant name, `items` against the
    concatenated item names. Categories are tried in insertion order and the
    first one with a matching keyword wins.
    """
    merchants: KeywordTable
    items: KeywordTable

    @classmethod
    def from_dict(cls, data: Mapping) -> "CategoryRuleSet":
        return cls(
            merchants=_freeze(data.get("merchants", {})),
            items=_freeze(data.get("items", {})),
        )


DEFAULT_CATEGORY_RULES = CategoryRuleSet.from_dict({
    "merchants": {
        "Groceries": ["walmart", "target", "safeway", "kroger", "whole foods"],
        "Gas": ["shell", "exxon", "chevron", "bp", "mobil"],
        "Dining": ["restaurant", "cafe", "pizza", "subway", "mcdonald"],
        "Shopping": ["amazon", "best buy", "macy", "nike", "apple store"],
        "Transport": ["uber", "lyft", "taxi", "metro", "bus"],
        "Banking": ["bank", "gcash", "gotyme", "transfer"],
    },
    "items": {
        "Groceries": ["milk", "bread", "eggs", "vegetables", "fruit"],
        "Dining": ["burger", "pizza", "coffee", "drink", "meal"],
        "Gas": ["gasoline", "fuel", "diesel"],
        "Healthcare": ["pharmacy", "medicine", "prescription"],
    },
})


def load_rules(path: Path) -> CategoryRuleSet:
    """
    Load categorization rules from JSON file.

    Expected format (object key order sets precedence):
        {
          "merchants": {"Groceries": ["walmart", "kroger"], ...},
          "items": {"Dining": ["coffee", "burger"], ...}
        }
    A missing file yields the built-in rules.
    """
    if not path.exists():
        return DEFAULT_CATEGORY_RULES
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid rules file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Invalid rules file {path}: expected a JSON object")
    for section in ("merchants", "items"):
        table = data.get(section, {})
        if not isinstance(table, dict) or not all(
                isinstance(v, list) and all(isinstance(k, str) for k in v)
                for v in table.values()):
            raise ValueError(f"Invalid rules file {path}: '{section}' must map "
                             f"category names to lists of keywords")
    return CategoryRuleSet.from_dict(data)


def _first_category(haystack: str, table: KeywordTable) -> Optional[str]:
    for category, keywords in table.items():
        if any(keyword in haystack for keyword in keywords):
            return category
    return None


def categorize(merchant: str, items: Sequence[LineItem],
               rules: CategoryRuleSet = DEFAULT_CATEGORY_RULES) -> str:
    """
    Categorize a receipt by merchant name, then by item names.

    Returns the fallback category "Other" when no keyword matches.
    """
    category = _first_category((merchant or "").lower(), rules.merchants)
    if category:
        return category

    item_names = " ".join(item.name.lower() for item in items)
    category = _first_category(item_names, rules.items)
    if category:
        return category

    return FALLBACK_CATEGORY


def rules_to_dict(rules: CategoryRuleSet) -> Dict[str, Dict[str, list]]:
    """Plain-dict view of a rule set, e.g. for writing a starter rules.json."""
    return {
        "merchants": {c: list(k) for c, k in rules.merchants.items()},
        "items": {c: list(k) for c, k in rules.items.items()},
    }
