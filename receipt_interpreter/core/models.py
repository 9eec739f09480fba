"""
Data models for receipt interpretation.
"""

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple

UNKNOWN_MERCHANT = "Unknown Merchant"
FALLBACK_CATEGORY = "Other"


@dataclass(frozen=True)
class LineItem:
    """A single priced line recovered from receipt text."""
    name: str
    price: Decimal


@dataclass(frozen=True)
class OcrResult:
    """What an OCR provider hands to the interpreter."""
    text: str
    confidence: float
    lines: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ParsedReceipt:
    """
    Best-effort interpretation of one receipt.

    `amount` and `receipt_number` are None when nothing was recognized.
    Callers must treat a missing amount as "not enough data" and never
    substitute zero.
    """
    amount: Optional[Decimal]
    date: dt.datetime
    merchant: str = UNKNOWN_MERCHANT
    items: Tuple[LineItem, ...] = field(default_factory=tuple)
    receipt_number: Optional[str] = None
    category: str = FALLBACK_CATEGORY

    def to_dict(self):
        """Convert to a JSON-friendly dictionary."""
        return {
            "amount": str(self.amount) if self.amount is not None else None,
            "date": self.date.isoformat(),
            "merchant": self.merchant,
            "items": [{"name": i.name, "price": str(i.price)} for i in self.items],
            "receipt_number": self.receipt_number,
            "category": self.category,
        }
