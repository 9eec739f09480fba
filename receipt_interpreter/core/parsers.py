"""
Parsers for extracting fields from OCR'd receipt text.

Every field is resolved by walking an ordered tuple of PatternRule entries;
the first rule that yields a value wins. The tables are module constants so
their precedence can be inspected and tested directly.
"""

import datetime as dt
import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from .models import LineItem, UNKNOWN_MERCHANT
from .utils import (
    ACCOUNT_NUMBER_PATTERN,
    CURRENCY,
    DATE_LIKE_PATTERN,
    NUMBER,
    PHONE_PATTERNS,
    REF_NO_PATTERN,
    REFERENCE_ID_PATTERN,
    normalize_amount,
)

logger = logging.getLogger(__name__)

MONTHS = ("january", "february", "march", "april", "may", "june", "july",
          "august", "september", "october", "november", "december")

# Full names and their three-letter abbreviations, plus "sept"
MONTH_NUMBERS = {
    **{name: i for i, name in enumerate(MONTHS, 1)},
    **{name[:3]: i for i, name in enumerate(MONTHS, 1)},
    "sept": 9,
}

TOTAL_LABELS = ["total", "amount", "sum", "total amount", "amount sent", "total amount sent"]

ITEM_SKIP_WORDS = ["amount", "total", "bank transfer", "source", "destination",
                   "purpose", "transaction"]

MERCHANT_SCAN_LINES = 5


@dataclass(frozen=True)
class PatternRule:
    """A named regex plus the function that turns a match into a value."""
    name: str
    regex: re.Pattern
    extract: Callable[[Any], Any]

    def apply(self, text: str) -> Any:
        """Return the first non-None extraction among all matches, else None."""
        for m in self.regex.finditer(text):
            value = self.extract(m)
            if value is not None:
                return value
        return None


def rule(name: str, pattern: str, extract: Callable[[Any], Any], flags: int = 0) -> PatternRule:
    return PatternRule(name, re.compile(pattern, flags), extract)


def first_match(rules: Iterable[PatternRule], text: str) -> Tuple[Optional[str], Any]:
    """Try rules in order against one string. Returns (rule name, value)."""
    for r in rules:
        value = r.apply(text)
        if value is not None:
            return r.name, value
    return None, None


def _matches_any(patterns: Sequence[re.Pattern], line: str) -> bool:
    return any(p.search(line) for p in patterns)


# --- Amount ---------------------------------------------------------------

def _amount(m) -> Optional[Decimal]:
    return normalize_amount(m.group(1))


AMOUNT_SKIP_PATTERNS = [
    *(re.compile(p) for p in PHONE_PATTERNS),
    re.compile(DATE_LIKE_PATTERN),
    re.compile(REF_NO_PATTERN, re.IGNORECASE),
    re.compile(REFERENCE_ID_PATTERN, re.IGNORECASE),
    re.compile(ACCOUNT_NUMBER_PATTERN),
]

AMOUNT_RULES = (
    # Transfer/debit receipts show the paid amount as a negative delta
    rule("negative", rf"-\s*(?:{CURRENCY}\s*)?({NUMBER})", _amount),
    rule("currency", rf"(?:{CURRENCY}\s*)?({NUMBER})", _amount),
    *(rule(f"labeled:{label}",
           r"\s+".join(label.split()) + rf"[:\s]*(?:{CURRENCY}\s*)?({NUMBER})",
           _amount, re.IGNORECASE)
      for label in TOTAL_LABELS),
)


def extract_amount(lines: Sequence[str]) -> Optional[Decimal]:
    """
    Extract the transaction amount from OCR lines.

    Lines are scanned top to bottom; within a line the rules in AMOUNT_RULES
    are tried in order. Identifier-looking lines (phones, dates, reference
    numbers, account numbers) are skipped entirely.
    """
    for line in lines:
        if _matches_any(AMOUNT_SKIP_PATTERNS, line):
            logger.debug("Skipping line for amount: %r", line)
            continue
        name, amount = first_match(AMOUNT_RULES, line)
        if amount is not None:
            logger.debug("Found amount %s via %s in %r", amount, name, line)
            return amount
    logger.debug("No amount found")
    return None


# --- Date -----------------------------------------------------------------

def _utc(y: int, mo: int, d: int, hour: int = 0, minute: int = 0) -> Optional[dt.datetime]:
    try:
        return dt.datetime(y, mo, d, hour, minute, tzinfo=dt.timezone.utc)
    except ValueError:
        return None


def _month_number(name: str) -> Optional[int]:
    return MONTH_NUMBERS.get(name.lower())


def _numeric_date(m) -> Optional[dt.datetime]:
    mo, d, y = int(m.group(1)), int(m.group(2)), int(m.group(3))
    if y < 100:  # YY -> 20YY
        y += 2000
    # If looks like DD/MM, swap if mo > 12
    if mo > 12 and d <= 12:
        mo, d = d, mo
    return _utc(y, mo, d)


def _iso_date(m) -> Optional[dt.datetime]:
    return _utc(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def _month_name_date(m) -> Optional[dt.datetime]:
    mo = _month_number(m.group(1))
    if mo is None:
        return None
    return _utc(int(m.group(3)), mo, int(m.group(2)))


def _month_name_datetime(m) -> Optional[dt.datetime]:
    mo = _month_number(m.group(1))
    hour, minute = int(m.group(4)), int(m.group(5))
    if mo is None or not 1 <= hour <= 12:
        return None
    hour = hour % 12 + (12 if m.group(6).upper() == "PM" else 0)
    return _utc(int(m.group(3)), mo, int(m.group(2)), hour, minute)


_MONTH_DAY_YEAR = r"\b([A-Za-z]{3,9})\.?\s+(\d{1,2}),?\s+(\d{4})"

# Numeric dates may run straight into a time ("2024-07-04T10:22:00"), so only
# neighbouring digits bound them.
DATE_RULES = (
    rule("day-month-year", r"(?<!\d)(\d{1,2})[/-](\d{1,2})[/-](\d{4}|\d{2})(?!\d)", _numeric_date),
    rule("year-month-day", r"(?<!\d)(\d{4})[/-](\d{1,2})[/-](\d{1,2})(?!\d)", _iso_date),
    rule("month-name", _MONTH_DAY_YEAR + r"\b", _month_name_date, re.IGNORECASE),
    rule("month-name-time", _MONTH_DAY_YEAR + r"\s+at\s+(\d{1,2}):(\d{2})\s*([AP]M)\b",
         _month_name_datetime, re.IGNORECASE),
)


def extract_date(text: str, lines: Sequence[str]) -> Optional[dt.datetime]:
    """
    Extract the receipt date (UTC) from lines first, then from the full text.

    Returns None when nothing recognizable is found; the interpreter turns
    that into "now".
    """
    for line in lines:
        name, found = first_match(DATE_RULES, line)
        if found is not None:
            logger.debug("Found date %s via %s in %r", found, name, line)
            return found

    name, found = first_match(DATE_RULES, text)
    if found is not None:
        logger.debug("Found date %s via %s in full text", found, name)
    return found


# --- Merchant -------------------------------------------------------------

def extract_merchant(lines: Sequence[str]) -> str:
    """First of the top lines with a plausible name length."""
    for line in lines[:MERCHANT_SCAN_LINES]:
        candidate = line.strip()
        if 3 < len(candidate) < 50:
            return candidate
    return UNKNOWN_MERCHANT


# --- Items ----------------------------------------------------------------

ITEM_SKIP_PATTERNS = [
    *(re.compile(p) for p in PHONE_PATTERNS),
    re.compile(DATE_LIKE_PATTERN),
    re.compile(REF_NO_PATTERN, re.IGNORECASE),
    re.compile(REFERENCE_ID_PATTERN, re.IGNORECASE),
    re.compile(ACCOUNT_NUMBER_PATTERN),
    *(re.compile(w, re.IGNORECASE) for w in ITEM_SKIP_WORDS),
]

# Anchored to the start of a whitespace run so long gaps scan in linear time
ITEM_PRICE_PATTERN = re.compile(rf"(?<!\s)\s+{CURRENCY}?({NUMBER})")


def extract_items(text: str) -> Tuple[LineItem, ...]:
    """
    Collect "<name> <price>" lines from the raw text, in source order.

    The price is the last whitespace-separated number on the line and the
    name is everything before it.
    """
    items: List[LineItem] = []
    for line in text.split("\n"):
        if _matches_any(ITEM_SKIP_PATTERNS, line):
            continue
        matches = list(ITEM_PRICE_PATTERN.finditer(line))
        if not matches:
            continue
        m = matches[-1]
        name = line[:m.start()].strip()
        price = normalize_amount(m.group(1))
        if name and price is not None:
            items.append(LineItem(name=name, price=price))
    return tuple(items)


# --- Receipt / reference number ------------------------------------------

def _group(m) -> str:
    return m.group(1)


def _compact(m) -> str:
    return re.sub(r"\s+", "", m.group(1))


RECEIPT_NUMBER_LINE_RULES = (
    rule("reference-id", r"reference\s*id\s*([a-f0-9]+)\b", _group, re.IGNORECASE),
    rule("spaced-ref-no", r"ref\s*no\.?\s*(\d{4}\s*\d{3}\s*\d{6})", _compact, re.IGNORECASE),
    rule("ref-no-with-datetime",
         r"ref\s*no\.?\s*(\d+)(?:\s+[A-Za-z]+\s+\d+,\s+\d{4}\s+\d{1,2}:\d{2}\s+[AP]M)?",
         _group, re.IGNORECASE),
    rule("ref-no", r"ref\s*no\.?\s*(\d+)", _group, re.IGNORECASE),
)

RECEIPT_NUMBER_TEXT_RULES = (
    rule("reference-id", r"reference\s*id\s*([a-f0-9]+)\b", _compact, re.IGNORECASE),
    rule("reference-no", r"ref(?:erence)?\s*no\.?\s*([A-Z0-9]+)", _compact, re.IGNORECASE),
    rule("trace-id", r"trace\s*id\s*(\d+)", _compact, re.IGNORECASE),
    rule("ref-no", r"ref\s*no\.?\s*(\d+)", _compact, re.IGNORECASE),
)


def extract_receipt_number(text: str, lines: Sequence[str]) -> Optional[str]:
    """Extract a provider reference/trace id used for duplicate detection."""
    for line in lines:
        name, number = first_match(RECEIPT_NUMBER_LINE_RULES, line)
        if number:
            logger.debug("Found receipt number %s via %s in %r", number, name, line)
            return number

    name, number = first_match(RECEIPT_NUMBER_TEXT_RULES, text)
    if number:
        logger.debug("Found receipt number %s via %s in full text", number, name)
        return number

    logger.debug("No receipt number found")
    return None
