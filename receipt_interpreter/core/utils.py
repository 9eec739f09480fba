"""
Utility functions and constants for receipt processing.
"""

import hashlib
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

# File type constants
IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".webp"}
PDF_EXTS = {".pdf"}

# Currency symbols seen on receipts; '#' is how OCR often reads the peso sign
CURRENCY = r"[$£₱€#]"

# 1,234.56 | 1,234 | 1234.56 | 1234
NUMBER = r"\d{1,3}(?:,\d{3})+(?:\.\d{2})?|\d+(?:\.\d{2})?"

# Lines that carry identifiers rather than money
PHONE_PATTERNS = [
    r"\+?\d+\s*[a-zA-Z]",                                                     # digits run into letters
    r"^\s*(?:\+?\d{1,3}[\s.-]?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}\s*$",    # +1 800 5551234
]
DATE_LIKE_PATTERN = r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}"
REF_NO_PATTERN = r"ref\s*no"
REFERENCE_ID_PATTERN = r"reference\s*id"
ACCOUNT_NUMBER_PATTERN = r"^\s*\d+\s*$"


def slugify(s: str) -> str:
    """Convert string to filesystem-safe slug."""
    return re.sub(r"[^a-z0-9]+", "-", s.lower()).strip("-")


def normalize_amount(s: str) -> Optional[Decimal]:
    """Normalize amount string to Decimal, dropping thousands separators."""
    if not s:
        return None
    s = s.replace(",", "").strip()
    try:
        return Decimal(s)
    except InvalidOperation:
        return None


def sha1_file(path: Path) -> str:
    """Calculate SHA1 hash of file."""
    h = hashlib.sha1()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def money_fmt(v: Optional[Decimal]) -> str:
    """Format amount for console output."""
    return f"{v:,.2f}" if v is not None else ""
