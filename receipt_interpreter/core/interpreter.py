"""
Receipt interpretation: OCR text in, ParsedReceipt out.
"""

import datetime as dt
import logging
from typing import Callable, Optional, Sequence

from .categorization import DEFAULT_CATEGORY_RULES, CategoryRuleSet, categorize
from .models import ParsedReceipt
from .parsers import (extract_amount, extract_date, extract_items,
                      extract_merchant, extract_receipt_number)

logger = logging.getLogger(__name__)


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class ReceiptInterpreter:
    """
    Turns raw OCR output into a ParsedReceipt.

    Stateless apart from the injected rule set and clock, so one instance can
    be shared across threads or tasks.
    """

    def __init__(self, rules: CategoryRuleSet = DEFAULT_CATEGORY_RULES,
                 clock: Callable[[], dt.datetime] = utc_now):
        self.rules = rules
        self.clock = clock

    def parse_receipt(self, text: Optional[str],
                      lines: Optional[Sequence[str]]) -> ParsedReceipt:
        """
        Interpret one receipt.

        Args:
            text: Full OCR text
            lines: OCR line segmentation, top to bottom

        Never raises for string input. Fields that can't be recovered fall
        back to: amount/receipt_number None, date now (UTC), merchant
        "Unknown Merchant", items empty, category "Other".
        """
        text = text or ""
        lines = [ln for ln in (lines or []) if isinstance(ln, str)]

        merchant = extract_merchant(lines)
        items = extract_items(text)
        date = extract_date(text, lines)
        if date is None:
            date = self.clock()

        receipt = ParsedReceipt(
            amount=extract_amount(lines),
            date=date,
            merchant=merchant,
            items=items,
            receipt_number=extract_receipt_number(text, lines),
            category=categorize(merchant, items, self.rules),
        )
        logger.debug("Parsed receipt: %s", receipt)
        return receipt


_default_interpreter = ReceiptInterpreter()


def parse_receipt(text: Optional[str], lines: Optional[Sequence[str]]) -> ParsedReceipt:
    """Interpret a receipt with the built-in category rules."""
    return _default_interpreter.parse_receipt(text, lines)
