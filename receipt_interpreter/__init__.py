"""
Receipt Interpreter

Turns noisy OCR output from receipt photos into structured transactions:
amount, date, merchant, line items, reference number and spending category.
"""

__version__ = "1.0.0"
__author__ = "Receipt Interpreter Contributors"

from receipt_interpreter.core.categorization import DEFAULT_CATEGORY_RULES, CategoryRuleSet
from receipt_interpreter.core.interpreter import ReceiptInterpreter, parse_receipt
from receipt_interpreter.core.models import LineItem, OcrResult, ParsedReceipt

__all__ = [
    "CategoryRuleSet",
    "DEFAULT_CATEGORY_RULES",
    "LineItem",
    "OcrResult",
    "ParsedReceipt",
    "ReceiptInterpreter",
    "parse_receipt",
]
