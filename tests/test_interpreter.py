"""Tests for the end-to-end receipt interpreter."""

import datetime as dt
import time
from decimal import Decimal

import pytest

from receipt_interpreter import (CategoryRuleSet, LineItem, ParsedReceipt,
                                 ReceiptInterpreter, parse_receipt)
from receipt_interpreter.core.ocr import split_lines

UTC = dt.timezone.utc

TRANSFER_LINES = [
    "GCash",
    "Express Send",
    "+63 917 123 4567",
    "Amount Sent - ₱1,205.50",
    "Ref No. 1234 567 890123 Jan 5, 2024 3:15 PM",
]

RIDE_TEXT = "\n".join([
    "Uber",
    "Thanks for riding",
    "Total $23.45",
    "Trip fare 20.00",
    "Booking fee 3.45",
    "Mar 3, 2024 at 2:45 PM",
])


class TestParseReceipt:
    """Tests for ReceiptInterpreter.parse_receipt."""

    def test_transfer_receipt(self, fixed_clock) -> None:
        interpreter = ReceiptInterpreter(clock=fixed_clock)
        receipt = interpreter.parse_receipt("\n".join(TRANSFER_LINES), TRANSFER_LINES)
        assert receipt == ParsedReceipt(
            amount=Decimal("1205.50"),
            date=dt.datetime(2024, 1, 5, tzinfo=UTC),
            merchant="GCash",
            items=(),
            receipt_number="1234567890123",
            category="Banking",
        )

    def test_ride_receipt(self) -> None:
        receipt = parse_receipt(RIDE_TEXT, split_lines(RIDE_TEXT))
        assert receipt.amount == Decimal("23.45")
        assert receipt.date == dt.datetime(2024, 3, 3, tzinfo=UTC)
        assert receipt.merchant == "Uber"
        assert receipt.items == (
            LineItem("Trip fare", Decimal("20.00")),
            LineItem("Booking fee", Decimal("3.45")),
        )
        assert receipt.receipt_number is None
        assert receipt.category == "Transport"

    def test_empty_input_defaults(self, fixed_clock) -> None:
        receipt = ReceiptInterpreter(clock=fixed_clock).parse_receipt("", [])
        assert receipt == ParsedReceipt(
            amount=None,
            date=fixed_clock(),
            merchant="Unknown Merchant",
            items=(),
            receipt_number=None,
            category="Other",
        )

    def test_none_input_is_treated_as_empty(self, fixed_clock) -> None:
        receipt = ReceiptInterpreter(clock=fixed_clock).parse_receipt(None, None)
        assert receipt.amount is None
        assert receipt.merchant == "Unknown Merchant"

    def test_date_falls_back_to_now(self) -> None:
        before = dt.datetime.now(UTC)
        receipt = parse_receipt("hello", ["hello"])
        after = dt.datetime.now(UTC)
        assert before <= receipt.date <= after
        assert receipt.date.tzinfo is not None

    def test_same_input_same_output(self) -> None:
        first = parse_receipt(RIDE_TEXT, split_lines(RIDE_TEXT))
        second = parse_receipt(RIDE_TEXT, split_lines(RIDE_TEXT))
        assert first == second

    def test_injected_rules(self) -> None:
        rules = CategoryRuleSet.from_dict({"merchants": {"Rides": ["uber"]}})
        receipt = ReceiptInterpreter(rules=rules).parse_receipt(RIDE_TEXT, split_lines(RIDE_TEXT))
        assert receipt.category == "Rides"

    @pytest.mark.parametrize("text", [
        "", "\n\n", "$$$", "----", "-", "ref no.", "reference id", "13/13/13",
        "Total:", "\x00\x01", "Mar 99, 2024 at 99:99 PM", "# - $ ,",
    ])
    def test_never_raises(self, text) -> None:
        receipt = parse_receipt(text, text.split("\n"))
        assert isinstance(receipt, ParsedReceipt)
        assert isinstance(receipt.date, dt.datetime)
        assert isinstance(receipt.category, str)

    def test_long_whitespace_runs_parse_quickly(self, fixed_clock) -> None:
        line = "Item" + " " * 5000 + "x"
        start = time.perf_counter()
        receipt = ReceiptInterpreter(clock=fixed_clock).parse_receipt(line, [line])
        assert time.perf_counter() - start < 1.0
        assert receipt.amount is None
        assert receipt.items == ()

    def test_to_dict(self) -> None:
        data = parse_receipt(RIDE_TEXT, split_lines(RIDE_TEXT)).to_dict()
        assert data == {
            "amount": "23.45",
            "date": "2024-03-03T00:00:00+00:00",
            "merchant": "Uber",
            "items": [
                {"name": "Trip fare", "price": "20.00"},
                {"name": "Booking fee", "price": "3.45"},
            ],
            "receipt_number": None,
            "category": "Transport",
        }
