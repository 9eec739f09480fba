"""Tests for the OCR adapter (Tesseract is faked)."""

from pathlib import Path
from types import SimpleNamespace

import pytest

from receipt_interpreter.core import ocr as ocr_module
from receipt_interpreter.core.ocr import OCRError, group_lines, ocr_file, split_lines


class FakeTesseractError(Exception):
    pass


def fake_pytesseract(text="GCash\n\n  - $205.00  \n", conf=None, fail=False, boxes=None):
    def image_to_string(img, lang="eng"):
        if fail:
            raise FakeTesseractError("bad image")
        return text

    def image_to_data(img, lang="eng", output_type=None):
        data = {"conf": conf if conf is not None else []}
        data.update(boxes or {})
        return data

    return SimpleNamespace(
        image_to_string=image_to_string,
        image_to_data=image_to_data,
        Output=SimpleNamespace(DICT="dict"),
        TesseractError=FakeTesseractError,
        TesseractNotFoundError=FakeTesseractError,
    )


class FakeImage:
    """Stands in for a PIL image; records whether it was closed."""

    def __init__(self, path):
        self.path = path
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True


@pytest.fixture
def fake_image(monkeypatch):
    opened = []

    def open_image(path):
        img = FakeImage(path)
        opened.append(img)
        return img

    monkeypatch.setattr(ocr_module, "PIL_Image", SimpleNamespace(open=open_image))
    return opened


class TestSplitLines:
    """Tests for split_lines."""

    def test_strips_and_drops_blank_lines(self) -> None:
        assert split_lines("GCash\n\n  - $205.00  \n") == ("GCash", "- $205.00")

    def test_empty(self) -> None:
        assert split_lines("") == ()


class TestGroupLines:
    """Tests for group_lines."""

    def test_words_on_one_row_are_joined_left_to_right(self) -> None:
        data = {"text": ["4.50", "Latte"], "top": [41, 38], "left": [300, 12]}
        assert group_lines(data) == ("Latte 4.50",)

    def test_rows_ordered_top_to_bottom(self) -> None:
        data = {"text": ["Total", "Cafe"], "top": [90, 10], "left": [0, 0]}
        assert group_lines(data) == ("Cafe", "Total")

    def test_no_boxes(self) -> None:
        assert group_lines({"conf": ["-1"]}) == ()


class TestOcrImage:
    """Tests for ocr_file on images."""

    def test_lines_and_confidence(self, monkeypatch, fake_image) -> None:
        monkeypatch.setattr(ocr_module, "pytesseract", fake_pytesseract(conf=["-1", "90", "80"]))
        result = ocr_file(Path("receipt.png"))
        assert result.lines == ("GCash", "- $205.00")
        assert result.confidence == pytest.approx(0.85)

    def test_default_confidence(self, monkeypatch, fake_image) -> None:
        monkeypatch.setattr(ocr_module, "pytesseract", fake_pytesseract(conf=["-1"]))
        assert ocr_file(Path("receipt.jpg")).confidence == ocr_module.DEFAULT_CONFIDENCE

    def test_lines_built_from_word_boxes(self, monkeypatch, fake_image) -> None:
        boxes = {
            "text": ["", "3.99", "Milk", "TOTAL", "3.99"],
            "top": [0, 103, 100, 148, 150],
            "left": [0, 200, 10, 10, 200],
        }
        text = "Milk\n\n3.99\nTOTAL\n3.99\n"
        monkeypatch.setattr(ocr_module, "pytesseract",
                            fake_pytesseract(text=text, conf=["-1", "90", "80", "70", "60"], boxes=boxes))

        result = ocr_file(Path("receipt.png"))

        assert result.lines == ("Milk 3.99", "TOTAL 3.99")
        assert result.text == text

    def test_image_is_closed(self, monkeypatch, fake_image) -> None:
        monkeypatch.setattr(ocr_module, "pytesseract", fake_pytesseract(conf=["90"]))
        ocr_file(Path("receipt.png"))
        assert [img.closed for img in fake_image] == [True]

    def test_image_is_closed_when_tesseract_fails(self, monkeypatch, fake_image) -> None:
        monkeypatch.setattr(ocr_module, "pytesseract", fake_pytesseract(fail=True))
        with pytest.raises(OCRError):
            ocr_file(Path("receipt.png"))
        assert fake_image[0].closed

    def test_tesseract_failure(self, monkeypatch, fake_image) -> None:
        monkeypatch.setattr(ocr_module, "pytesseract", fake_pytesseract(fail=True))
        with pytest.raises(OCRError, match="Failed to extract text"):
            ocr_file(Path("receipt.png"))

    def test_unsupported_file_type(self) -> None:
        with pytest.raises(ValueError, match="Unsupported file type"):
            ocr_file(Path("receipt.docx"))
