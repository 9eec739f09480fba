"""Shared fixtures for receipt interpreter tests."""

import datetime as dt
from pathlib import Path

import pytest

from receipt_interpreter.core import processor as processor_module
from receipt_interpreter.core.models import OcrResult
from receipt_interpreter.core.ocr import split_lines

FIXED_NOW = dt.datetime(2026, 1, 2, 3, 4, 5, tzinfo=dt.timezone.utc)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def fake_ocr(monkeypatch):
    """Replace Tesseract with a reader that returns the file's text content."""
    def _ocr(path: Path, lang: str = "eng") -> OcrResult:
        text = path.read_text(encoding="utf-8")
        if text.startswith("!unreadable"):
            raise RuntimeError("tesseract crashed")
        return OcrResult(text=text, confidence=0.9, lines=split_lines(text))

    monkeypatch.setattr(processor_module, "ocr_file", _ocr)
    return _ocr


@pytest.fixture
def incoming(tmp_path):
    d = tmp_path / "incoming"
    d.mkdir()
    return d


@pytest.fixture
def write_receipt():
    """Write a fake receipt whose "image" content is its OCR text."""
    def _write(folder: Path, name: str, text: str) -> Path:
        path = folder / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
