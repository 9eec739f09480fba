"""
OCR for receipt images and PDFs.

Produces the OcrResult the interpreter consumes. Heavy dependencies are
imported lazily so the interpreter can be used without them.
"""

import io
import logging
import os
from collections import defaultdict
from pathlib import Path
from typing import List

from .models import OcrResult
from .utils import IMAGE_EXTS, PDF_EXTS

logger = logging.getLogger(__name__)

# Used when Tesseract gives no per-word confidences
DEFAULT_CONFIDENCE = 0.7
TEXT_LAYER_CONFIDENCE = 1.0
LINE_BUCKET_PX = 10


class OCRError(RuntimeError):
    """The OCR provider could not read the file."""


def _lazy_import_ocr_deps():
    """Lazy import heavy OCR dependencies."""
    global pytesseract, PIL_Image, fitz
    import importlib
    pytesseract = importlib.import_module("pytesseract")
    PIL_Image = importlib.import_module("PIL.Image")
    fitz = importlib.import_module("fitz")  # pymupdf

    cmd = os.getenv("TESSERACT_CMD")
    if cmd:
        pytesseract.pytesseract.tesseract_cmd = cmd


# Initialize on first use
pytesseract = None
PIL_Image = None
fitz = None


def split_lines(text: str) -> tuple:
    """Line segmentation for providers that only return flat text."""
    return tuple(ln.strip() for ln in text.split("\n") if ln.strip())


def group_lines(data: dict) -> tuple:
    """
    Rebuild visual lines from Tesseract word boxes.

    Words are bucketed by their top edge rounded to LINE_BUCKET_PX and read
    left to right, so an item name and a price printed in separate columns
    land on the same line.
    """
    rows = defaultdict(list)
    for word, top, left in zip(data.get("text", []), data.get("top", []), data.get("left", [])):
        word = str(word).strip()
        if not word:
            continue
        key = round(int(top) / LINE_BUCKET_PX) * LINE_BUCKET_PX
        rows[key].append((int(left), word))
    return tuple(" ".join(w for _, w in sorted(rows[k])) for k in sorted(rows))


def _mean_confidence(data: dict) -> float:
    # Tesseract reports -1 for non-word boxes
    confs = [float(c) for c in data.get("conf", []) if float(c) >= 0]
    if not confs:
        return DEFAULT_CONFIDENCE
    return round(sum(confs) / len(confs) / 100, 4)


def _tesseract(img, lang: str):
    try:
        text = pytesseract.image_to_string(img, lang=lang)
        data = pytesseract.image_to_data(img, lang=lang, output_type=pytesseract.Output.DICT)
    except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
        raise OCRError(f"Failed to extract text from image: {e}") from e
    return text, data


def ocr_image(img_path: Path, lang: str = "eng") -> OcrResult:
    """OCR an image file."""
    if pytesseract is None:
        _lazy_import_ocr_deps()

    try:
        img = PIL_Image.open(img_path)
    except OSError as e:
        raise OCRError(f"Could not open image {img_path.name}: {e}") from e
    with img:
        text, data = _tesseract(img, lang)
    lines = group_lines(data) or split_lines(text)
    return OcrResult(text=text, confidence=_mean_confidence(data), lines=lines)


def ocr_pdf(pdf_path: Path, lang: str = "eng") -> OcrResult:
    """
    Read text from a PDF with PyMuPDF. Pages without a text layer are
    rasterized and run through Tesseract.
    """
    if fitz is None:
        _lazy_import_ocr_deps()

    try:
        doc = fitz.open(pdf_path.as_posix())
    except (RuntimeError, ValueError, OSError) as e:
        raise OCRError(f"Could not open PDF {pdf_path.name}: {e}") from e

    chunks: List[str] = []
    confidences: List[float] = []
    try:
        for page in doc:
            page_text = page.get_text()
            if page_text.strip():
                chunks.append(page_text)
                confidences.append(TEXT_LAYER_CONFIDENCE)
                continue
            logger.debug("Page %d of %s has no text layer, running OCR", page.number, pdf_path.name)
            pix = page.get_pixmap(matrix=fitz.Matrix(2, 2), alpha=False)
            with PIL_Image.open(io.BytesIO(pix.tobytes("png"))) as img:
                page_text, data = _tesseract(img, lang)
            chunks.append(page_text)
            confidences.append(_mean_confidence(data))
    finally:
        doc.close()

    text = "\n".join(chunks)
    confidence = sum(confidences) / len(confidences) if confidences else 0.0
    return OcrResult(text=text, confidence=confidence, lines=split_lines(text))


def ocr_file(path: Path, lang: str = "eng") -> OcrResult:
    """OCR a receipt file (image or PDF)."""
    ext = path.suffix.lower()
    if ext in IMAGE_EXTS:
        return ocr_image(path, lang)
    if ext in PDF_EXTS:
        return ocr_pdf(path, lang)
    raise ValueError(f"Unsupported file type: {path}")
