"""
Batch processing: OCR a folder of receipts, interpret them and record
transactions.
"""

import shutil
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .categorization import DEFAULT_CATEGORY_RULES, CategoryRuleSet
from .database import (find_by_receipt_number, find_by_sha1, init_ledger_db,
                       record_transaction)
from .interpreter import ReceiptInterpreter
from .ocr import ocr_file
from .reporting import receipt_row, write_csv
from .utils import IMAGE_EXTS, PDF_EXTS, money_fmt, sha1_file, slugify


class ReceiptProcessor:
    """Main processor for the receipt OCR and interpretation pipeline."""

    def __init__(self, incoming_dir: Path, output_dir: Path,
                 user_id: str = "local",
                 rules: CategoryRuleSet = DEFAULT_CATEGORY_RULES,
                 lang: str = "eng",
                 verbose: bool = False):
        """
        Initialize receipt processor.

        Args:
            incoming_dir: Directory with new receipts
            output_dir: Root directory for processed receipts, ledger and report
            user_id: Owner of the transactions; duplicate checks are per user
            rules: Category keyword rules
            lang: Tesseract language code
            verbose: Whether to show verbose debugging output
        """
        self.incoming_dir = incoming_dir
        self.output_dir = output_dir
        self.user_id = user_id
        self.lang = lang
        self.verbose = verbose
        self.interpreter = ReceiptInterpreter(rules=rules)

        self.processed_dir = output_dir / "processed"  # Receipts filed by category
        self.report_csv = output_dir / "receipts.csv"
        self.ledger_db = output_dir / "ledger.sqlite"

        for dir_path in [self.incoming_dir, self.output_dir, self.processed_dir]:
            dir_path.mkdir(parents=True, exist_ok=True)

        init_ledger_db(self.ledger_db)

        # (file name, reason) for every receipt that did not become a transaction
        self.skipped: List[Tuple[str, str]] = []

    def discover_files(self) -> List[Path]:
        """Discover receipt files in the incoming directory."""
        files = sorted(
            p for p in self.incoming_dir.iterdir()
            if p.is_file() and p.suffix.lower() in IMAGE_EXTS.union(PDF_EXTS)
        )
        print(f"[INFO] Found {len(files)} file(s) in incoming")
        return files

    def _skip(self, path: Path, reason: str, message: str):
        print(f"  [WARN] {message}")
        self.skipped.append((path.name, reason))

    def process_file(self, path: Path) -> Optional[Dict]:
        """
        Process a single receipt file.

        Returns:
            Report row for the recorded transaction, or None when the receipt
            was skipped (no text, no amount, duplicate or already processed).
        """
        print(f"[INFO] Processing {path.name}")
        sha1 = sha1_file(path)

        if find_by_sha1(self.ledger_db, self.user_id, sha1):
            print(f"  [INFO] {path.name} was already processed, skipping")
            self.skipped.append((path.name, "already_processed"))
            return None

        ocr = ocr_file(path, self.lang)
        if not ocr.text.strip():
            self._skip(path, "no_text",
                       f"Could not extract text from {path.name}. Try a clearer image.")
            return None

        receipt = self.interpreter.parse_receipt(ocr.text, ocr.lines)

        if self.verbose:
            print(f"  [DEBUG] OCR confidence: {ocr.confidence:.2f}")
            print(f"  [DEBUG] Merchant: '{receipt.merchant}'")
            print(f"  [DEBUG] Category: {receipt.category}")
            print(f"  [DEBUG] Date: {receipt.date.isoformat()}")
            print(f"  [DEBUG] Amount: {money_fmt(receipt.amount) or '(none)'}")
            print(f"  [DEBUG] Receipt No.: {receipt.receipt_number or '(none)'}")
            print(f"  [DEBUG] Items: {len(receipt.items)}")

        if receipt.amount is None:
            self._skip(path, "no_amount",
                       f"Could not detect the amount on {path.name}. "
                       f"Add the transaction manually.")
            return None

        if receipt.receipt_number:
            existing = find_by_receipt_number(self.ledger_db, self.user_id,
                                              receipt.receipt_number)
            if existing:
                self._skip(path, "duplicate",
                           f"Receipt No. {receipt.receipt_number} was already processed "
                           f"({existing['source_file']}, amount {existing['amount']})")
                return None

        record_transaction(self.ledger_db, self.user_id, receipt,
                           source_file=path.name, sha1=sha1,
                           ocr_confidence=ocr.confidence)
        self._move_to_processed(path, receipt.category, sha1)

        print(f"  [OK] {receipt.merchant} | {money_fmt(receipt.amount)} | {receipt.category}")
        return receipt_row(receipt, path.name, sha1, ocr.confidence)

    def _move_to_processed(self, path: Path, category: str, sha1: str) -> Path:
        """Move processed file to its category directory."""
        cat_dir = self.processed_dir / slugify(category)
        cat_dir.mkdir(parents=True, exist_ok=True)
        dest = cat_dir / path.name
        if dest.exists():
            # Avoid overwrite by suffixing sha1
            dest = cat_dir / f"{path.stem}_{sha1[:8]}{path.suffix}"
        shutil.move(path.as_posix(), dest.as_posix())
        return dest

    def process_all(self) -> List[Dict]:
        """Process every receipt in the incoming directory."""
        files = self.discover_files()
        if not files:
            print("No receipt files found in incoming directory.")
            return []

        rows = []
        for file_path in files:
            try:
                row = self.process_file(file_path)
            except Exception as e:
                print(f"[ERROR] Failed {file_path.name}: {e}")
                self.skipped.append((file_path.name, "error"))
                continue
            if row:
                rows.append(row)
        return rows

    def write_report(self, rows: List[Dict]) -> Path:
        """Write the CSV report and print a short summary."""
        write_csv(rows, self.report_csv)
        print(f"[OK] Wrote {self.report_csv}")
        print(f"[OK] Recorded {len(rows)} transaction(s), skipped {len(self.skipped)}")
        for name, reason in self.skipped:
            print(f"     - {name}: {reason}")
        return self.report_csv
