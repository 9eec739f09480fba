"""
CSV reporting for processed receipts.
"""

import csv
from pathlib import Path
from typing import Dict, List

FIELDNAMES = ["date", "merchant", "amount", "category", "receipt_number",
              "items", "ocr_confidence", "source_file", "sha1"]


def write_csv(rows: List[Dict], out_csv: Path):
    """Write receipts to CSV file."""
    with out_csv.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=FIELDNAMES)
        w.writeheader()
        for r in rows:
            w.writerow({k: r.get(k) for k in FIELDNAMES})


def receipt_row(receipt, source_file: str, sha1: str, ocr_confidence: float) -> Dict:
    """Flatten a ParsedReceipt into a report row."""
    data = receipt.to_dict()
    return {
        "date": data["date"],
        "merchant": data["merchant"],
        "amount": data["amount"],
        "category": data["category"],
        "receipt_number": data["receipt_number"] or "",
        "items": "; ".join(f"{i['name']} {i['price']}" for i in data["items"]),
        "ocr_confidence": f"{ocr_confidence:.2f}",
        "source_file": source_file,
        "sha1": sha1,
    }
