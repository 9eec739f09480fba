"""
SQLite ledger of interpreted receipts, used for receipt-number duplicate checks.
"""

import sqlite3
import datetime as dt
from pathlib import Path
from typing import Dict, List, Optional

from .models import ParsedReceipt

_COLUMNS = ("id", "user_id", "receipt_number", "merchant", "amount", "category",
            "transaction_date", "source_file", "sha1", "ocr_confidence", "created_at")


def _row_to_dict(row) -> Dict:
    return dict(zip(_COLUMNS, row))


def init_ledger_db(db_path: Path):
    """Initialize the transaction ledger database."""
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        # amount is TEXT so Decimal values round-trip exactly
        cur.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id INTEGER PRIMARY KEY,
            user_id TEXT NOT NULL,
            receipt_number TEXT,
            merchant TEXT,
            amount TEXT NOT NULL,
            category TEXT,
            transaction_date TEXT,
            source_file TEXT,
            sha1 TEXT,
            ocr_confidence REAL,
            created_at TEXT,
            UNIQUE(user_id, receipt_number)
        )
        """)
        cur.execute("""
        CREATE INDEX IF NOT EXISTS idx_transactions_user
        ON transactions(user_id)
        """)
        conn.commit()


def find_by_receipt_number(db_path: Path, user_id: str, receipt_number: str) -> Optional[Dict]:
    """Return the stored transaction for this user and receipt number, if any."""
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute(f"""
        SELECT {', '.join(_COLUMNS)}
        FROM transactions
        WHERE user_id = ? AND receipt_number = ?
        """, (user_id, receipt_number))
        row = cur.fetchone()
    return _row_to_dict(row) if row else None


def record_transaction(db_path: Path, user_id: str, receipt: ParsedReceipt,
                       source_file: str, sha1: str, ocr_confidence: float) -> int:
    """
    Store an interpreted receipt as a transaction.

    Raises ValueError for a receipt without an amount, and sqlite3.IntegrityError
    when the user already has a transaction with the same receipt number.
    """
    if receipt.amount is None:
        raise ValueError("Cannot record a transaction without an amount")

    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute("""
        INSERT INTO transactions
        (user_id, receipt_number, merchant, amount, category, transaction_date,
         source_file, sha1, ocr_confidence, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (user_id, receipt.receipt_number, receipt.merchant, str(receipt.amount),
              receipt.category, receipt.date.isoformat(), source_file, sha1,
              ocr_confidence, dt.datetime.now(dt.timezone.utc).isoformat()))
        conn.commit()
        return cur.lastrowid


def list_transactions(db_path: Path, user_id: str) -> List[Dict]:
    """All transactions for a user, oldest first."""
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute(f"""
        SELECT {', '.join(_COLUMNS)}
        FROM transactions
        WHERE user_id = ?
        ORDER BY id
        """, (user_id,))
        return [_row_to_dict(r) for r in cur.fetchall()]


def find_by_sha1(db_path: Path, user_id: str, sha1: str) -> Optional[Dict]:
    """Return the transaction recorded for this user from the given file, if any."""
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute(f"""
        SELECT {', '.join(_COLUMNS)}
        FROM transactions
        WHERE user_id = ? AND sha1 = ?
        """, (user_id, sha1))
        row = cur.fetchone()
    return _row_to_dict(row) if row else None
