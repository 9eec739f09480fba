#!/usr/bin/env python3
"""
Main CLI entrypoint for the receipt interpreter.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from receipt_interpreter.core.categorization import (DEFAULT_CATEGORY_RULES,
                                                     load_rules, rules_to_dict)
from receipt_interpreter.core.interpreter import ReceiptInterpreter
from receipt_interpreter.core.ocr import split_lines
from receipt_interpreter.core.processor import ReceiptProcessor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="OCR receipts and turn them into categorized transactions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Process receipts with all defaults
  receipt-interpret

  # Custom directories and user
  receipt-interpret --incoming ./my_receipts --output ./my_output --user alice

  # Interpret text that was already extracted by another OCR tool
  receipt-interpret --text-file ./receipt.txt

  # Write the built-in category rules as a starting point
  receipt-interpret --init-rules ./rules.json
        """
    )
    parser.add_argument("--incoming", default="./incoming",
                        help="Folder with new receipts (default: ./incoming)")
    parser.add_argument("--output", default="./output",
                        help="Folder for processed receipts, ledger and report (default: ./output)")
    parser.add_argument("--rules", default=os.getenv("RECEIPT_RULES", "./rules.json"),
                        help="rules.json for category keywords (default: ./rules.json, "
                             "or RECEIPT_RULES env var); built-in rules if missing")
    parser.add_argument("--user", default=os.getenv("RECEIPT_USER", "local"),
                        help="User id for the ledger (default: local, or RECEIPT_USER env var)")
    parser.add_argument("--lang", default=os.getenv("OCR_LANG", "eng"),
                        help="Tesseract language (default: eng, or OCR_LANG env var)")
    parser.add_argument("--text-file",
                        help="Interpret an already-extracted text file and print JSON")
    parser.add_argument("--init-rules", metavar="PATH",
                        help="Write the built-in category rules to PATH and exit")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show detailed parsing information for debugging")
    return parser


def main(argv=None):
    """Main CLI entrypoint."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.init_rules:
        out = Path(args.init_rules)
        if out.exists():
            print(f"[ERROR] {out} already exists")
            return 1
        out.write_text(json.dumps(rules_to_dict(DEFAULT_CATEGORY_RULES), indent=2) + "\n",
                       encoding="utf-8")
        print(f"[OK] Wrote {out}")
        return 0

    try:
        rules = load_rules(Path(args.rules))
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 1

    if args.text_file:
        path = Path(args.text_file)
        if not path.exists():
            print(f"[ERROR] No such file: {path}")
            return 1
        text = path.read_text(encoding="utf-8")
        receipt = ReceiptInterpreter(rules=rules).parse_receipt(text, split_lines(text))
        print(json.dumps(receipt.to_dict(), indent=2, ensure_ascii=False))
        if receipt.amount is None:
            print("[WARN] Could not detect the amount", file=sys.stderr)
        return 0

    print(f"[INFO] Processing receipts for user: {args.user}")
    processor = ReceiptProcessor(
        incoming_dir=Path(args.incoming),
        output_dir=Path(args.output),
        user_id=args.user,
        rules=rules,
        lang=args.lang,
        verbose=args.verbose,
    )

    rows = processor.process_all()
    processor.write_report(rows)
    return 0


if __name__ == "__main__":
    sys.exit(main())
