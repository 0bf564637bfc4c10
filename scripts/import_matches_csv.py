#!/usr/bin/env python3
"""
Import matches from a CSV file.

Always prints the preview first: valid rows, duplicates of stored matches
and per-row errors. Nothing is written unless --commit is passed.

Usage:
    python scripts/import_matches_csv.py matches.csv
    python scripts/import_matches_csv.py matches.csv --commit
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from picklewickel.db.session import get_session, init_db
from picklewickel.errors import PickleWickelError
from picklewickel.logging_config import configure_logging
from picklewickel.services.match_service import MatchService
from picklewickel.store import CollectionRepository, SqlKeyValueStore


def main() -> int:
    parser = argparse.ArgumentParser(description="Preview or import a matches CSV")
    parser.add_argument("csv_path", type=Path, help="Path to the UTF-8 CSV file")
    parser.add_argument(
        "--commit",
        action="store_true",
        help="Store the valid rows (default is preview only)",
    )
    args = parser.parse_args()

    configure_logging(fmt="console")
    text = args.csv_path.read_text(encoding="utf-8-sig")
    init_db()

    with get_session() as session:
        service = MatchService(CollectionRepository(SqlKeyValueStore(session)))
        preview = service.preview_csv_import(text)
        print(preview.summary())

        if preview.fatal:
            return 1
        if not args.commit:
            print("\nPreview only. Run with --commit to import.")
            return 0

        try:
            outcome = service.commit_csv_import(text)
        except PickleWickelError as exc:
            print(f"Import failed: {exc}")
            return 1
        print(f"\nImported {len(outcome.created)} match(es).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
