#!/usr/bin/env python3
"""
Rebuild one symbol's history across the stored snapshots.

Usage:
    python scripts/symbol_history.py RELIANCE
    python scripts/symbol_history.py "tata steel" --fields "Close Price" "PE Ratio"
    python scripts/symbol_history.py TCS --csv tcs.csv
"""
from pathlib import Path
import os
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

import pandas as pd

from stockinsights.config import settings
from stockinsights.errors import NotFoundError
from stockinsights.logging import setup_logging
from stockinsights.pipeline.snapshots import SnapshotRepository
from stockinsights.providers.blob_store import build_blob_store

DEFAULT_FIELDS = ["Name", "Close Price", "PE Ratio", "Return on Equity", "RSI – 14D"]


def main():
    import argparse
    p = argparse.ArgumentParser(description="Print a symbol's snapshot history.")
    p.add_argument("symbol", help="Ticker or company-name fragment (case-insensitive)")
    p.add_argument("--fields", nargs="+", default=DEFAULT_FIELDS, help="Columns to show")
    p.add_argument("--csv", help="Write the full series to this CSV path")
    args = p.parse_args()

    setup_logging()
    repo = SnapshotRepository(build_blob_store(settings), settings)
    try:
        result = repo.build_historical_series(args.symbol)
    except NotFoundError as exc:
        print(exc.message)
        return 1

    df = pd.DataFrame(result.series).set_index("date")
    if args.csv:
        df.to_csv(args.csv)
        print(f"Wrote {len(df)} row(s) to {args.csv}")
    cols = [c for c in args.fields if c in df.columns]
    print(df[cols].to_string())
    if result.skipped_count:
        print(f"\nSkipped {result.skipped_count} snapshot(s):")
        for reason in result.skipped_reasons:
            print(f"  {reason}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
