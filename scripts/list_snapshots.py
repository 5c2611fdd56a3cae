#!/usr/bin/env python3
"""
List the screener snapshots inside the history window, oldest first.

Usage:
    python scripts/list_snapshots.py            # eligible keys with their capture time
    python scripts/list_snapshots.py --latest   # only the key /api/stock would use
"""
from pathlib import Path
import os
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

from stockinsights.config import settings
from stockinsights.logging import setup_logging
from stockinsights.pipeline.snapshots import SnapshotRepository, extract_date_from_filename
from stockinsights.providers.blob_store import build_blob_store


def main():
    import argparse
    p = argparse.ArgumentParser(description="List eligible screener snapshots.")
    p.add_argument("--latest", action="store_true", help="Print only the latest eligible key")
    args = p.parse_args()

    setup_logging()
    repo = SnapshotRepository(build_blob_store(settings), settings)
    if args.latest:
        latest = repo.resolve_latest()
        if not latest:
            print("No snapshots in the last", settings.history_window_days, "days.")
            return 1
        print(latest)
        return 0

    keys = repo.list_eligible_snapshot_keys()
    for key in keys:
        print(f"{extract_date_from_filename(key, settings.snapshot_prefix)}  {key}")
    print(f"\n{len(keys)} snapshot(s) within {settings.history_window_days} days.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
