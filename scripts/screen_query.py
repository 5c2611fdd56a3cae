#!/usr/bin/env python3
"""
Run the keyword screen against the latest snapshot without calling the LLM.

Usage:
    python scripts/screen_query.py "large cap zero debt high roe"
    python scripts/screen_query.py "dividend fmcg" --limit 5
"""
from pathlib import Path
import os
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

from stockinsights.config import settings
from stockinsights.errors import InsightsError
from stockinsights.logging import setup_logging
from stockinsights.pipeline.screening import ScreeningEngine
from stockinsights.pipeline.snapshots import SnapshotRepository
from stockinsights.providers.blob_store import build_blob_store


def main():
    import argparse
    p = argparse.ArgumentParser(description="Screen the latest snapshot with a free-text query.")
    p.add_argument("query", help="Free-text query, e.g. 'low pe bank stocks'")
    p.add_argument("--limit", type=int, default=None, help="Max results (default SCREEN_RESULT_LIMIT)")
    args = p.parse_args()

    setup_logging()
    engine = ScreeningEngine.from_settings(settings)
    repo = SnapshotRepository(build_blob_store(settings), settings)
    print("Classified as:", engine.classify(args.query).value)
    print("Rules:", ", ".join(r.name for r in engine.triggered_rules(args.query)) or "(none)")
    try:
        key, records = repo.load_snapshot()
    except InsightsError as exc:
        print(exc.message, exc.details or "")
        return 1
    results = engine.filter_by_query(records, args.query, limit=args.limit)
    print(f"Snapshot: {key} ({len(records)} records) -> {len(results)} match(es)\n")
    for i, record in enumerate(results, start=1):
        print(f"{i:>2}. {record.get('Name')}  [{record.get('Sub-Sector', '')}]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
