"""Snapshot discovery, retrieval and per-symbol history.

Snapshots are JSON arrays of screener records written by an external scraper
under ``<prefix><YYYY-MM-DD>_<HH-MM>.json``. The key is the only source of the
capture time. Nothing here caches: every call re-lists and re-fetches.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import structlog

from ..config import Settings, settings as default_settings
from ..constants import FIELD_CLOSE_PRICE, FIELD_NAME, SNAPSHOT_SUFFIX
from ..errors import FetchError, NotFoundError, UpstreamFetchError
from ..providers.blob_store import BlobStore
from .metrics import numeric_metric

log = structlog.get_logger()


@dataclass(frozen=True)
class SkippedSnapshot:
    key: str
    reason: str


@dataclass
class SeriesResult:
    symbol: str
    series: list[dict] = field(default_factory=list)
    skipped: list[SkippedSnapshot] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def skipped_reasons(self) -> list[str]:
        return [f"{s.key}: {s.reason}" for s in self.skipped]


def _key_pattern(prefix: str) -> re.Pattern:
    return re.compile(re.escape(prefix) + r"(\d{4}-\d{2}-\d{2})_(\d{2}-\d{2})\.json")


def parse_timestamp_from_filename(name: str, prefix: str | None = None) -> float:
    """Epoch seconds (UTC) encoded in a snapshot key, 0 when it does not parse."""
    m = _key_pattern(prefix or default_settings.snapshot_prefix).search(name)
    if not m:
        return 0
    try:
        dt = datetime.strptime(f"{m.group(1)} {m.group(2)}", "%Y-%m-%d %H-%M")
    except ValueError:
        return 0
    return dt.replace(tzinfo=timezone.utc).timestamp()


def extract_date_from_filename(name: str, prefix: str | None = None) -> str | None:
    m = _key_pattern(prefix or default_settings.snapshot_prefix).search(name)
    if not m:
        return None
    return f"{m.group(1)}T{m.group(2).replace('-', ':')}:00Z"


def compress_series(series: list[dict]) -> list[dict]:
    """Delta-encode a history series: each entry keeps only what changed."""
    compressed = []
    prev: dict = {}
    for entry in series:
        diff = {"date": entry.get("date")}
        for key, value in entry.items():
            if key in ("date", "symbol", FIELD_NAME):
                continue
            if key not in prev or prev[key] != value:
                diff[key] = value
        compressed.append(diff)
        prev = entry
    return compressed


class SnapshotRepository:
    def __init__(self, store: BlobStore, cfg: Settings | None = None):
        self.store = store
        self.cfg = cfg or default_settings
        self.prefix = self.cfg.snapshot_prefix

    def timestamp_of(self, key: str) -> float:
        return parse_timestamp_from_filename(key, self.prefix)

    def snapshot_key_for(self, date: str, time: str | None = None) -> str:
        return f"{self.prefix}{date}_{time or '00-00'}{SNAPSHOT_SUFFIX}"

    def list_eligible_snapshot_keys(self, now: datetime | None = None) -> list[str]:
        try:
            names = self.store.list_objects(self.prefix)
        except UpstreamFetchError as exc:
            log.warning("snapshot_list_failed", error=exc.message, details=exc.details)
            return []
        now = now or datetime.now(timezone.utc)
        cutoff = (now - timedelta(days=self.cfg.history_window_days)).timestamp()
        keys = [
            name for name in names
            if name.startswith(self.prefix) and name.endswith(SNAPSHOT_SUFFIX)
        ]
        eligible = [name for name in keys if self.timestamp_of(name) >= cutoff]
        eligible.sort(key=self.timestamp_of)
        log.debug("snapshot_keys_listed", listed=len(names), eligible=len(eligible))
        return eligible

    def resolve_latest(self, now: datetime | None = None) -> str | None:
        keys = self.list_eligible_snapshot_keys(now)
        return keys[-1] if keys else None

    def fetch_snapshot(self, key: str) -> list[dict]:
        body = self.store.fetch_object(key)
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise FetchError("Failed to fetch or parse data", f"{key}: {exc}") from exc
        if not isinstance(data, list):
            raise FetchError("Failed to fetch or parse data", f"{key}: expected a JSON array")
        return data

    def load_snapshot(
        self,
        date: str | None = None,
        time: str | None = None,
        now: datetime | None = None,
    ) -> tuple[str, list[dict]]:
        key = self.snapshot_key_for(date, time) if date else self.resolve_latest(now)
        if not key:
            raise UpstreamFetchError("No data file found in bucket")
        return key, self.fetch_snapshot(key)

    @staticmethod
    def find_in_snapshot(snapshot: list, symbol_query: str) -> dict | None:
        needle = symbol_query.lower()
        for item in snapshot:
            if not isinstance(item, dict):
                continue
            name = item.get(FIELD_NAME)
            if isinstance(name, str) and needle in name.lower():
                return item
        return None

    def build_historical_series(self, symbol_query: str, now: datetime | None = None) -> SeriesResult:
        result = SeriesResult(symbol=symbol_query)
        keys = self.list_eligible_snapshot_keys(now)
        for key in keys:
            try:
                snapshot = self.fetch_snapshot(key)
            except FetchError as exc:
                reason = exc.details or exc.message
                log.warning("history_snapshot_skipped", key=key, symbol=symbol_query, reason=reason)
                result.skipped.append(SkippedSnapshot(key=key, reason=reason))
                continue
            match = self.find_in_snapshot(snapshot, symbol_query)
            if match is not None:
                result.series.append({**match, "date": extract_date_from_filename(key, self.prefix)})
        log.info(
            "history_series_built",
            symbol=symbol_query,
            snapshots=len(keys),
            points=len(result.series),
            skipped=result.skipped_count,
        )
        if not result.series:
            raise NotFoundError("No historical data found for symbol")
        return result

    def price_change(self, symbol_query: str, current: dict, now: datetime | None = None) -> dict | None:
        """Close-price move against the previous eligible snapshot."""
        keys = self.list_eligible_snapshot_keys(now)
        if len(keys) < 2:
            return None
        try:
            previous = self.find_in_snapshot(self.fetch_snapshot(keys[-2]), symbol_query)
        except FetchError as exc:
            log.warning("previous_snapshot_failed", key=keys[-2], error=exc.message, details=exc.details)
            return None
        if previous is None:
            return None
        current_price = numeric_metric(current, FIELD_CLOSE_PRICE)
        previous_price = numeric_metric(previous, FIELD_CLOSE_PRICE)
        change = current_price - previous_price
        change_pct = (change / previous_price) * 100 if previous_price > 0 else 0
        return {
            "priceChange": change,
            "priceChangePercent": change_pct,
            "isPositive": change >= 0,
        }
