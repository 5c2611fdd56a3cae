"""Helpers for writing screener snapshots into a temporary LocalBlobStore."""
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

from stockinsights.services.ai_insights import NarrativeGenerator

PREFIX = "tickertape_custom_screener_"


def key_for(dt: datetime) -> str:
    return f"{PREFIX}{dt.strftime('%Y-%m-%d_%H-%M')}.json"


def key_days_ago(days: int, hour: int = 10, minute: int = 0) -> str:
    dt = datetime.now(timezone.utc) - timedelta(days=days)
    return key_for(dt.replace(hour=hour, minute=minute))


def write_snapshot(root: Path, key: str, records) -> None:
    body = records if isinstance(records, str) else json.dumps(records)
    (Path(root) / key).write_text(body, encoding="utf-8")


def stock(name, **fields):
    record = {"Name": name}
    record.update(fields)
    return record


class RecordingGenerator(NarrativeGenerator):
    def __init__(self, reply="Strong fundamentals.", configured=True):
        self.reply = reply
        self.configured = configured
        self.calls = []

    def is_configured(self) -> bool:
        return self.configured

    def generate(self, system, user, max_tokens, temperature):
        self.calls.append({"system": system, "user": user, "max_tokens": max_tokens, "temperature": temperature})
        return self.reply
