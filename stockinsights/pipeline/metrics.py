"""Typed access to string-encoded screener metrics.

Screener values arrive as strings such as ``"15.2"``, ``"18.4%"`` or
``"1,234.5 Cr"``. Parsing takes the leading number only, so ``"1,234"`` reads
as ``1`` (the scraper emits plain numbers for every metric the rules read;
market cap goes through ``parse_currency`` instead).
"""
from __future__ import annotations

import math
import re
from typing import Any

_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_NON_NUMERIC = re.compile(r"[^\d.]")


def parse_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
        return num if math.isfinite(num) else None
    if not isinstance(value, str):
        return None
    m = _LEADING_NUMBER.match(value)
    if not m:
        return None
    try:
        num = float(m.group(1))
    except ValueError:
        return None
    return num if math.isfinite(num) else None


def numeric_metric(record: dict, key: str, fallback: float = 0.0) -> float:
    num = parse_number(record.get(key))
    return fallback if num is None else num


def text_metric(record: dict, key: str) -> str:
    value = record.get(key)
    return value.lower() if isinstance(value, str) else ""


def parse_currency(value: Any) -> float:
    """Digits and dots only, so ``"25,000 Cr"`` -> 25000.0; 0 when nothing parses."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else 0.0
    if not isinstance(value, str):
        return 0.0
    num = parse_number(_NON_NUMERIC.sub("", value))
    return 0.0 if num is None else num
