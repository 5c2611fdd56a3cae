"""Query classification and keyword-driven screening.

``filter_by_query`` runs an ordered chain of keyword rules over the lower-cased
query. Every triggered rule narrows the working set; rules that sort re-sort it
with a stable sort, so the last triggered sort decides the final order and
earlier sorts only break its ties. The three market-cap rules are exclusive:
the first one triggered applies and the others are skipped.
"""
from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable

import structlog

from ..config import Settings, settings as default_settings
from ..constants import (
    DEFAULT_KNOWN_SYMBOLS,
    FIELD_DEBT_EQUITY,
    FIELD_DII_HOLDING,
    FIELD_DIVIDEND_YIELD,
    FIELD_EPS_GROWTH_1Y,
    FIELD_FII_HOLDING,
    FIELD_FREE_CASH_FLOW,
    FIELD_MARKET_CAP,
    FIELD_PE_RATIO,
    FIELD_PROMOTER_HOLDING,
    FIELD_REVENUE_GROWTH_1Y,
    FIELD_ROE,
    FIELD_RSI_14D,
    FIELD_SUB_SECTOR,
    LARGE_CAP_MIN,
    MID_CAP_MIN,
    SYMBOL_PATTERNS,
)
from ..errors import ConfigurationError
from .metrics import numeric_metric, parse_currency, text_metric

log = structlog.get_logger()


class QueryKind(str, Enum):
    SINGLE_SYMBOL = "single_symbol"
    ADVANCED_SCREEN = "advanced_screen"


class MarketCap(str, Enum):
    LARGE = "Large Cap"
    MID = "Mid Cap"
    SMALL = "Small Cap"


class SymbolRecognizer(ABC):
    @abstractmethod
    def is_symbol(self, query: str) -> bool: ...

    def symbol_of(self, query: str) -> str:
        """The lookup key for a query that ``is_symbol`` accepted."""
        return query.strip()


_LEADING_TICKER = re.compile(r"^[A-Z]{2,10}")


class RegistrySymbolRecognizer(SymbolRecognizer):
    """Known tickers first, then ticker-shaped queries ("TCS", "TCS stock", ...)."""

    def __init__(self, symbols: Iterable[str] = DEFAULT_KNOWN_SYMBOLS, patterns: Iterable[str] = SYMBOL_PATTERNS):
        self.symbols = frozenset(s.strip().upper() for s in symbols if s and s.strip())
        self.patterns = [re.compile(p) for p in patterns]

    def _shaped(self, clean: str) -> bool:
        return any(p.search(clean) for p in self.patterns)

    def is_symbol(self, query: str) -> bool:
        clean = query.strip().upper()
        return clean in self.symbols or self._shaped(clean)

    def symbol_of(self, query: str) -> str:
        # "TCS stock" and "TCS (TATA)" resolve to "TCS"
        clean = query.strip()
        upper = clean.upper()
        if upper not in self.symbols and self._shaped(upper):
            m = _LEADING_TICKER.match(upper)
            if m:
                return m.group(0)
        return clean


def load_symbol_registry(cfg: Settings | None = None) -> list[str]:
    """Ticker universe from KNOWN_SYMBOLS_FILE / KNOWN_SYMBOLS, else the built-in list."""
    cfg = cfg or default_settings
    if cfg.known_symbols_file:
        try:
            text = Path(cfg.known_symbols_file).read_text(encoding="utf-8")
            if text.lstrip().startswith("["):
                return [str(s) for s in json.loads(text)]
        except (OSError, ValueError) as exc:
            log.error("symbol_registry_unreadable", path=cfg.known_symbols_file, error=str(exc))
            raise ConfigurationError("Symbol registry unreadable", str(exc)) from exc
        return [line.strip() for line in text.splitlines() if line.strip()]
    if cfg.known_symbols:
        return [s.strip() for s in cfg.known_symbols.split(",") if s.strip()]
    return list(DEFAULT_KNOWN_SYMBOLS)


def categorize_market_cap(cap) -> MarketCap:
    value = parse_currency(cap)
    if value >= LARGE_CAP_MIN:
        return MarketCap.LARGE
    if value >= MID_CAP_MIN:
        return MarketCap.MID
    return MarketCap.SMALL


def market_sentiment(record: dict) -> str:
    rsi = numeric_metric(record, FIELD_RSI_14D, 50)
    pe = numeric_metric(record, FIELD_PE_RATIO)
    roe = numeric_metric(record, FIELD_ROE)
    if rsi < 30 and pe < 15 and roe > 15:
        return "bullish"
    if rsi > 70 and pe > 25:
        return "bearish"
    return "neutral"


@dataclass(frozen=True)
class ScreenRule:
    name: str
    triggers: tuple[str, ...]
    keep: Callable[[dict], bool]
    sort_key: Callable[[dict], float] | None = None
    descending: bool = False
    group: str | None = None

    def triggered(self, query: str) -> bool:
        return any(t in query for t in self.triggers)


def _cap_is(category: MarketCap):
    return lambda r: categorize_market_cap(r.get(FIELD_MARKET_CAP)) == category


def _metric(key: str, fallback: float = 0.0):
    return lambda r: numeric_metric(r, key, fallback)


def _sub_sector_has(fragment: str):
    return lambda r: fragment in text_metric(r, FIELD_SUB_SECTOR)


def _pe_in_range(r: dict) -> bool:
    pe = numeric_metric(r, FIELD_PE_RATIO)
    return 0 < pe < 25


def _institutional(r: dict) -> bool:
    return numeric_metric(r, FIELD_FII_HOLDING) + numeric_metric(r, FIELD_DII_HOLDING) > 20


SCREEN_RULES: tuple[ScreenRule, ...] = (
    ScreenRule("large_cap", ("large cap", "large-cap"), _cap_is(MarketCap.LARGE), group="market_cap"),
    ScreenRule("mid_cap", ("mid cap", "mid-cap"), _cap_is(MarketCap.MID), group="market_cap"),
    ScreenRule("small_cap", ("small cap", "small-cap"), _cap_is(MarketCap.SMALL), group="market_cap"),
    ScreenRule(
        "high_roe", ("highest roe", "high roe"),
        lambda r: numeric_metric(r, FIELD_ROE) > 15,
        sort_key=_metric(FIELD_ROE), descending=True,
    ),
    ScreenRule(
        "low_pe", ("low p/e", "low pe", "undervalued"),
        _pe_in_range,
        sort_key=_metric(FIELD_PE_RATIO, 999),
    ),
    ScreenRule("zero_debt", ("zero debt", "no debt"), lambda r: numeric_metric(r, FIELD_DEBT_EQUITY, 999) == 0),
    ScreenRule("free_cash_flow", ("free cash flow", "fcf"), lambda r: numeric_metric(r, FIELD_FREE_CASH_FLOW) > 0),
    ScreenRule(
        "dividend", ("dividend", "high dividend"),
        lambda r: numeric_metric(r, FIELD_DIVIDEND_YIELD) > 1,
        sort_key=_metric(FIELD_DIVIDEND_YIELD), descending=True,
    ),
    ScreenRule(
        "eps_growth", ("eps growth", "earnings growth"),
        lambda r: numeric_metric(r, FIELD_EPS_GROWTH_1Y) > 10,
        sort_key=_metric(FIELD_EPS_GROWTH_1Y), descending=True,
    ),
    ScreenRule(
        "revenue_growth", ("revenue growth", "sales growth"),
        lambda r: numeric_metric(r, FIELD_REVENUE_GROWTH_1Y) > 10,
        sort_key=_metric(FIELD_REVENUE_GROWTH_1Y), descending=True,
    ),
    ScreenRule("fmcg", ("fmcg",), _sub_sector_has("fmcg")),
    ScreenRule("bank", ("bank", "banking"), _sub_sector_has("bank")),
    # "it" also fires inside words such as "with" or "equity"
    ScreenRule("it", ("it", "software"), _sub_sector_has("it")),
    ScreenRule("auto", ("auto", "automobile"), _sub_sector_has("auto")),
    ScreenRule("oversold", ("oversold", "rsi"), lambda r: numeric_metric(r, FIELD_RSI_14D, 50) < 30),
    ScreenRule("overbought", ("overbought",), lambda r: numeric_metric(r, FIELD_RSI_14D, 50) > 70),
    ScreenRule(
        "promoter_holding", ("promoter holding", "promoter stake"),
        lambda r: numeric_metric(r, FIELD_PROMOTER_HOLDING) > 50,
    ),
    ScreenRule("institutional", ("institutional", "fii", "dii"), _institutional),
)


class ScreeningEngine:
    def __init__(
        self,
        recognizer: SymbolRecognizer | None = None,
        rules: Iterable[ScreenRule] = SCREEN_RULES,
        limit: int | None = None,
    ):
        self.recognizer = recognizer or RegistrySymbolRecognizer()
        self.rules = tuple(rules)
        self.limit = default_settings.screen_result_limit if limit is None else limit

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> "ScreeningEngine":
        cfg = cfg or default_settings
        recognizer = RegistrySymbolRecognizer(load_symbol_registry(cfg))
        return cls(recognizer=recognizer, limit=cfg.screen_result_limit)

    def classify(self, query: str) -> QueryKind:
        if self.recognizer.is_symbol(query):
            return QueryKind.SINGLE_SYMBOL
        return QueryKind.ADVANCED_SCREEN

    def symbol_of(self, query: str) -> str:
        return self.recognizer.symbol_of(query)

    def triggered_rules(self, query: str) -> list[ScreenRule]:
        lowered = query.lower()
        fired = []
        groups = set()
        for rule in self.rules:
            if rule.group and rule.group in groups:
                continue
            if rule.triggered(lowered):
                fired.append(rule)
                if rule.group:
                    groups.add(rule.group)
        return fired

    def filter_by_query(self, records: list, query: str, limit: int | None = None) -> list[dict]:
        limit = self.limit if limit is None else limit
        working = [r for r in records if isinstance(r, dict)]
        fired = self.triggered_rules(query)
        for rule in fired:
            working = [r for r in working if rule.keep(r)]
            if rule.sort_key is not None:
                working = sorted(working, key=rule.sort_key, reverse=rule.descending)
        log.info(
            "screen_filtered",
            query=query,
            rules=[rule.name for rule in fired],
            candidates=len(records),
            matched=len(working),
            limit=limit,
        )
        return working[:limit]
