from __future__ import annotations

from typing import Any

import structlog

from ..config import Settings, settings as default_settings
from ..constants import (
    FIELD_BUY_RECOS,
    FIELD_CLOSE_PRICE,
    FIELD_DEBT_EQUITY,
    FIELD_EPS,
    FIELD_NET_MARGIN,
    FIELD_PROMOTER_HOLDING,
    FIELD_ROCE,
    FIELD_ROE,
    FIELD_RSI_14D,
)
from ..errors import ConfigurationError, InsightsError, UpstreamFetchError, ValidationError
from ..services.ai_insights import (
    SCREEN_SYSTEM_PROMPT,
    STOCK_SYSTEM_PROMPT,
    NarrativeGenerator,
    build_screen_prompt,
    build_sentiment_prompts,
    build_stock_prompt,
)
from .screening import QueryKind, ScreeningEngine
from .snapshots import SnapshotRepository, compress_series

log = structlog.get_logger()

# request field -> screener field it overrides
OVERRIDE_FIELDS = {
    "price": FIELD_CLOSE_PRICE,
    "eps": FIELD_EPS,
    "roe": FIELD_ROE,
    "roce": FIELD_ROCE,
    "netMargin": FIELD_NET_MARGIN,
    "debtEquity": FIELD_DEBT_EQUITY,
    "promoterHolding": FIELD_PROMOTER_HOLDING,
    "rsi": FIELD_RSI_14D,
    "analystRatings": FIELD_BUY_RECOS,
}


def merge_overrides(record: dict | None, overrides: dict[str, Any] | None) -> dict:
    merged = dict(record or {})
    for name, field in OVERRIDE_FIELDS.items():
        value = (overrides or {}).get(name)
        if value:
            merged[field] = value
    return merged


class InsightsOrchestrator:
    def __init__(
        self,
        repository: SnapshotRepository,
        engine: ScreeningEngine,
        generator: NarrativeGenerator,
        cfg: Settings | None = None,
    ):
        self.repository = repository
        self.engine = engine
        self.generator = generator
        self.cfg = cfg or default_settings

    def _require_generator(self):
        if not self.generator.is_configured():
            log.error("narrative_not_configured")
            raise ConfigurationError("LLM API key not set")

    def _narrate(self, system: str, user: str) -> str:
        return self.generator.generate(
            system,
            user,
            max_tokens=self.cfg.llm_max_tokens,
            temperature=self.cfg.llm_temperature,
        )

    def _lookup_record(self, symbol: str) -> dict | None:
        try:
            _, records = self.repository.load_snapshot()
        except InsightsError as exc:
            log.warning("insight_record_lookup_failed", symbol=symbol, error=exc.message, details=exc.details)
            return None
        return self.repository.find_in_snapshot(records, symbol)

    def _lookup_history(self, symbol: str) -> list[dict] | None:
        try:
            return self.repository.build_historical_series(symbol).series
        except InsightsError as exc:
            log.warning("insight_history_lookup_failed", symbol=symbol, error=exc.message)
            return None

    def generate_insight(
        self,
        symbol: str | None = None,
        user_input: str | None = None,
        stock_data: dict | None = None,
        history: list | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> str:
        self._require_generator()
        query = (user_input or symbol or "").strip()
        if not query:
            raise ValidationError("No symbol or userInput provided")
        kind = self.engine.classify(query)
        log.info("insight_requested", query=query, kind=kind.value)

        if kind is QueryKind.SINGLE_SYMBOL:
            target = symbol or self.engine.symbol_of(query)
            record = stock_data if stock_data else self._lookup_record(target)
            merged = merge_overrides(record, overrides)
            series = history if history else self._lookup_history(target)
            if series and self.cfg.prompt_compress_history and all(isinstance(e, dict) for e in series):
                series = compress_series(series)
            return self._narrate(STOCK_SYSTEM_PROMPT, build_stock_prompt(merged, series))

        try:
            key, records = self.repository.load_snapshot()
        except UpstreamFetchError as exc:
            log.error("insight_dataset_failed", error=exc.message, details=exc.details)
            raise UpstreamFetchError("Failed to fetch stock data", exc.details or exc.message) from exc
        filtered = self.engine.filter_by_query(records, query)
        log.info("insight_screen_ready", key=key, stocks=len(filtered))
        return self._narrate(SCREEN_SYSTEM_PROMPT, build_screen_prompt(query, filtered))

    def screen(self, query: str, limit: int | None = None) -> dict:
        query = (query or "").strip()
        if not query:
            raise ValidationError("No query provided")
        kind = self.engine.classify(query)
        key, records = self.repository.load_snapshot()
        if kind is QueryKind.SINGLE_SYMBOL:
            match = self.repository.find_in_snapshot(records, self.engine.symbol_of(query))
            results = [match] if match is not None else []
        else:
            results = self.engine.filter_by_query(records, query, limit=limit)
        return {"kind": kind.value, "snapshot": key, "count": len(results), "results": results}

    def generate_sentiment(self, symbol: str | None, news: list[str] | None, pdf_text: str | None = None) -> str:
        self._require_generator()
        if not symbol or not news:
            raise ValidationError("Missing symbol or newsData")
        system, user = build_sentiment_prompts(symbol, news, pdf_text)
        return self.generator.generate(
            system,
            user,
            max_tokens=self.cfg.sentiment_max_tokens,
            temperature=self.cfg.sentiment_temperature,
        )
