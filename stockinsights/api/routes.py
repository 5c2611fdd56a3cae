from collections import deque
from functools import lru_cache
from pathlib import Path
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from .schemas import (
    InsightsRequest,
    InsightResponse,
    PortfolioRequest,
    ScreenRequest,
    SentimentRequest,
    SentimentResponse,
)
from ..config import settings
from ..errors import NotFoundError, ValidationError
from ..pipeline.orchestrator import InsightsOrchestrator
from ..pipeline.portfolio import analyze_portfolio
from ..pipeline.screening import ScreeningEngine, market_sentiment
from ..pipeline.snapshots import SnapshotRepository
from ..providers.blob_store import build_blob_store
from ..services.ai_insights import AnthropicNarrativeGenerator, NarrativeGenerator

router = APIRouter()

@lru_cache(maxsize=None)
def get_repository() -> SnapshotRepository:
    return SnapshotRepository(build_blob_store(settings), settings)

@lru_cache(maxsize=None)
def get_engine() -> ScreeningEngine:
    return ScreeningEngine.from_settings(settings)

@lru_cache(maxsize=None)
def get_generator() -> NarrativeGenerator:
    return AnthropicNarrativeGenerator.from_settings(settings)

def get_orchestrator(
    repository: SnapshotRepository = Depends(get_repository),
    engine: ScreeningEngine = Depends(get_engine),
    generator: NarrativeGenerator = Depends(get_generator),
) -> InsightsOrchestrator:
    return InsightsOrchestrator(repository, engine, generator, settings)

@router.get(
    '/health',
    summary="Health check",
    description="Returns service status and which collaborators are configured.",
    tags=["Health"],
)
def health(generator: NarrativeGenerator = Depends(get_generator)):
    return {
        'ok': True,
        'blob_backend': settings.blob_backend,
        'snapshot_prefix': settings.snapshot_prefix,
        'llm_configured': generator.is_configured(),
    }

@router.get(
    '/api/stock',
    summary="Screener snapshot data",
    description=(
        "all=1 returns the full snapshot (latest, or date=YYYY-MM-DD&time=HH-MM). "
        "history=1&symbol=... returns the symbol's series across the history window. "
        "Otherwise returns the first record whose Name contains symbol; "
        "realtime=1 adds the move since the previous snapshot, sentiment=1 adds a technical sentiment."
    ),
    tags=["Stocks"],
)
def stock(
    symbol: str | None = None,
    all_: str | None = Query(default=None, alias="all"),
    date: str | None = None,
    time: str | None = None,
    history: str | None = None,
    realtime: str | None = None,
    sentiment: str | None = None,
    repository: SnapshotRepository = Depends(get_repository),
):
    if all_:
        _, records = repository.load_snapshot(date, time)
        return records

    if history and symbol:
        result = repository.build_historical_series(symbol)
        return JSONResponse(
            result.series,
            headers={'X-Skipped-Snapshots': str(result.skipped_count)},
        )

    if not symbol:
        raise ValidationError('No symbol provided. Please provide a ?symbol=... query parameter.')

    _, records = repository.load_snapshot(date, time)
    match = repository.find_in_snapshot(records, symbol)
    if match is None:
        raise NotFoundError('Symbol or company not found')

    enhanced = dict(match)
    if realtime:
        change = repository.price_change(symbol, match)
        if change:
            enhanced.update(change)
    if sentiment:
        enhanced['marketSentiment'] = market_sentiment(match)
    return enhanced

@router.post(
    '/api/insights',
    response_model=InsightResponse,
    summary="Generate an AI insight",
    description=(
        "Ticker-like queries get a single-stock evaluation (with history and any metric overrides); "
        "anything else is screened against the latest snapshot and the top matches are analysed."
    ),
    tags=["Insights"],
)
def insights(req: InsightsRequest, orchestrator: InsightsOrchestrator = Depends(get_orchestrator)):
    text = orchestrator.generate_insight(
        symbol=req.symbol,
        user_input=req.user_input,
        stock_data=req.stock_data,
        history=req.history,
        overrides=req.overrides(),
    )
    return InsightResponse(insight=text)

@router.post(
    '/api/screen',
    summary="Run the keyword screen",
    description="Classifies the query and returns the screened records without calling the language model.",
    tags=["Insights"],
)
def screen(req: ScreenRequest, orchestrator: InsightsOrchestrator = Depends(get_orchestrator)):
    return orchestrator.screen(req.query, limit=req.limit)

@router.post(
    '/api/sentiment',
    response_model=SentimentResponse,
    summary="News sentiment",
    description="Summarises the sentiment of news and social headlines for a symbol.",
    tags=["Insights"],
)
def news_sentiment(req: SentimentRequest, orchestrator: InsightsOrchestrator = Depends(get_orchestrator)):
    text = orchestrator.generate_sentiment(req.symbol, req.news_data, req.pdf_text)
    return SentimentResponse(sentiment=text)

@router.post(
    '/api/portfolio',
    summary="Portfolio analytics",
    description="Totals, performers, sector breakdown, risk metrics and recommendations for a portfolio.",
    tags=["Portfolio"],
)
def portfolio(req: PortfolioRequest):
    if req.portfolio is None:
        raise ValidationError('Invalid portfolio data')
    items = [item.model_dump(by_alias=True) for item in req.portfolio]
    return analyze_portfolio(items)

@router.get(
    '/api/portfolio',
    summary="Portfolio analytics endpoints",
    tags=["Portfolio"],
)
def portfolio_info():
    return {
        'message': 'Portfolio Analytics API',
        'endpoints': {
            'POST /api/portfolio': 'Analyze portfolio data and return insights',
        },
    }

@router.get(
    '/api/logs',
    summary="Read error logs",
    description="Returns the last N lines from the error log file.",
    tags=["Admin"],
)
def read_logs(lines: int = 200):
    if lines < 1:
        raise HTTPException(400, 'lines must be >= 1')
    if lines > 2000:
        lines = 2000
    if not settings.log_error_file:
        raise HTTPException(404, 'LOG_ERROR_FILE is not configured')
    path = Path(settings.log_error_file)
    if not path.exists():
        raise HTTPException(404, 'log file not found')
    tail = deque(maxlen=lines)
    with path.open("r", encoding="utf-8", errors="replace") as handle:
        for line in handle:
            tail.append(line.rstrip("\n"))
    return {"path": str(path), "lines": list(tail)}
