"""AI-written stock narratives using the Anthropic Claude API."""
from __future__ import annotations

import json
from abc import ABC, abstractmethod

import anthropic
import httpx
import structlog

from ..config import Settings, settings as default_settings
from ..errors import ConfigurationError, NarrativeError

log = structlog.get_logger()

NO_NARRATIVE = "No analysis available"

STOCK_SYSTEM_PROMPT = """\
You are a senior investment analyst covering Indian equities. You receive \
screener data for one stock and produce a detailed, strategic investment \
evaluation. Be actionable and strategic; do not add "I'm an AI" caveats.
"""

STOCK_USER_PROMPT_TEMPLATE = """\
Use the following AI Evaluation Framework to analyze the stock and produce a detailed, \
strategic investment evaluation. For every section, explain both "Why Invest" and \
"Why Not Invest" using the logic and metrics provided. Use markdown tables and clear headers.

Stock Data:
{stock_data}

{history_block}
---

# AI Evaluation Framework

## 1. Financial Strength
- **Metrics:** ROE, ROCE, Net Profit Margin, Free Cash Flow, Debt/Equity, Interest Coverage
- **Why Invest:** Positive cash flow, ROE > 15%, Debt/Equity < 0.5, stable earnings
- **Why Not Invest:** High leverage (D/E > 1), negative FCF, low interest coverage → distress risk

## 2. Growth Potential
- **Scenarios:**
  - Bear → EPS drops 10%
  - Base → EPS grows 20%
  - Bull → EPS grows 50%
- **Why Invest:** Stable or improving EPS; sector tailwinds
- **Why Not Invest:** Past EPS decline, inconsistent performance, no growth catalysts

## 3. Valuation
- **Calculations:**
  - Forecasted Price = EPS_next_year × PE_multiple
  - Bear: -10% EPS, PE 15
  - Base: +20% EPS, PE 25
  - Bull: +50% EPS, PE 35
- **Why Invest:** Current PE < Sector PE, Forward PE < Current PE
- **Why Not Invest:** Overvalued PE, market has priced in full upside

## 4. Ownership & Trust
- **Check:** Promoter Holding, Pledged Shares %, FII/DII Holdings
- **Why Invest:** High promoter skin-in-the-game (>50%), 0% pledging
- **Why Not Invest:** >10% pledged shares, promoter selling, no institutional trust

## 5. Market Sentiment & Technicals
- **Signals:** RSI, % below 52W High, Analyst ratings
- **Why Invest:** RSI < 40 (oversold), positive analyst consensus
- **Why Not Invest:** RSI > 70 (overbought), no analyst coverage = low conviction

## 6. Price Forecast Table (1Y)
Create a markdown table:
| Scenario | EPS | PE | Forecasted Price | % Gain/Loss |
|---|---|---|---|---|
| Bear | (calc) | 15 | (calc) | (calc) |
| Base | (calc) | 25 | (calc) | (calc) |
| Bull | (calc) | 35 | (calc) | (calc) |

## 7. ₹100,000 Investment Simulation
- Compute: Units = 100000 / current price
- Projected portfolio value under each scenario
- Output as markdown table:
| Scenario | Exit Value | Gain/Loss |
|---|---|---|
| Bear | (calc) | (calc) |
| Base | (calc) | (calc) |
| Bull | (calc) | (calc) |

## 8. Investment Approach for ₹100,000
- Decide on Lump Sum vs Tranches
- If tranches, suggest price points and allocation per tranche
- Explain reasoning

## 9. Final Recommendation Block
- **Verdict:** Invest / Watch / Avoid - Explain Why
- **Type:** Core / Speculative / High-risk - Explain Why
- **Why Invest:** Summarized pros from all sections - Explain Why
- **Why Not Invest:** Summarized risks from all sections - Explain Why
- **Suggested Allocation:** e.g., 5-10% - Explain Why
- **Hold Period:** Recommend a time window (e.g., 6-12 months, 12-24 months) and explain why
- **Triggers to Monitor:** List key triggers (e.g., promoter pledging decrease, quarterly EPS beat, MF/FII entry, etc.)

---

Use simple language, clear headers, bullet points, and markdown tables. Be friendly and \
explain concepts clearly. Focus on actionable insights and practical investment advice.
"""

SCREEN_SYSTEM_PROMPT = """\
You are a senior investment analyst covering Indian equities. You receive the \
user's screening request and the stocks that passed a keyword-driven screen of \
the latest market snapshot, and you explain the picks.
"""

SCREEN_USER_PROMPT_TEMPLATE = """\
The user has asked: "{query}"

I have analyzed the Indian stock market and applied filtering based on your criteria. \
Here are the top stocks that match your requirements:

{stocks}

Please provide a comprehensive analysis with:

1. **Query Interpretation** - What the user is looking for and why it's important
2. **Screening Criteria Used** - Explain the specific filters applied and their significance
3. **Top Recommendations** - 5-10 best stocks with detailed reasons for selection
4. **Risk Assessment** - Potential risks and considerations for this type of investment
5. **Investment Strategy** - How to approach these stocks (timing, allocation, etc.)
6. **Portfolio Allocation** - Suggested allocation for ₹100,000 investment
7. **Monitoring Triggers** - What to watch for (earnings, news, technical indicators)
8. **Additional Insights** - Any other relevant analysis or recommendations

Use simple language, clear headers, bullet points, and markdown tables. Be friendly and \
explain concepts clearly. Focus on actionable insights and practical investment advice.
"""

SENTIMENT_SYSTEM_PROMPT_TEMPLATE = """\
You are a financial analyst. Analyze the sentiment (positive, negative, neutral) for the \
stock {symbol} based on the following news and social headlines. Summarize the overall \
sentiment and mention any notable trends or risks. If PDF research is mentioned, \
acknowledge it as a future enhancement.
"""


def _dump(data) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def build_stock_prompt(stock_data: dict, history: list | None = None) -> str:
    history_block = f"Historical Data:\n{_dump(history)}\n" if history else ""
    return STOCK_USER_PROMPT_TEMPLATE.format(stock_data=_dump(stock_data), history_block=history_block)


def build_screen_prompt(query: str, stocks: list[dict]) -> str:
    return SCREEN_USER_PROMPT_TEMPLATE.format(query=query, stocks=_dump(stocks))


def build_sentiment_prompts(symbol: str, news: list[str], pdf_text: str | None = None) -> tuple[str, str]:
    lines = [f"Recent news and social headlines for {symbol}:"]
    lines += [f"{i}. {headline}" for i, headline in enumerate(news, start=1)]
    user_prompt = "\n".join(lines)
    if pdf_text:
        user_prompt += "\n\n(Placeholder) Broker research PDF text is available but not yet processed."
    return SENTIMENT_SYSTEM_PROMPT_TEMPLATE.format(symbol=symbol), user_prompt


class NarrativeGenerator(ABC):
    """Text in, text out. Implementations raise NarrativeError on provider failure."""

    @abstractmethod
    def generate(self, system: str, user: str, max_tokens: int, temperature: float) -> str: ...

    def is_configured(self) -> bool:
        return True


class AnthropicNarrativeGenerator(NarrativeGenerator):
    def __init__(
        self,
        api_key: str | None,
        model: str,
        timeout: float = 120.0,
        http_client: httpx.Client | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.http_client = http_client
        self._client = None

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> "AnthropicNarrativeGenerator":
        cfg = cfg or default_settings
        return cls(cfg.anthropic_api_key, cfg.llm_model, timeout=cfg.llm_timeout_seconds)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> anthropic.Anthropic:
        if not self.api_key:
            raise ConfigurationError("LLM API key not set")
        if self._client is None:
            # failures surface to the caller as-is; no SDK retries
            self._client = anthropic.Anthropic(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
                http_client=self.http_client,
            )
        return self._client

    def generate(self, system: str, user: str, max_tokens: int, temperature: float) -> str:
        client = self._get_client()
        try:
            message = client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
        except anthropic.AuthenticationError as e:
            log.error("narrative_auth_error", error=str(e))
            raise NarrativeError("LLM API error", str(e)) from e
        except anthropic.APIError as e:
            log.error("narrative_failed", model=self.model, error=str(e))
            raise NarrativeError("LLM API error", str(e)) from e
        text = "".join(block.text for block in message.content if getattr(block, "type", None) == "text")
        if not text:
            log.warning("narrative_empty", model=self.model, stop_reason=message.stop_reason)
            return NO_NARRATIVE
        log.info(
            "narrative_generated",
            model=self.model,
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
        )
        return text
