from typing import Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

Scalar = Union[str, float, None]

class InsightsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    symbol: Optional[str] = None
    user_input: Optional[str] = Field(default=None, alias="userInput")
    stock_data: Optional[dict[str, Any]] = Field(default=None, alias="stockData")
    history: Optional[list[Any]] = None
    price: Scalar = None
    eps: Scalar = None
    roe: Scalar = None
    roce: Scalar = None
    net_margin: Scalar = Field(default=None, alias="netMargin")
    debt_equity: Scalar = Field(default=None, alias="debtEquity")
    promoter_holding: Scalar = Field(default=None, alias="promoterHolding")
    rsi: Scalar = None
    analyst_ratings: Scalar = Field(default=None, alias="analystRatings")

    def overrides(self) -> dict[str, Any]:
        return self.model_dump(
            by_alias=True,
            include={
                "price", "eps", "roe", "roce", "net_margin", "debt_equity",
                "promoter_holding", "rsi", "analyst_ratings",
            },
        )

class InsightResponse(BaseModel):
    insight: str

class PortfolioItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    symbol: str
    name: str = ""
    shares: float = 0.0
    avg_price: float = Field(default=0.0, alias="avgPrice")
    current_price: float = Field(default=0.0, alias="currentPrice")
    total_value: float = Field(default=0.0, alias="totalValue")
    gain_loss: float = Field(default=0.0, alias="gainLoss")
    gain_loss_percent: float = Field(default=0.0, alias="gainLossPercent")

class PortfolioRequest(BaseModel):
    portfolio: Optional[list[PortfolioItem]] = None

class SentimentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    symbol: Optional[str] = None
    news_data: Optional[list[str]] = Field(default=None, alias="newsData")
    pdf_text: Optional[str] = Field(default=None, alias="pdfText")

class SentimentResponse(BaseModel):
    sentiment: str

class ScreenRequest(BaseModel):
    query: str
    limit: Optional[int] = Field(default=None, ge=1, le=100)
