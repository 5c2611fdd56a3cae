# Screener dataset field names (as scraped; note the en dash in the RSI key).
FIELD_NAME = "Name"
FIELD_SUB_SECTOR = "Sub-Sector"
FIELD_MARKET_CAP = "↓Market Cap"
FIELD_CLOSE_PRICE = "Close Price"
FIELD_PE_RATIO = "PE Ratio"
FIELD_ROE = "Return on Equity"
FIELD_ROCE = "ROCE"
FIELD_EPS = "Earnings Per Share"
FIELD_NET_MARGIN = "Net Profit Margin"
FIELD_DEBT_EQUITY = "Debt to Equity"
FIELD_FREE_CASH_FLOW = "Free Cash Flow"
FIELD_DIVIDEND_YIELD = "Dividend Yield"
FIELD_EPS_GROWTH_1Y = "1Y Historical EPS Growth"
FIELD_REVENUE_GROWTH_1Y = "1Y Historical Revenue Growth"
FIELD_RSI_14D = "RSI – 14D"
FIELD_PROMOTER_HOLDING = "Promoter Holding"
FIELD_FII_HOLDING = "Foreign Institutional Holding"
FIELD_DII_HOLDING = "Domestic Institutional Holding"
FIELD_BUY_RECOS = "Percentage Buy Reco's"

SNAPSHOT_SUFFIX = ".json"

# Market cap thresholds, in crores (same unit as FIELD_MARKET_CAP).
LARGE_CAP_MIN = 20000
MID_CAP_MIN = 5000

RISK_FREE_RATE = 0.02

DEFAULT_KNOWN_SYMBOLS = (
    "INFOSYS", "TCS", "HDFC", "RELIANCE", "TATAMOTORS", "TATASTEEL", "WIPRO", "HCLTECH", "TECHM", "MINDTREE",
    "LTI", "MPHASIS", "PERSISTENT", "COFORGE", "L&T", "BHARTIARTL", "ITC", "AXISBANK", "ICICIBANK", "KOTAKBANK",
    "SBIN", "HINDUNILVR", "MARUTI", "BAJFINANCE", "BAJAJFINSV", "ASIANPAINT", "ULTRACEMCO", "NESTLEIND", "SUNPHARMA",
    "DRREDDY", "CIPLA", "DIVISLAB", "TATACONSUM", "BRITANNIA", "HINDALCO", "VEDL", "JSWSTEEL", "ADANIENT", "ADANIPORTS",
)

SYMBOL_PATTERNS = (
    r"^[A-Z]{2,10}$",
    r"^[A-Z]{2,10}\s*\([A-Z]+\)$",
    r"(?i)^[A-Z]{2,10}\s+stock$",
    r"(?i)^[A-Z]{2,10}\s+share$",
)

SECTOR_MAPPING = {
    "INFOSYS": "Technology",
    "TCS": "Technology",
    "HDFC": "Financial",
    "RELIANCE": "Energy",
    "TATAMOTORS": "Automotive",
    "TATASTEEL": "Materials",
    "WIPRO": "Technology",
    "HCLTECH": "Technology",
    "TECHM": "Technology",
    "MINDTREE": "Technology",
    "LTI": "Technology",
    "MPHASIS": "Technology",
    "PERSISTENT": "Technology",
    "COFORGE": "Technology",
    "L&T": "Industrial",
    "BHARTIARTL": "Telecommunications",
    "ITC": "Consumer Goods",
    "AXISBANK": "Financial",
    "ICICIBANK": "Financial",
    "KOTAKBANK": "Financial",
    "SBIN": "Financial",
    "HINDUNILVR": "Consumer Goods",
    "MARUTI": "Automotive",
    "BAJFINANCE": "Financial",
    "BAJAJFINSV": "Financial",
    "ASIANPAINT": "Materials",
    "ULTRACEMCO": "Materials",
    "NESTLEIND": "Consumer Goods",
    "SUNPHARMA": "Healthcare",
    "DRREDDY": "Healthcare",
    "CIPLA": "Healthcare",
    "DIVISLAB": "Healthcare",
    "TATACONSUM": "Consumer Goods",
    "BRITANNIA": "Consumer Goods",
    "HINDALCO": "Materials",
    "VEDL": "Materials",
    "JSWSTEEL": "Materials",
    "ADANIENT": "Conglomerate",
    "ADANIPORTS": "Infrastructure",
}
