"""Portfolio analytics over client-held positions.

Positions arrive in wire form (camelCase keys) and performer lists echo them
back unchanged.
"""
from __future__ import annotations

import pandas as pd
import structlog

from ..constants import RISK_FREE_RATE, SECTOR_MAPPING

log = structlog.get_logger()


def _risk_metrics(returns: pd.Series) -> dict:
    if returns.empty:
        return {"volatility": 0.0, "beta": 1.0, "sharpeRatio": 0.0}
    avg = float(returns.mean())
    volatility = float(returns.std(ddof=0))
    sharpe = (avg - RISK_FREE_RATE) / volatility if volatility > 0 else 0.0
    return {"volatility": volatility, "beta": 1.0, "sharpeRatio": sharpe}


def _recommendations(items: list[dict], analytics: dict) -> list[str]:
    recs = []
    total_value = analytics["totalValue"]
    if items and total_value > 0:
        top = items[0]
        for item in items[1:]:
            if item["totalValue"] > top["totalValue"]:
                top = item
        if top["totalValue"] / total_value > 0.3:
            recs.append(f"Consider diversifying - {top['symbol']} represents over 30% of your portfolio")

    sectors = analytics["sectorBreakdown"]
    if sectors and total_value > 0 and max(sectors.values()) / total_value > 0.4:
        recs.append("Your portfolio is heavily concentrated in one sector. Consider diversifying across sectors.")

    worst = analytics["worstPerformers"]
    if worst and worst[0]["gainLossPercent"] < -10:
        recs.append(
            f"Consider reviewing {worst[0]['symbol']} - down {abs(worst[0]['gainLossPercent']):.1f}%"
        )

    if len(items) < 5:
        recs.append("Consider adding more stocks to diversify your portfolio")

    if analytics["riskMetrics"]["volatility"] > 0.2:
        recs.append("Your portfolio shows high volatility. Consider adding defensive stocks or bonds.")

    if not recs:
        recs.append("Your portfolio looks well-balanced! Keep monitoring your positions.")
    return recs


def analyze_portfolio(items: list[dict], sector_map: dict[str, str] | None = None) -> dict:
    sector_map = SECTOR_MAPPING if sector_map is None else sector_map
    columns = ["symbol", "shares", "avgPrice", "totalValue", "gainLossPercent"]
    df = pd.DataFrame(
        [{c: item.get(c) for c in columns} for item in items],
        columns=columns,
    )
    for col in ["shares", "avgPrice", "totalValue", "gainLossPercent"]:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0)

    total_value = float(df["totalValue"].sum())
    total_cost = float((df["shares"] * df["avgPrice"]).sum())
    total_gain = total_value - total_cost
    total_gain_pct = (total_gain / total_cost) * 100 if total_cost > 0 else 0.0

    order = df.sort_values("gainLossPercent", ascending=False, kind="stable").index.tolist()
    ranked = [items[i] for i in order]

    df["sector"] = df["symbol"].map(lambda s: sector_map.get(s, "Other"))
    by_sector = df.groupby("sector", sort=False)["totalValue"].sum()

    analytics = {
        "totalValue": total_value,
        "totalCost": total_cost,
        "totalGainLoss": total_gain,
        "totalGainLossPercent": total_gain_pct,
        "topPerformers": ranked[:3],
        "worstPerformers": list(reversed(ranked[-3:])),
        "sectorBreakdown": {str(k): float(v) for k, v in by_sector.items()},
        "riskMetrics": _risk_metrics(df["gainLossPercent"] / 100),
        "recommendations": [],
    }
    analytics["recommendations"] = _recommendations(items, analytics)
    log.info(
        "portfolio_analyzed",
        positions=len(items),
        total_value=round(total_value, 2),
        sectors=len(analytics["sectorBreakdown"]),
    )
    return analytics
