import unittest

from stockinsights.pipeline.portfolio import analyze_portfolio


def position(symbol, shares, avg_price, total_value, gain_pct):
    return {
        "symbol": symbol,
        "shares": shares,
        "avgPrice": avg_price,
        "currentPrice": total_value / shares,
        "totalValue": total_value,
        "gainLoss": total_value - shares * avg_price,
        "gainLossPercent": gain_pct,
    }


class AnalyzePortfolioTests(unittest.TestCase):
    def setUp(self):
        self.items = [
            position("INFOSYS", 10, 100, 1200, 20),
            position("TCS", 5, 200, 900, -10),
            position("HDFC", 2, 500, 1100, 10),
            position("XYZ", 1, 100, 80, -20),
        ]

    def test_totals(self):
        result = analyze_portfolio(self.items)
        self.assertEqual(result["totalValue"], 3280)
        self.assertEqual(result["totalCost"], 3100)
        self.assertEqual(result["totalGainLoss"], 180)
        self.assertAlmostEqual(result["totalGainLossPercent"], 180 / 3100 * 100)

    def test_performers(self):
        result = analyze_portfolio(self.items)
        self.assertEqual([p["symbol"] for p in result["topPerformers"]], ["INFOSYS", "HDFC", "TCS"])
        self.assertEqual([p["symbol"] for p in result["worstPerformers"]], ["XYZ", "TCS", "HDFC"])
        self.assertIs(result["topPerformers"][0], self.items[0])

    def test_sector_breakdown(self):
        result = analyze_portfolio(self.items)
        self.assertEqual(result["sectorBreakdown"], {"Technology": 2100, "Financial": 1100, "Other": 80})

    def test_custom_sector_map(self):
        result = analyze_portfolio(self.items, sector_map={"XYZ": "Chemicals"})
        self.assertEqual(result["sectorBreakdown"], {"Other": 3200, "Chemicals": 80})

    def test_risk_metrics(self):
        risk = analyze_portfolio(self.items)["riskMetrics"]
        self.assertAlmostEqual(risk["volatility"], 0.025 ** 0.5)
        self.assertEqual(risk["beta"], 1.0)
        self.assertAlmostEqual(risk["sharpeRatio"], -0.02 / 0.025 ** 0.5)

    def test_recommendations(self):
        self.assertEqual(
            analyze_portfolio(self.items)["recommendations"],
            [
                "Consider diversifying - INFOSYS represents over 30% of your portfolio",
                "Your portfolio is heavily concentrated in one sector. Consider diversifying across sectors.",
                "Consider reviewing XYZ - down 20.0%",
                "Consider adding more stocks to diversify your portfolio",
            ],
        )

    def test_balanced_portfolio(self):
        items = [
            position(symbol, 10, 100, 1000, 0)
            for symbol in ("INFOSYS", "HDFC", "RELIANCE", "MARUTI", "SUNPHARMA")
        ]
        result = analyze_portfolio(items)
        self.assertEqual(result["riskMetrics"]["sharpeRatio"], 0.0)
        self.assertEqual(
            result["recommendations"],
            ["Your portfolio looks well-balanced! Keep monitoring your positions."],
        )

    def test_empty_portfolio(self):
        result = analyze_portfolio([])
        self.assertEqual(result["totalValue"], 0)
        self.assertEqual(result["totalGainLossPercent"], 0)
        self.assertEqual(result["topPerformers"], [])
        self.assertEqual(result["worstPerformers"], [])
        self.assertEqual(result["sectorBreakdown"], {})
        self.assertEqual(result["riskMetrics"], {"volatility": 0.0, "beta": 1.0, "sharpeRatio": 0.0})
        self.assertEqual(result["recommendations"], ["Consider adding more stocks to diversify your portfolio"])


if __name__ == "__main__":
    unittest.main()
