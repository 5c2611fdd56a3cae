import unittest

from stockinsights.pipeline.metrics import numeric_metric, parse_currency, parse_number, text_metric


class ParseNumberTests(unittest.TestCase):
    def test_percent_suffix(self):
        self.assertEqual(parse_number("15.2%"), 15.2)

    def test_leading_number_only(self):
        self.assertEqual(parse_number("1,234"), 1.0)
        self.assertEqual(parse_number("  -3.5 x"), -3.5)
        self.assertEqual(parse_number(".5"), 0.5)
        self.assertEqual(parse_number("1e3"), 1000.0)

    def test_native_numbers(self):
        self.assertEqual(parse_number(12), 12.0)
        self.assertEqual(parse_number(0.25), 0.25)

    def test_unparsable(self):
        for value in (None, "", "abc", "-", True, False, [], {}, float("nan")):
            self.assertIsNone(parse_number(value), value)


class MetricAccessorTests(unittest.TestCase):
    def test_fallback_on_missing_and_garbage(self):
        record = {"PE Ratio": "n/a", "ROE": ""}
        self.assertEqual(numeric_metric(record, "PE Ratio", 999), 999)
        self.assertEqual(numeric_metric(record, "ROE"), 0.0)
        self.assertEqual(numeric_metric(record, "Missing", 50), 50)

    def test_zero_is_not_missing(self):
        self.assertEqual(numeric_metric({"Debt to Equity": "0"}, "Debt to Equity", 999), 0.0)
        self.assertEqual(numeric_metric({"Debt to Equity": 0}, "Debt to Equity", 999), 0.0)

    def test_text_metric_lowercases_strings_only(self):
        self.assertEqual(text_metric({"Sub-Sector": "IT Services"}, "Sub-Sector"), "it services")
        self.assertEqual(text_metric({"Sub-Sector": None}, "Sub-Sector"), "")
        self.assertEqual(text_metric({}, "Sub-Sector"), "")


class ParseCurrencyTests(unittest.TestCase):
    def test_strips_grouping_and_units(self):
        self.assertEqual(parse_currency("25,000 Cr"), 25000.0)
        self.assertEqual(parse_currency("₹ 1,23,456.75"), 123456.75)

    def test_sentinel_zero(self):
        self.assertEqual(parse_currency(""), 0.0)
        self.assertEqual(parse_currency(None), 0.0)
        self.assertEqual(parse_currency("Cr"), 0.0)

    def test_numeric_passthrough(self):
        self.assertEqual(parse_currency(7500), 7500.0)


if __name__ == "__main__":
    unittest.main()
