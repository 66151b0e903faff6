import unittest

from quote_scraper.errors import InvalidSymbolFormatError
from quote_scraper.services.symbols import (
    format_symbol_for_google,
    is_valid_symbol,
    normalize_symbol,
    parse_google_symbol,
)


class TestSymbolFormat(unittest.TestCase):
    def test_well_formed_symbols_are_accepted(self):
        for symbol in ("AAPL:NASDAQ", "cspx:lon", "BRK.B:NYSE", "RDS-A:NYSE", "7203:TYO", " vusa:LON "):
            with self.subTest(symbol=symbol):
                self.assertTrue(is_valid_symbol(symbol))

    def test_malformed_symbols_are_rejected(self):
        for symbol in ("", "AAPL", "AAPL:", ":NASDAQ", "AAPL:NAS:DAQ", "AAPL:NASDAQ1", "AA PL:NASDAQ", "AAPL/NASDAQ"):
            with self.subTest(symbol=symbol):
                self.assertFalse(is_valid_symbol(symbol))

    def test_non_ascii_letters_are_rejected(self):
        # look like ASCII letters but are outside the symbol alphabet
        for symbol in ("\u0131bm:nyse", "\u0130BM:NYSE", "\u017fpy:nyse", "\u212aO:NYSE", "IBM:NY\u017fE"):
            with self.subTest(symbol=symbol):
                self.assertFalse(is_valid_symbol(symbol))
                with self.assertRaises(InvalidSymbolFormatError):
                    normalize_symbol(symbol)

    def test_non_string_is_rejected(self):
        self.assertFalse(is_valid_symbol(None))

    def test_normalize_uppercases_and_trims(self):
        self.assertEqual(normalize_symbol("  cspx:lon "), "CSPX:LON")

    def test_normalize_raises_for_invalid_symbol(self):
        with self.assertRaises(InvalidSymbolFormatError) as ctx:
            normalize_symbol("AAPL")
        self.assertIn("SYMBOL:EXCHANGE", str(ctx.exception))
        self.assertIsInstance(ctx.exception, ValueError)

    def test_format_and_parse_round_trip(self):
        google_symbol = format_symbol_for_google("aapl", "nasdaq")
        self.assertEqual(google_symbol, "AAPL:NASDAQ")

        parsed = parse_google_symbol(google_symbol)
        self.assertEqual(parsed, {"symbol": "AAPL", "exchange": "NASDAQ"})

    def test_parse_google_symbol_rejects_wrong_colon_count(self):
        for value in ("AAPL", "A:B:C", ":NASDAQ", "AAPL: "):
            with self.subTest(value=value):
                with self.assertRaises(InvalidSymbolFormatError):
                    parse_google_symbol(value)


if __name__ == "__main__":
    unittest.main()
