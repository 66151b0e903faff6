from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from quote_scraper.config.settings import Settings, get_settings
from quote_scraper.errors import FetchError, ParseError, QuoteError
from quote_scraper.integrations.google_finance_http import DIRECT_SOURCE, GoogleFinanceHttpClient
from quote_scraper.integrations.google_finance_parser import parse_quote
from quote_scraper.schemas.quote import Quote
from quote_scraper.services import mock_quotes
from quote_scraper.services.symbols import normalize_symbol

HEALTH_CHECK_SYMBOL = "AAPL:NASDAQ"
HEALTH_CHECK_HTML = (
    "<html><head><title>Health Check Corp (HCC) Stock Price &amp; News - Google Finance"
    '</title></head><body><div data-last-price="100.50" data-last-change="0.50">'
    "100.50</div></body></html>"
)


class GoogleFinanceQuoteService:
    """Symbol validation, fetch and parse for one quote per call, with optional mock data."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        fetcher: Optional[GoogleFinanceHttpClient] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.fetcher = fetcher or GoogleFinanceHttpClient(settings=self.settings)

        self.requests = 0
        self.live_success = 0
        self.failures = 0
        self.proxy_fallbacks = 0
        self.mock_served = 0

    def replace_settings(self, settings: Settings) -> None:
        self.settings = settings

    @staticmethod
    def quote_url(symbol: str, settings: Settings) -> str:
        return f"{settings.base_url.rstrip('/')}/{quote(symbol, safe='')}"

    def get_quote(self, symbol: str) -> Quote:
        snapshot = self.settings
        normalized = normalize_symbol(symbol)
        self.requests += 1

        if snapshot.use_mock_data:
            return self._serve_mock(normalized, snapshot)

        try:
            quote_row = self._fetch_live(normalized, snapshot)
        except QuoteError as exc:
            self.failures += 1
            print(
                f"[QUOTE][live_failed] symbol={normalized} "
                f"kind={type(exc).__name__} error={exc}",
                flush=True,
            )
            if snapshot.enable_mock_fallback:
                print(f"[QUOTE][mock_fallback] symbol={normalized}", flush=True)
                return self._serve_mock(normalized, snapshot)
            raise

        self.live_success += 1
        return quote_row

    def _fetch_live(self, symbol: str, settings: Settings) -> Quote:
        url = self.quote_url(symbol, settings)
        result = self.fetcher.fetch_content(url, settings=settings)
        primary = settings.proxy_url if settings.use_proxy else DIRECT_SOURCE
        if result.source != primary:
            self.proxy_fallbacks += 1

        quote_row = parse_quote(result.content, symbol)
        print(
            "[QUOTE][resolved] "
            f"symbol={symbol} price={quote_row.price} currency={quote_row.currency} "
            f"source={result.source} chars={len(result.content)}",
            flush=True,
        )
        return quote_row

    def _serve_mock(self, symbol: str, settings: Settings) -> Quote:
        self.mock_served += 1
        return mock_quotes.get_mock_quote(symbol, price_movement=settings.mock_price_movement)

    def get_mock_quote(self, symbol: str) -> Quote:
        return mock_quotes.get_mock_quote(
            symbol, price_movement=self.settings.mock_price_movement
        )

    def available_mock_symbols(self) -> list[str]:
        return mock_quotes.available_mock_symbols()

    def health_check(self) -> dict[str, bool]:
        snapshot = self.settings
        results = {"network": False, "parser": False, "mock_data": False, "overall": False}

        try:
            self.fetcher.fetch(self.quote_url(HEALTH_CHECK_SYMBOL, snapshot), settings=snapshot)
            results["network"] = True
        except FetchError as exc:
            print(f"[QUOTE][health_network_failed] error={exc}", flush=True)

        try:
            parse_quote(HEALTH_CHECK_HTML, HEALTH_CHECK_SYMBOL)
            results["parser"] = True
        except ParseError as exc:
            print(f"[QUOTE][health_parser_failed] error={exc}", flush=True)

        try:
            mock_quotes.get_mock_quote(HEALTH_CHECK_SYMBOL)
            results["mock_data"] = True
        except QuoteError as exc:
            print(f"[QUOTE][health_mock_failed] error={exc}", flush=True)

        results["overall"] = results["network"] and results["parser"] and results["mock_data"]
        print(
            "[QUOTE][health_check] "
            + " ".join(f"{key}={int(value)}" for key, value in results.items()),
            flush=True,
        )
        return results

    def metrics(self) -> dict[str, int]:
        return {
            "requests": self.requests,
            "live_success": self.live_success,
            "failures": self.failures,
            "proxy_fallbacks": self.proxy_fallbacks,
            "mock_served": self.mock_served,
        }
