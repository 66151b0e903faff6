from __future__ import annotations

import random
import time
from typing import Any, Optional

from quote_scraper.schemas.quote import MarketStatus, Quote
from quote_scraper.services.symbols import normalize_symbol

MOCK_SOURCE = "mock"
DEFAULT_MOCK_SYMBOL = "AAPL:NASDAQ"
MIN_MOCK_PRICE = 0.01

# "volatility" is the largest fractional move applied when price movement is on
MOCK_QUOTES: dict[str, dict[str, Any]] = {
    "AAPL:NASDAQ": {
        "name": "Apple Inc.",
        "price": 189.25,
        "currency": "USD",
        "change": -1.75,
        "change_percent": -0.92,
        "previous_close": 191.00,
        "volume": 45_678_900,
        "market_cap": "$2.95T",
        "day_high": 192.10,
        "day_low": 188.80,
        "pe_ratio": 28.5,
        "volatility": 0.025,
    },
    "MSFT:NASDAQ": {
        "name": "Microsoft Corporation",
        "price": 378.85,
        "currency": "USD",
        "market_cap": "$2.82T",
        "volatility": 0.022,
    },
    "GOOGL:NASDAQ": {
        "name": "Alphabet Inc. Class A",
        "price": 138.75,
        "currency": "USD",
        "market_cap": "$1.71T",
        "volatility": 0.028,
    },
    "AMZN:NASDAQ": {
        "name": "Amazon.com Inc.",
        "price": 151.94,
        "currency": "USD",
        "market_cap": "$1.57T",
        "volatility": 0.030,
    },
    "TSLA:NASDAQ": {
        "name": "Tesla Inc.",
        "price": 248.50,
        "currency": "USD",
        "market_cap": "$789B",
        "volatility": 0.045,
    },
    "NVDA:NASDAQ": {
        "name": "NVIDIA Corporation",
        "price": 875.28,
        "currency": "USD",
        "market_cap": "$2.16T",
        "volatility": 0.040,
    },
    "CSPX:LON": {
        "name": "iShares Core S&P 500 UCITS ETF",
        "price": 645.20,
        "currency": "GBP",
        "change": 2.15,
        "change_percent": 0.33,
        "previous_close": 643.05,
        "volume": 1_234_567,
        "market_cap": "£45.2B",
        "day_high": 647.80,
        "day_low": 642.10,
        "volatility": 0.015,
    },
    "VUSA:LON": {
        "name": "Vanguard S&P 500 UCITS ETF",
        "price": 97.42,
        "currency": "GBP",
        "change": 0.18,
        "change_percent": 0.18,
        "previous_close": 97.24,
        "volume": 987_654,
        "market_cap": "£12.8B",
        "day_high": 97.55,
        "day_low": 97.20,
        "volatility": 0.015,
    },
    "VWRL:LON": {
        "name": "Vanguard FTSE All-World UCITS ETF",
        "price": 108.86,
        "currency": "GBP",
        "market_cap": "£8.9B",
        "volatility": 0.018,
    },
    "EUNL:LON": {
        "name": "iShares Core MSCI World UCITS ETF",
        "price": 82.15,
        "currency": "GBP",
        "market_cap": "£35.4B",
        "volatility": 0.016,
    },
    "ASML:AMS": {
        "name": "ASML Holding N.V.",
        "price": 712.30,
        "currency": "EUR",
        "market_cap": "€290B",
        "volatility": 0.035,
    },
    "SAP:ETR": {
        "name": "SAP SE",
        "price": 158.44,
        "currency": "EUR",
        "market_cap": "€189B",
        "volatility": 0.025,
    },
    "TSM:NYSE": {
        "name": "Taiwan Semiconductor Manufacturing",
        "price": 102.45,
        "currency": "USD",
        "market_cap": "$531B",
        "volatility": 0.030,
    },
    "7203:TYO": {
        "name": "Toyota Motor Corporation",
        "price": 2847.0,
        "currency": "JPY",
        "market_cap": "¥36.2T",
        "volatility": 0.020,
    },
}


def available_mock_symbols() -> list[str]:
    return list(MOCK_QUOTES)


def _move_price(data: dict[str, Any], volatility: float, rng: Any) -> dict[str, Any]:
    previous_close = data.get("previous_close", data["price"])
    price = round(max(MIN_MOCK_PRICE, data["price"] * (1 + rng.uniform(-1, 1) * volatility)), 2)
    change = round(price - previous_close, 2)

    moved = dict(data)
    moved.update(
        price=price,
        change=change,
        change_percent=round(change / previous_close * 100, 2),
        previous_close=previous_close,
    )
    if "day_high" in moved:
        moved["day_high"] = max(moved["day_high"], price)
    if "day_low" in moved:
        moved["day_low"] = min(moved["day_low"], price)
    return moved


def get_mock_quote(
    symbol: str,
    *,
    price_movement: bool = False,
    rng: Optional[random.Random] = None,
) -> Quote:
    """Build a sample quote; unknown symbols reuse the AAPL data.

    With ``price_movement`` the base price is shifted by up to the symbol's
    volatility in either direction and change fields are recomputed against
    the previous close.
    """
    normalized = normalize_symbol(symbol)
    data = dict(MOCK_QUOTES.get(normalized, MOCK_QUOTES[DEFAULT_MOCK_SYMBOL]))
    volatility = data.pop("volatility")
    if price_movement:
        data = _move_price(data, volatility, rng or random)

    return Quote(
        symbol=normalized,
        market_status=MarketStatus.CLOSED,
        source=MOCK_SOURCE,
        timestamp=int(time.time()),
        **data,
    )
