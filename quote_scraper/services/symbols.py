from __future__ import annotations

import re

from quote_scraper.errors import InvalidSymbolFormatError

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9.\-]+:[A-Z]+$", re.IGNORECASE | re.ASCII)


def is_valid_symbol(symbol: str) -> bool:
    """Return whether ``symbol`` looks like ``SYMBOL:EXCHANGE``."""
    if not isinstance(symbol, str):
        return False
    return SYMBOL_PATTERN.fullmatch(symbol.strip()) is not None


def normalize_symbol(symbol: str) -> str:
    if not is_valid_symbol(symbol):
        raise InvalidSymbolFormatError(str(symbol))
    return symbol.strip().upper()


def format_symbol_for_google(symbol: str, exchange: str) -> str:
    return f"{symbol.strip().upper()}:{exchange.strip().upper()}"


def parse_google_symbol(google_symbol: str) -> dict[str, str]:
    parts = google_symbol.split(":")
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise InvalidSymbolFormatError(google_symbol)

    return {
        "symbol": parts[0].strip().upper(),
        "exchange": parts[1].strip().upper(),
    }
