from __future__ import annotations

import math
import re
import time
from html import unescape
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from quote_scraper.errors import ExtractionError, ParseError, QuoteValidationError
from quote_scraper.schemas.quote import MarketStatus, Quote

Rule = tuple[re.Pattern, Callable[[re.Match], Any]]

CURRENCY_SYMBOLS = {
    "$": "USD",
    "£": "GBP",
    "€": "EUR",
    "¥": "JPY",
    "₹": "INR",
}
DEFAULT_CURRENCY = "USD"

VOLUME_MULTIPLIERS = {
    "": 1,
    "K": 1_000,
    "M": 1_000_000,
    "B": 1_000_000_000,
}

_NAME_SUFFIXES = (
    re.compile(r"\s*-\s*\w+\s+Finance$", re.IGNORECASE),
    re.compile(r"\s*Stock Price.*$", re.IGNORECASE),
    re.compile(r"\s*Share Price.*$", re.IGNORECASE),
)
_VOLUME_RE = re.compile(r"([\d.]+)([KMB]?)")
_KNOWN_STATUSES = {s.value for s in MarketStatus if s is not MarketStatus.UNKNOWN}


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    cleaned = str(value).replace(",", "").replace("%", "").replace(" ", "").strip()
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _first(html: str, rules: list[Rule]) -> Any:
    """Run rules in order and return the first non-None extraction."""
    for pattern, extract in rules:
        match = pattern.search(html)
        if match is None:
            continue
        value = extract(match)
        if value is not None:
            return value
    return None


def map_currency_symbol(symbol: str | None) -> str:
    if not symbol:
        return DEFAULT_CURRENCY
    return CURRENCY_SYMBOLS.get(symbol.strip(), DEFAULT_CURRENCY)


def parse_volume_string(volume: str) -> Optional[int]:
    """Expand a human readable volume such as ``1.2M`` into a raw count."""
    cleaned = volume.replace(",", "").strip().upper()
    match = _VOLUME_RE.fullmatch(cleaned)
    if match is None:
        return None
    number = _to_float(match.group(1))
    if number is None:
        return None
    return int(round(number * VOLUME_MULTIPLIERS[match.group(2)]))


def _name(match: re.Match) -> Optional[str]:
    name = unescape(match.group(1)).strip()
    for suffix in _NAME_SUFFIXES:
        name = suffix.sub("", name).strip()
    return name if len(name) > 2 else None


def _positive(value: Optional[float]) -> Optional[float]:
    if value is None or value <= 0:
        return None
    return value


def _price_only(match: re.Match) -> Optional[tuple[float, str]]:
    price = _positive(_to_float(match.group(1)))
    if price is None:
        return None
    return price, DEFAULT_CURRENCY


def _price_with_currency(match: re.Match) -> Optional[tuple[float, str]]:
    price = _positive(_to_float(match.group(2)))
    if price is None:
        return None
    return price, map_currency_symbol(match.group(1))


def _number(match: re.Match) -> Optional[float]:
    return _to_float(match.group(1))


def _range(match: re.Match) -> Optional[tuple[float, float]]:
    low = _to_float(match.group(1))
    high = _to_float(match.group(2))
    if low is None or high is None:
        return None
    return low, high


def _volume(match: re.Match) -> Optional[int]:
    return parse_volume_string(match.group(1))


def _text(match: re.Match) -> Optional[str]:
    return match.group(1).strip() or None


def _status(match: re.Match) -> Optional[MarketStatus]:
    status = re.sub(r"[\s\-]+", "_", match.group(1).strip().upper())
    if status in _KNOWN_STATUSES:
        return MarketStatus(status)
    return None


NAME_RULES: list[Rule] = [
    (re.compile(r'<meta\s+property="og:title"\s+content="([^"]+)"', re.IGNORECASE), _name),
    (re.compile(r"<title[^>]*>([^<]+)", re.IGNORECASE), _name),
    (re.compile(r"<h1[^>]*>([^<]+)<", re.IGNORECASE), _name),
    (re.compile(r'class="[^"]*company[^"]*"[^>]*>([^<]+)', re.IGNORECASE), _name),
]

PRICE_RULES: list[Rule] = [
    (re.compile(r'data-last-price="([^"]+)"', re.IGNORECASE), _price_only),
    (
        re.compile(r'class="[^"]*price[^"]*"[^>]*>\s*([A-Z$£€¥₹]+)?\s*([\d,]+\.?\d*)', re.IGNORECASE),
        _price_with_currency,
    ),
    (re.compile(r'"price"[^}]*"raw":\s*([\d.]+)', re.IGNORECASE), _price_only),
    (
        re.compile(r">\s*([A-Z$£€¥₹]+)?\s*([\d,]+\.?\d*)\s*</[^>]*price", re.IGNORECASE),
        _price_with_currency,
    ),
]

CHANGE_RULES: list[Rule] = [
    (re.compile(r'data-last-change="([^"]+)"', re.IGNORECASE), _number),
    (re.compile(r'"change"[^}]*"raw":\s*([-\d.]+)', re.IGNORECASE), _number),
    (re.compile(r'class="[^"]*change[^"]*"[^>]*>\s*([-+]?[\d,]+\.?\d*)', re.IGNORECASE), _number),
]

CHANGE_PERCENT_RULES: list[Rule] = [
    (re.compile(r'data-last-change-percentage="([^"]+)"', re.IGNORECASE), _number),
    (re.compile(r'"changePercent"[^}]*"raw":\s*([-\d.]+)', re.IGNORECASE), _number),
    (re.compile(r"\(([-+]?[\d.]+)%\)"), _number),
]

PREVIOUS_CLOSE_RULES: list[Rule] = [
    (re.compile(r"previous\s*close[^>]*>\s*[^\d<]*([\d,]+\.?\d*)", re.IGNORECASE), _number),
]

DAY_RANGE_RULES: list[Rule] = [
    (
        re.compile(r"day\s*range[^>]*>\s*[^\d<]*([\d,]+\.?\d*)\s*-\s*[^\d<]*([\d,]+\.?\d*)", re.IGNORECASE),
        _range,
    ),
]

YEAR_RANGE_RULES: list[Rule] = [
    (
        re.compile(
            r"(?:year|52[\s-]*week)\s*range[^>]*>\s*[^\d<]*([\d,]+\.?\d*)\s*-\s*[^\d<]*([\d,]+\.?\d*)",
            re.IGNORECASE,
        ),
        _range,
    ),
]

DAY_HIGH_RULES: list[Rule] = [
    (re.compile(r"(?:day[^>]*high|high[^>]*day)[^>]*>\s*([\d,.]+)", re.IGNORECASE), _number),
]

DAY_LOW_RULES: list[Rule] = [
    (re.compile(r"(?:day[^>]*low|low[^>]*day)[^>]*>\s*([\d,.]+)", re.IGNORECASE), _number),
]

VOLUME_RULES: list[Rule] = [
    (re.compile(r"volume[^>]*>\s*([\d,KMB.]+)", re.IGNORECASE), _volume),
]

MARKET_CAP_RULES: list[Rule] = [
    (re.compile(r"market\s*cap[^>]*>\s*([A-Z$£€¥₹]?[\d,KMBT.]+)", re.IGNORECASE), _text),
]

PE_RATIO_RULES: list[Rule] = [
    (re.compile(r"P/E\s*ratio[^>]*>\s*([\d.]+)", re.IGNORECASE), _number),
]

DIVIDEND_YIELD_RULES: list[Rule] = [
    (re.compile(r"dividend\s*yield[^>]*>\s*([\d.]+)%", re.IGNORECASE), _number),
]

MARKET_STATUS_RULES: list[Rule] = [
    (re.compile(r"market\s*status[^>]*>\s*([^<]+)", re.IGNORECASE), _status),
    (re.compile(r'class="[^"]*status[^"]*"[^>]*>\s*([^<]+)', re.IGNORECASE), _status),
    (re.compile(r"\b(OPEN|CLOSED|PRE_MARKET|AFTER_HOURS)\b", re.IGNORECASE), _status),
]


def extract_name(html: str) -> str:
    name = _first(html, NAME_RULES)
    if name is None:
        raise ExtractionError("name")
    return name


def extract_price(html: str) -> tuple[float, str]:
    """Return ``(price, currency)``; the currency defaults to USD."""
    found = _first(html, PRICE_RULES)
    if found is None:
        raise ExtractionError("price")
    return found


def extract_change(html: str) -> Optional[float]:
    return _first(html, CHANGE_RULES)


def extract_change_percent(html: str) -> Optional[float]:
    return _first(html, CHANGE_PERCENT_RULES)


def extract_market_status(html: str) -> MarketStatus:
    return _first(html, MARKET_STATUS_RULES) or MarketStatus.UNKNOWN


def extract_additional_data(html: str) -> Dict[str, Any]:
    """Best-effort secondary fields. Missing or unparsable ones are left out."""
    data: Dict[str, Any] = {}

    volume = _first(html, VOLUME_RULES)
    if volume is not None:
        data["volume"] = volume

    market_cap = _first(html, MARKET_CAP_RULES)
    if market_cap is not None:
        data["market_cap"] = market_cap

    pe_ratio = _first(html, PE_RATIO_RULES)
    if pe_ratio is not None:
        data["pe_ratio"] = pe_ratio

    dividend_yield = _first(html, DIVIDEND_YIELD_RULES)
    if dividend_yield is not None:
        data["dividend_yield"] = dividend_yield

    previous_close = _first(html, PREVIOUS_CLOSE_RULES)
    if previous_close is not None:
        data["previous_close"] = previous_close

    day_range = _first(html, DAY_RANGE_RULES)
    if day_range is not None:
        data["day_low"], data["day_high"] = day_range
    else:
        day_high = _first(html, DAY_HIGH_RULES)
        if day_high is not None:
            data["day_high"] = day_high
        day_low = _first(html, DAY_LOW_RULES)
        if day_low is not None:
            data["day_low"] = day_low

    year_range = _first(html, YEAR_RANGE_RULES)
    if year_range is not None:
        data["week52_low"], data["week52_high"] = year_range

    return data


def parse_quote(html: str, symbol: str, *, now: int | None = None) -> Quote:
    """Parse a Google Finance quote page into a validated ``Quote``."""
    try:
        if not html or not html.strip():
            raise ExtractionError("html")

        name = extract_name(html)
        price, currency = extract_price(html)
        change = extract_change(html)
        change_percent = extract_change_percent(html)
        extra = extract_additional_data(html)
        if "previous_close" not in extra and change is not None:
            extra["previous_close"] = round(price - change, 6)

        try:
            return Quote(
                symbol=symbol.strip().upper(),
                name=name,
                price=price,
                currency=currency,
                change=change if change is not None else 0.0,
                change_percent=change_percent if change_percent is not None else 0.0,
                market_status=extract_market_status(html),
                timestamp=now if now is not None else int(time.time()),
                **extra,
            )
        except ValidationError as exc:
            errors = exc.errors()
            loc = errors[0].get("loc") if errors else None
            field = str(loc[0]) if loc else "quote"
            raise QuoteValidationError(field, errors[0]["msg"] if errors else "") from exc
    except ParseError as exc:
        print(f"[PARSE][failed] symbol={symbol} field={exc.field} error={exc}", flush=True)
        raise
