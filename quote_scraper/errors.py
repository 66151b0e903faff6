from __future__ import annotations


class QuoteError(Exception):
    """Base error for a single quote request."""


class InvalidSymbolFormatError(QuoteError, ValueError):
    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(
            f"Invalid symbol format: {symbol!r}. Expected format: SYMBOL:EXCHANGE"
        )


class FetchError(QuoteError):
    pass


class FetchTimeoutError(FetchError):
    pass


class NetworkOrCorsError(FetchError):
    pass


class HttpStatusError(FetchError):
    def __init__(self, status_code: int, reason: str = "") -> None:
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {reason}".rstrip(": "))


class BlockedResponseError(FetchError):
    pass


class IncompleteResponseError(FetchError):
    pass


class AllProxiesExhaustedError(FetchError):
    def __init__(self, failures: list[tuple[str, FetchError]]) -> None:
        self.failures = failures
        super().__init__(
            "All proxy services failed. Google Finance may be blocking requests "
            f"or proxies are unavailable (attempts={len(failures)})"
        )


class ParseError(QuoteError):
    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class ExtractionError(ParseError):
    def __init__(self, field: str) -> None:
        super().__init__(field, f"Could not extract {field} from HTML")


class QuoteValidationError(ParseError):
    def __init__(self, field: str, detail: str = "") -> None:
        message = f"Invalid {field} in quote data"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(field, message)
