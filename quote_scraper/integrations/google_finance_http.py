from __future__ import annotations

import re
import time
from typing import Any, NamedTuple, Optional
from urllib.parse import quote

import requests
from urllib3.exceptions import ReadTimeoutError

from quote_scraper.config.settings import DEFAULT_SETTINGS, Settings
from quote_scraper.errors import (
    AllProxiesExhaustedError,
    BlockedResponseError,
    FetchError,
    FetchTimeoutError,
    HttpStatusError,
    IncompleteResponseError,
    NetworkOrCorsError,
)

MIN_CONTENT_LENGTH = 500
BLOCK_MARKERS = ("blocked", "captcha", "rate limit")
DIRECT_USER_AGENT = "Mozilla/5.0 (compatible; StockQuoteBot/1.0)"
DIRECT_SOURCE = "direct"
# characters encodeURIComponent leaves unescaped besides alphanumerics and "-_.~"
URI_COMPONENT_SAFE = "!*'()"
# small reads so the deadline is checked while a slow body trickles in
READ_CHUNK_SIZE = 64
DEFAULT_CHARSET = "utf-8"
_CHARSET_RE = re.compile(r"charset=[\"']?([\w.:-]+)", re.IGNORECASE)


class FetchResult(NamedTuple):
    content: str
    source: str
    used_proxy: bool


def build_proxy_url(proxy: str, url: str) -> str:
    return proxy + quote(url, safe=URI_COMPONENT_SAFE)


class GoogleFinanceHttpClient:
    """Fetch quote pages directly or through an ordered CORS proxy chain."""

    def __init__(
        self,
        settings: Settings = DEFAULT_SETTINGS,
        session: Optional[Any] = None,
    ) -> None:
        self.settings = settings
        self.session = session or requests

    def fetch(self, url: str, settings: Optional[Settings] = None) -> str:
        return self.fetch_content(url, settings=settings).content

    def fetch_content(self, url: str, settings: Optional[Settings] = None) -> FetchResult:
        snapshot = settings or self.settings

        if not snapshot.use_proxy:
            content = self._fetch_once(url, proxy=None, timeout=snapshot.timeout_sec)
            return FetchResult(content=content, source=DIRECT_SOURCE, used_proxy=False)

        proxies = [p for p in (snapshot.proxy_url, *snapshot.fallback_proxies) if p]
        failures: list[tuple[str, FetchError]] = []
        for index, proxy in enumerate(proxies):
            if index > 0:
                print(f"[FETCH][proxy_try] proxy={proxy} fallback={index}", flush=True)
            try:
                content = self._fetch_once(url, proxy=proxy, timeout=snapshot.timeout_sec)
            except FetchError as exc:
                failures.append((proxy, exc))
                print(
                    f"[FETCH][proxy_failed] proxy={proxy} "
                    f"kind={type(exc).__name__} error={exc}",
                    flush=True,
                )
                continue
            print(f"[FETCH][proxy_ok] proxy={proxy} chars={len(content)}", flush=True)
            return FetchResult(content=content, source=proxy, used_proxy=True)

        error = AllProxiesExhaustedError(failures)
        if failures:
            raise error from failures[-1][1]
        raise error

    def _fetch_once(self, url: str, *, proxy: Optional[str], timeout: float) -> str:
        fetch_url = build_proxy_url(proxy, url) if proxy else url
        headers = {"Accept": "text/html,application/xhtml+xml"}
        if not proxy:
            headers["User-Agent"] = DIRECT_USER_AGENT

        deadline = time.monotonic() + timeout
        try:
            response = self.session.get(fetch_url, headers=headers, timeout=timeout, stream=True)
        except requests.RequestException as exc:
            raise _translate_request_error(exc, timeout) from exc

        try:
            status_code = int(response.status_code)
            if not 200 <= status_code < 300:
                raise HttpStatusError(status_code, str(getattr(response, "reason", "") or ""))
            html = _read_body(response, deadline=deadline, timeout=timeout)
        finally:
            response.close()

        return validate_content(html)


def _is_read_timeout(exc: BaseException) -> bool:
    # requests wraps urllib3 read timeouts raised mid-body in a plain ConnectionError
    return any(isinstance(arg, ReadTimeoutError) for arg in exc.args) or isinstance(
        exc.__context__, ReadTimeoutError
    )


def _translate_request_error(exc: requests.RequestException, timeout: float) -> FetchError:
    if isinstance(exc, requests.Timeout) or _is_read_timeout(exc):
        return FetchTimeoutError(f"Request timeout after {timeout:g}s")
    return NetworkOrCorsError(f"Network error or CORS blocked: {exc}")


def _charset(response: Any) -> str:
    content_type = response.headers.get("content-type") or ""
    match = _CHARSET_RE.search(content_type)
    return match.group(1) if match else DEFAULT_CHARSET


def _read_body(response: Any, *, deadline: float, timeout: float) -> str:
    """Read the streamed body, giving up once the attempt's deadline passes."""
    chunks: list[bytes] = []
    try:
        if time.monotonic() > deadline:
            raise FetchTimeoutError(f"Request timeout after {timeout:g}s")
        for chunk in response.iter_content(chunk_size=READ_CHUNK_SIZE):
            if time.monotonic() > deadline:
                raise FetchTimeoutError(f"Request timeout after {timeout:g}s")
            chunks.append(chunk)
    except requests.RequestException as exc:
        raise _translate_request_error(exc, timeout) from exc

    body = b"".join(chunks)
    try:
        return body.decode(_charset(response), errors="replace")
    except LookupError:
        return body.decode(DEFAULT_CHARSET, errors="replace")


def validate_content(html: str) -> str:
    if len(html) < MIN_CONTENT_LENGTH:
        raise IncompleteResponseError(
            f"Received empty or incomplete response ({len(html)} chars)"
        )
    if any(marker in html for marker in BLOCK_MARKERS):
        raise BlockedResponseError("Request blocked by Google Finance")
    return html
