import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://www.google.com/finance/quote"
DEFAULT_PROXY_URL = "https://corsproxy.io/?"
DEFAULT_FALLBACK_PROXIES = (
    "https://api.codetabs.com/v1/proxy?quest=",
    "https://thingproxy.freeboard.io/fetch/",
    "https://cors-anywhere.herokuapp.com/",
)


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BASE_URL
    proxy_url: str = DEFAULT_PROXY_URL
    fallback_proxies: tuple[str, ...] = DEFAULT_FALLBACK_PROXIES
    timeout_ms: int = Field(default=10_000, gt=0)
    use_proxy: bool = True
    use_mock_data: bool = False
    enable_mock_fallback: bool = False
    mock_price_movement: bool = False

    @property
    def timeout_sec(self) -> float:
        return self.timeout_ms / 1000.0

    @classmethod
    def from_env(cls) -> "Settings":
        values: dict = {}

        base_url = os.getenv("QUOTE_BASE_URL", "").strip()
        if base_url:
            values["base_url"] = base_url.rstrip("/")

        proxy_url = os.getenv("QUOTE_PROXY_URL", "").strip()
        if proxy_url:
            values["proxy_url"] = proxy_url

        raw_fallbacks = os.getenv("QUOTE_FALLBACK_PROXIES")
        if raw_fallbacks is not None:
            values["fallback_proxies"] = tuple(
                p.strip() for p in raw_fallbacks.split(",") if p.strip()
            )

        return cls.model_validate(values)


DEFAULT_SETTINGS = Settings()


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
