from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MarketStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    PRE_MARKET = "PRE_MARKET"
    AFTER_HOURS = "AFTER_HOURS"
    UNKNOWN = "UNKNOWN"


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    name: str
    price: float = Field(gt=0)
    currency: str = "USD"
    change: float = 0.0
    change_percent: float = 0.0
    previous_close: float | None = None
    market_status: MarketStatus = MarketStatus.UNKNOWN
    volume: int | None = None
    market_cap: str | None = None
    day_high: float | None = None
    day_low: float | None = None
    week52_high: float | None = None
    week52_low: float | None = None
    pe_ratio: float | None = None
    dividend_yield: float | None = None
    source: str = "google-finance"
    timestamp: int

    @field_validator("symbol", "name", "currency")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value
