from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

UNAVAILABLE = "N/A"

FetchStatus = Literal["ok", "no_data", "rate_limited", "upstream_error", "network_error"]


class QuotePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: str
    open: float
    high: float
    low: float
    close: float
    volume: int = Field(ge=0)


class FetchOutcome(BaseModel):
    """Result of one quote-provider call: either a series or a failure reason."""

    model_config = ConfigDict(frozen=True)

    status: FetchStatus
    symbol: str
    function: str
    series: dict = Field(default_factory=dict)
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class SymbolSummary(BaseModel):
    symbol: str
    price: str = UNAVAILABLE
    change: str = UNAVAILABLE
    time: str = UNAVAILABLE
    error: str | None = None


class LiveQuote(BaseModel):
    symbol: str
    price: str
    open: str
    high: str
    low: str
    volume: str
    lastUpdated: str


class DailyBar(BaseModel):
    date: str
    open: str
    high: str
    low: str
    close: str
    volume: str


class IntradayBar(BaseModel):
    timestamp: str
    open: str
    high: str
    low: str
    close: str
    volume: str
