from __future__ import annotations

import asyncio
from typing import Callable

from finadvisor.errors import UpstreamFetchError
from finadvisor.integrations.alpha_vantage import (
    DAILY_FUNCTION,
    DAILY_SERIES_KEY,
    INTRADAY_FUNCTION,
    intraday_series_key,
)
from finadvisor.schemas.stocks import (
    DailyBar,
    FetchOutcome,
    IntradayBar,
    LiveQuote,
    SymbolSummary,
)
from finadvisor.services import series

INTRADAY_INTERVAL = "5min"
DAILY_SLICE = 5
HISTORY_SLICE = 10
NO_DATA_MESSAGE = "No data available"


class StockMarketService:
    """Watch-list summary and single-symbol views over a quota-limited quote provider."""

    def __init__(
        self,
        *,
        client,
        pacer,
        watchlist: list[str],
        to_thread: Callable | None = None,
    ) -> None:
        self.client = client
        self.pacer = pacer
        self.watchlist = list(watchlist)
        self.to_thread = to_thread or asyncio.to_thread

        self.upstream_calls = 0
        self.outcome_counts: dict[str, int] = {}
        self.last_batch_target = 0
        self.last_batch_ok = 0
        self.last_batch_errors = 0

    def _record(self, outcome: FetchOutcome) -> None:
        self.upstream_calls += 1
        self.outcome_counts[outcome.status] = self.outcome_counts.get(outcome.status, 0) + 1
        if not outcome.ok:
            print(
                f"[STOCKS][fetch_error] symbol={outcome.symbol} function={outcome.function} "
                f"reason={outcome.status} message={outcome.message}",
                flush=True,
            )

    def _fetch_intraday(self, symbol: str, outputsize: str, month: str | None = None) -> FetchOutcome:
        params = {"interval": INTRADAY_INTERVAL, "outputsize": outputsize}
        if month:
            params["month"] = month
        return self.client.fetch(
            INTRADAY_FUNCTION,
            symbol,
            params,
            series_key=intraday_series_key(INTRADAY_INTERVAL),
        )

    def _fetch_daily(self, symbol: str) -> FetchOutcome:
        return self.client.fetch(
            DAILY_FUNCTION,
            symbol,
            {"outputsize": "compact"},
            series_key=DAILY_SERIES_KEY,
        )

    @staticmethod
    def _failed_summary(symbol: str, outcome: FetchOutcome) -> SymbolSummary:
        if outcome.status == "no_data":
            return SymbolSummary(symbol=symbol, error=NO_DATA_MESSAGE)
        return SymbolSummary(symbol=symbol, error=outcome.message or outcome.status)

    @staticmethod
    def build_summary(symbol: str, outcome: FetchOutcome) -> SymbolSummary:
        if not outcome.ok:
            return StockMarketService._failed_summary(symbol, outcome)

        latest, previous = series.latest_pair(series.normalize(outcome.series))
        if latest is None:
            return SymbolSummary(symbol=symbol, error=NO_DATA_MESSAGE)

        return SymbolSummary(
            symbol=symbol,
            price=series.format_price(latest.close),
            change=series.change_percent(latest.close, previous.close if previous else None),
            time=series.format_time(latest.timestamp),
        )

    async def _summarize_one(self, index: int, symbol: str) -> SymbolSummary:
        try:
            await self.pacer.wait(index)
            outcome = await self.to_thread(self._fetch_intraday, symbol, "compact")
            self._record(outcome)
            return self.build_summary(symbol, outcome)
        except Exception as exc:
            print(f"[STOCKS][summary_symbol_error] symbol={symbol} error={exc}", flush=True)
            return SymbolSummary(symbol=symbol, error=str(exc) or exc.__class__.__name__)

    async def summarize(self, symbols: list[str] | None = None) -> list[SymbolSummary]:
        targets = list(self.watchlist if symbols is None else symbols)
        results = await asyncio.gather(
            *(self._summarize_one(i, symbol) for i, symbol in enumerate(targets))
        )
        out = list(results)

        errors = sum(1 for row in out if row.error is not None)
        self.last_batch_target = len(targets)
        self.last_batch_ok = len(out) - errors
        self.last_batch_errors = errors
        print(
            "[STOCKS][summary_resolve] "
            f"target_count={len(targets)} ok_count={len(out) - errors} error_count={errors}",
            flush=True,
        )
        return out

    def live(self, symbol: str) -> LiveQuote:
        outcome = self._fetch_intraday(symbol, "compact")
        self._record(outcome)
        if not outcome.ok:
            raise UpstreamFetchError(outcome)
        points = series.normalize(outcome.series)[:1]
        if not points:
            raise UpstreamFetchError(outcome.model_copy(update={"status": "no_data"}))
        latest = points[0]
        return LiveQuote(
            symbol=symbol,
            price=series.format_price(latest.close),
            open=series.format_price(latest.open),
            high=series.format_price(latest.high),
            low=series.format_price(latest.low),
            volume=str(latest.volume),
            lastUpdated=latest.timestamp,
        )

    def daily(self, symbol: str) -> list[DailyBar]:
        outcome = self._fetch_daily(symbol)
        self._record(outcome)
        if not outcome.ok:
            raise UpstreamFetchError(outcome)
        return [
            DailyBar(
                date=p.timestamp,
                open=series.format_price(p.open),
                high=series.format_price(p.high),
                low=series.format_price(p.low),
                close=series.format_price(p.close),
                volume=str(p.volume),
            )
            for p in series.normalize(outcome.series)[:DAILY_SLICE]
        ]

    def history(self, symbol: str, month: str | None = None) -> list[IntradayBar]:
        outcome = self._fetch_intraday(symbol, "full", month=month)
        self._record(outcome)
        if not outcome.ok:
            raise UpstreamFetchError(outcome)
        return [
            IntradayBar(
                timestamp=p.timestamp,
                open=series.format_price(p.open),
                high=series.format_price(p.high),
                low=series.format_price(p.low),
                close=series.format_price(p.close),
                volume=str(p.volume),
            )
            for p in series.normalize(outcome.series)[:HISTORY_SLICE]
        ]

    def metrics(self) -> dict[str, int]:
        out = {
            "upstream_calls": self.upstream_calls,
            "batch_target_count": self.last_batch_target,
            "batch_ok_count": self.last_batch_ok,
            "batch_error_count": self.last_batch_errors,
        }
        for status in ("ok", "no_data", "rate_limited", "upstream_error", "network_error"):
            out[f"outcome_{status}"] = self.outcome_counts.get(status, 0)
        return out
