from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from finadvisor.schemas.stocks import FetchOutcome

RATE_LIMIT_MESSAGE = "API rate limit exceeded. Please try again later."

INTRADAY_FUNCTION = "TIME_SERIES_INTRADAY"
DAILY_FUNCTION = "TIME_SERIES_DAILY"
DAILY_SERIES_KEY = "Time Series (Daily)"


def intraday_series_key(interval: str) -> str:
    return f"Time Series ({interval})"


class AlphaVantageClient:
    """Single-attempt Alpha Vantage query client mapping soft failures to FetchOutcome."""

    BASE_URL = "https://www.alphavantage.co/query"

    _QUOTA_NOTICE_FIELD = "Note"
    # also used for premium-only and other non-quota notices
    _INFORMATION_FIELD = "Information"
    _QUOTA_MARKERS = ("rate limit", "requests per", "api call frequency")
    _ERROR_FIELD = "Error Message"

    def __init__(
        self,
        api_key: str,
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout_sec: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.session = session or requests
        self.base_url = base_url or self.BASE_URL
        self.timeout_sec = timeout_sec

    @classmethod
    def _is_quota_notice(cls, text: str) -> bool:
        lowered = text.lower()
        return any(marker in lowered for marker in cls._QUOTA_MARKERS)

    def fetch(
        self,
        function: str,
        symbol: str,
        params: Optional[Dict[str, str]] = None,
        *,
        series_key: str,
    ) -> FetchOutcome:
        query = {"function": function, "symbol": symbol, **(params or {}), "apikey": self.api_key}

        def outcome(status: str, **kwargs) -> FetchOutcome:
            return FetchOutcome(status=status, symbol=symbol, function=function, **kwargs)

        try:
            response = self.session.get(self.base_url, params=query, timeout=self.timeout_sec)
        except requests.RequestException as exc:
            return outcome("network_error", message=str(exc) or exc.__class__.__name__)

        status_code = getattr(response, "status_code", 200)
        if status_code == 429:
            return outcome("rate_limited", message=RATE_LIMIT_MESSAGE)
        if not 200 <= status_code < 300:
            return outcome("upstream_error", message=f"HTTP {status_code} from quote provider")

        try:
            payload = response.json()
        except ValueError as exc:
            return outcome("network_error", message=f"invalid JSON from quote provider: {exc}")

        if not isinstance(payload, dict):
            return outcome("upstream_error", message="unexpected payload from quote provider")

        if payload.get(self._QUOTA_NOTICE_FIELD):
            return outcome("rate_limited", message=RATE_LIMIT_MESSAGE)

        information = payload.get(self._INFORMATION_FIELD)
        if information:
            if self._is_quota_notice(str(information)):
                return outcome("rate_limited", message=RATE_LIMIT_MESSAGE)
            return outcome("upstream_error", message=str(information))

        if payload.get(self._ERROR_FIELD):
            return outcome("upstream_error", message=str(payload[self._ERROR_FIELD]))

        series = payload.get(series_key)
        if not isinstance(series, dict) or not series:
            return outcome("no_data", message="No data available")

        return outcome("ok", series=series)
