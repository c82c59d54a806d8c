from __future__ import annotations

import re
from typing import Any

from finadvisor.schemas.stocks import UNAVAILABLE, QuotePoint

_TIME_OF_DAY = re.compile(r"(\d{2}:\d{2})")


def _to_float_default(value: Any, default: float = 0.0) -> float:
    try:
        if value is None or value == "":
            return default
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_volume(value: Any) -> int:
    return max(int(_to_float_default(value)), 0)


def normalize(raw_series: dict) -> list[QuotePoint]:
    """Convert a provider time-keyed series into points ordered newest first.

    Provider keys are ``YYYY-MM-DD`` or ``YYYY-MM-DD HH:MM:SS`` so lexical
    order is chronological.
    """
    points: list[QuotePoint] = []
    for timestamp in sorted(raw_series, reverse=True):
        row = raw_series[timestamp]
        if not isinstance(row, dict):
            continue
        points.append(
            QuotePoint(
                timestamp=str(timestamp),
                open=_to_float_default(row.get("1. open")),
                high=_to_float_default(row.get("2. high")),
                low=_to_float_default(row.get("3. low")),
                close=_to_float_default(row.get("4. close")),
                volume=_to_volume(row.get("5. volume")),
            )
        )
    return points


def latest_pair(points: list[QuotePoint]) -> tuple[QuotePoint | None, QuotePoint | None]:
    if not points:
        return None, None
    previous = points[1] if len(points) > 1 else None
    return points[0], previous


def change_percent(current: float, previous: float | None) -> str:
    if previous is None or previous == 0:
        return UNAVAILABLE
    change = (current - previous) / previous * 100
    sign = "+" if change >= 0 else ""
    return f"{sign}{change:.2f}%"


def format_price(value: float) -> str:
    return f"{value:.2f}"


def format_time(timestamp: str | None) -> str:
    if not timestamp:
        return UNAVAILABLE
    match = _TIME_OF_DAY.search(timestamp)
    return match.group(1) if match else timestamp
