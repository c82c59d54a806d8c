import re

from fastapi import APIRouter, Depends, Request

from finadvisor.api.deps import current_settings, require_user
from finadvisor.errors import ApiError, UpstreamFetchError
from finadvisor.schemas.stocks import FetchOutcome

router = APIRouter(dependencies=[Depends(require_user)])

_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

MISSING_KEY = "Alpha Vantage API key is not configured"
MISSING_SYMBOL = "Please provide a symbol parameter"
NO_DATA_FOR_SYMBOL = "No data available for this symbol"


def _stock_service(request: Request, settings):
    if not settings.ALPHA_VANTAGE_KEY:
        raise ApiError(500, MISSING_KEY)
    return request.app.state.stock_service


def _require_symbol(symbol: str | None) -> str:
    value = (symbol or "").strip()
    if not value:
        raise ApiError(400, MISSING_SYMBOL)
    return value


def _error_for_outcome(outcome: FetchOutcome, failure_message: str) -> ApiError:
    if outcome.status == "no_data":
        return ApiError(404, NO_DATA_FOR_SYMBOL)
    if outcome.status == "rate_limited":
        return ApiError(429, outcome.message or failure_message)
    return ApiError(500, failure_message, error=outcome.message)


@router.get('/summary')
async def get_summary(request: Request, settings=Depends(current_settings)):
    service = _stock_service(request, settings)
    rows = await service.summarize()
    return {
        'success': True,
        'data': [row.model_dump(exclude_none=True) for row in rows],
    }


@router.get('/live')
def get_live(request: Request, symbol: str | None = None, settings=Depends(current_settings)):
    symbol = _require_symbol(symbol)
    service = _stock_service(request, settings)
    try:
        quote = service.live(symbol)
    except UpstreamFetchError as exc:
        raise _error_for_outcome(exc.outcome, 'Error fetching live stock data') from exc
    return {'success': True, **quote.model_dump()}


@router.get('/daily')
def get_daily(request: Request, symbol: str | None = None, settings=Depends(current_settings)):
    symbol = _require_symbol(symbol)
    service = _stock_service(request, settings)
    try:
        bars = service.daily(symbol)
    except UpstreamFetchError as exc:
        raise _error_for_outcome(exc.outcome, 'Error fetching daily stock data') from exc
    return {'success': True, 'symbol': symbol, 'data': [b.model_dump() for b in bars]}


@router.get('/history')
def get_history(
    request: Request,
    symbol: str | None = None,
    month: str | None = None,
    settings=Depends(current_settings),
):
    symbol = _require_symbol(symbol)
    month = (month or '').strip() or None
    if month is not None and not _MONTH_PATTERN.match(month):
        raise ApiError(400, 'month must be in YYYY-MM format')
    service = _stock_service(request, settings)
    try:
        bars = service.history(symbol, month=month)
    except UpstreamFetchError as exc:
        raise _error_for_outcome(exc.outcome, 'Error fetching stock history') from exc
    return {'success': True, 'symbol': symbol, 'data': [b.model_dump() for b in bars]}
