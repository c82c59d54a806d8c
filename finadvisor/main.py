from __future__ import annotations

from contextlib import asynccontextmanager

import requests
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finadvisor.api import chat, health, news, sip, stocks
from finadvisor.config.settings import Settings, cors_origins_from_env, get_settings
from finadvisor.errors import ApiError
from finadvisor.integrations.alpha_vantage import AlphaVantageClient
from finadvisor.integrations.gemini import GeminiClient
from finadvisor.integrations.news_api import NewsApiClient
from finadvisor.services.auth import BearerAuthenticator, InMemoryUserDirectory
from finadvisor.services.pacing import build_pacer
from finadvisor.services.stock_market import StockMarketService


def _bind_runtime_clients(app: FastAPI, settings: Settings, session=None) -> None:
    """Build the per-process handles request handlers read from ``app.state``."""
    session = session or requests.Session()
    timeout = settings.UPSTREAM_TIMEOUT_SEC

    app.state.http_session = session
    app.state.user_directory = InMemoryUserDirectory.from_file(settings.AUTH_USERS_FILE)
    app.state.authenticator = (
        BearerAuthenticator(secret=settings.JWT_SECRET, users=app.state.user_directory)
        if settings.JWT_SECRET
        else None
    )
    app.state.stock_service = StockMarketService(
        client=AlphaVantageClient(
            api_key=settings.ALPHA_VANTAGE_KEY or "",
            session=session,
            timeout_sec=timeout,
        ),
        pacer=build_pacer(settings.STOCK_PACING_POLICY, settings.STOCK_QUOTA_PER_MINUTE),
        watchlist=settings.STOCK_WATCHLIST,
    )
    app.state.chat_client = GeminiClient(
        api_key=settings.GEMINI_API_KEY or "", session=session, timeout_sec=timeout
    )
    app.state.news_client = NewsApiClient(
        api_key=settings.NEWS_API_KEY or "", session=session, timeout_sec=timeout
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.get_settings()
    _bind_runtime_clients(app, settings)
    print(
        "[APP][startup] "
        f"watchlist={','.join(settings.STOCK_WATCHLIST)} "
        f"quota_per_minute={settings.STOCK_QUOTA_PER_MINUTE} "
        f"pacing={settings.STOCK_PACING_POLICY} "
        f"users={len(app.state.user_directory)} "
        f"auth_enabled={int(app.state.authenticator is not None)}",
        flush=True,
    )
    try:
        yield
    finally:
        app.state.http_session.close()
        print("[APP][shutdown]", flush=True)


app = FastAPI(title="Financial Advisor Gateway", version="0.1.0", lifespan=lifespan)
# middleware is fixed at import; settings validation waits for startup
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins_from_env(),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def _api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={'success': False, 'message': 'Invalid request body', 'error': str(exc.errors())},
    )


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception):
    print(f"[APP][unhandled_error] path={request.url.path} error={exc!r}", flush=True)
    return JSONResponse(
        status_code=500,
        content={'success': False, 'message': 'Internal server error', 'error': str(exc)},
    )


app.include_router(health.router, prefix="/api")
app.include_router(stocks.router, prefix="/api/stocks")
app.include_router(sip.router, prefix="/api/sip")
app.include_router(chat.router, prefix="/api/chat")
app.include_router(news.router, prefix="/api/news")

# NOTE: resolved through app.state so tests can swap settings without env.
app.state.get_settings = get_settings
