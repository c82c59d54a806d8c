from fastapi import APIRouter, Depends, Request

from finadvisor.api.deps import current_settings
from finadvisor.errors import ApiError, status_code_from_error

router = APIRouter()


@router.get('')
def get_news(request: Request, settings=Depends(current_settings)):
    if not settings.NEWS_API_KEY:
        raise ApiError(500, 'NewsAPI key is not configured')

    try:
        payload = request.app.state.news_client.top_headlines()
    except Exception as exc:
        code = status_code_from_error(exc)
        print(f"[NEWS][upstream_error] status={code} error={exc}", flush=True)
        if code == 401:
            raise ApiError(500, 'NewsAPI authentication failed. Please check your API key.') from exc
        if code == 429:
            raise ApiError(429, 'NewsAPI rate limit exceeded. Please try again later.') from exc
        raise ApiError(500, 'Error fetching news', error=str(exc)) from exc

    return {'success': True, **payload}
