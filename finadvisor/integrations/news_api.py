from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from finadvisor.schemas.news import NewsArticle

NO_DESCRIPTION = "No description available"


class NewsApiClient:
    BASE_URL = "https://newsapi.org/v2"

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

    @staticmethod
    def _to_article(raw: Dict[str, Any]) -> Dict[str, Any]:
        source = raw.get("source")
        return NewsArticle(
            title=raw.get("title"),
            description=raw.get("description") or NO_DESCRIPTION,
            url=raw.get("url"),
            urlToImage=raw.get("urlToImage"),
            publishedAt=raw.get("publishedAt"),
            source=source.get("name") if isinstance(source, dict) else None,
        ).model_dump()

    def top_headlines(
        self, category: str = "business", country: str = "us", page_size: int = 10
    ) -> Dict[str, Any]:
        response = self.session.get(
            f"{self.base_url}/top-headlines",
            params={
                "category": category,
                "country": country,
                "pageSize": page_size,
                "apiKey": self.api_key,
            },
            timeout=self.timeout_sec,
        )
        response.raise_for_status()
        payload = response.json()
        articles = payload.get("articles") or []
        return {
            "articles": [self._to_article(a) for a in articles if isinstance(a, dict)],
            "totalResults": int(payload.get("totalResults", len(articles)) or 0),
        }
