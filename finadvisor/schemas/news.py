from pydantic import BaseModel


class NewsArticle(BaseModel):
    title: str | None = None
    description: str
    url: str | None = None
    urlToImage: str | None = None
    publishedAt: str | None = None
    source: str | None = None
