"""
NewsAPI provider: top headlines and full-text search.
Source: newsapi.org v2 (requires NEWS_API_KEY; free plan is heavily rate-limited).
"""
import logging

import requests

from ..config import API_ENDPOINTS, NEWS_API_KEY, REQUEST_TIMEOUT_SECONDS
from ..exceptions import ConfigurationError, RateLimitError, UpstreamError
from ..models import NewsArticle, NewsPage

logger = logging.getLogger(__name__)

PAGE_SIZE = 20

RATE_LIMIT_MESSAGE = (
    "Rate limit exceeded. Please wait a moment before trying again. "
    "The free News API plan has limited requests per day."
)


def _to_article(raw: dict) -> NewsArticle:
    return NewsArticle(
        title=raw.get("title") or "",
        description=raw.get("description") or "",
        url=raw.get("url") or "",
        published_at=raw.get("publishedAt") or "",
        source=(raw.get("source") or {}).get("name") or "",
        image_url=raw.get("urlToImage"),
        author=raw.get("author"),
    )


class NewsProvider:

    def __init__(self, api_key: str = NEWS_API_KEY, base_url: str = API_ENDPOINTS["news"]):
        self._api_key = api_key
        self._base_url = base_url

    @property
    def is_available(self) -> bool:
        return bool(self._api_key)

    def _fetch(self, endpoint: str, params: dict, what: str) -> NewsPage:
        if not self._api_key:
            raise ConfigurationError("News API key not configured")

        resp = requests.get(
            f"{self._base_url}/{endpoint}",
            params={**params, "pageSize": PAGE_SIZE, "apiKey": self._api_key},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        if resp.status_code == 429:
            raise RateLimitError(RATE_LIMIT_MESSAGE)
        if not resp.ok:
            try:
                message = resp.json().get("message")
            except ValueError:
                message = None
            raise UpstreamError(message or f"Failed to {what}: {resp.status_code}", resp.status_code)

        data = resp.json()
        return NewsPage(
            articles=[_to_article(a) for a in data.get("articles") or []],
            total_results=int(data.get("totalResults") or 0),
            status=data.get("status", "ok"),
        )

    def top_headlines(self, country_code: str, page: int = 1) -> NewsPage:
        return self._fetch(
            "top-headlines",
            {"country": country_code, "page": page},
            "fetch news",
        )

    def search(self, query: str, page: int = 1) -> NewsPage:
        # /everything rejects an empty q
        if not query or not query.strip():
            raise ValueError("Search query is required")
        return self._fetch(
            "everything",
            {"q": query.strip(), "page": page, "sortBy": "publishedAt"},
            "search news",
        )
