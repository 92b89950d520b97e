"""
Unsplash provider: landscape photo search.
Source: api.unsplash.com (requires UNSPLASH_API_KEY).
Failed requests return None so they are not cached as "no results".
"""
import logging
from typing import List, Optional

import requests

from ..config import API_ENDPOINTS, REQUEST_TIMEOUT_SECONDS, UNSPLASH_API_KEY
from ..models import UnsplashImage

logger = logging.getLogger(__name__)


def _to_image(raw: dict, query: str) -> UnsplashImage:
    urls = raw.get("urls") or {}
    user = raw.get("user") or {}
    return UnsplashImage(
        id=str(raw.get("id", "")),
        url=urls.get("regular") or urls.get("small") or "",
        raw_url=urls.get("raw") or urls.get("full") or urls.get("regular") or "",
        full_url=urls.get("full") or urls.get("regular") or "",
        thumb_url=urls.get("thumb") or urls.get("small") or "",
        description=raw.get("description") or raw.get("alt_description") or query,
        width=int(raw.get("width") or 0),
        height=int(raw.get("height") or 0),
        author=user.get("name") or "Unknown",
        author_url=(user.get("links") or {}).get("html") or "https://unsplash.com",
    )


class ImageProvider:

    def __init__(self, api_key: str = UNSPLASH_API_KEY, base_url: str = API_ENDPOINTS["images"]):
        self._api_key = api_key
        self._base_url = base_url
        if not api_key:
            logger.info("Unsplash: UNSPLASH_API_KEY not configured, image search disabled.")

    @property
    def is_available(self) -> bool:
        return bool(self._api_key)

    def search(self, query: str, per_page: int = 12) -> Optional[List[UnsplashImage]]:
        """Landscape photos for `query`. Empty list when nothing matches, None on error."""
        if not self._api_key:
            return None
        if not query or not query.strip():
            logger.warning("Unsplash: image query is empty")
            return []

        try:
            resp = requests.get(
                f"{self._base_url}/search/photos",
                params={
                    "query": query.strip(),
                    "per_page": per_page,
                    "orientation": "landscape",
                    "client_id": self._api_key,
                },
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
            if not resp.ok:
                logger.error(f"Unsplash: API error ({resp.status_code}): {resp.text}")
                return None

            results = (resp.json() or {}).get("results") or []
            if not results:
                logger.warning(f"Unsplash: no images found for query: {query}")
            return [_to_image(raw, query) for raw in results]

        except (requests.RequestException, ValueError) as exc:
            logger.error(f"Unsplash: image fetch failed: {exc}")
            return None
