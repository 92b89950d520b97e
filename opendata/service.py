"""
DataService: single entry point for all dashboard data.

Every lookup follows the same pattern: ask the cache, on a miss call the
provider, then write the result back. Cache failures never block a lookup;
at worst the provider is called again.

  Countries  get_all_countries / search_countries / get_country / get_countries_by_region
  Weather    get_weather
  News       get_headlines / search_news
  Crypto     get_top_crypto / search_crypto
  Images     search_images
  Jokes      get_random_joke
  Sports     get_sport_categories / get_matches / get_match_detail / get_results

Pure Python, no Streamlit imports.
"""
import logging
from dataclasses import asdict, is_dataclass
from typing import Any, List, Optional

from .cache import CacheEngine
from .config import SPORTS_TTL_MS, STORAGE_PATH, STORAGE_QUOTA_BYTES
from .models import (
    Country,
    CryptoCurrency,
    Joke,
    NewsPage,
    SportCategory,
    UnsplashImage,
    Weather,
    decode_list,
)
from .providers.countries_provider import CountriesProvider
from .providers.crypto_provider import CryptoProvider
from .providers.image_provider import ImageProvider
from .providers.joke_provider import JokeProvider
from .providers.news_provider import NewsProvider
from .providers.sports_provider import SportsProvider
from .providers.weather_provider import WeatherProvider
from .storage import JsonFileStorage

logger = logging.getLogger(__name__)


def _to_payload(value: Any) -> Any:
    """Plain JSON-ready form of a model, list of models, or raw value."""
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, list):
        return [_to_payload(v) for v in value]
    return value


def _normalise(text: str) -> str:
    return text.lower().strip()


class DataService:
    """
    Unified data service for the dashboard.

    Instantiate once at app startup and share the instance; the injected
    CacheEngine persists lookups across page renders and restarts.
    """

    def __init__(
        self,
        cache: CacheEngine,
        countries: CountriesProvider = None,
        weather: WeatherProvider = None,
        news: NewsProvider = None,
        crypto: CryptoProvider = None,
        images: ImageProvider = None,
        jokes: JokeProvider = None,
        sports: SportsProvider = None,
    ):
        self._cache = cache
        self._countries = countries or CountriesProvider()
        self._weather = weather or WeatherProvider()
        self._news = news or NewsProvider()
        self._crypto = crypto or CryptoProvider()
        self._images = images or ImageProvider()
        self._jokes = jokes or JokeProvider()
        self._sports = sports or SportsProvider()

    @property
    def cache(self) -> CacheEngine:
        return self._cache

    @property
    def weather_available(self) -> bool:
        return self._weather.is_available

    @property
    def news_available(self) -> bool:
        return self._news.is_available

    @property
    def images_available(self) -> bool:
        return self._images.is_available

    def _cached(self, namespace: str, key: str, fetch, decode=None, ttl_ms: Optional[int] = None):
        cached = self._cache.get(namespace, key, decode=decode)
        if cached is not None:
            return cached

        result = fetch()
        if result is None:
            return None
        self._cache.set(namespace, key, _to_payload(result), ttl_ms=ttl_ms)
        return result

    # ------------------------------------------------------------------
    # Countries
    # ------------------------------------------------------------------

    def get_all_countries(self) -> List[Country]:
        return self._cached(
            "countries", "all-countries", self._countries.get_all, decode_list(Country)
        )

    def search_countries(self, query: str) -> List[Country]:
        if not query.strip():
            return self.get_all_countries()
        return self._cached(
            "countries",
            f"search-{_normalise(query)}",
            lambda: self._countries.search(query.strip()),
            decode_list(Country),
        )

    def get_country(self, code: str) -> Country:
        return self._cached(
            "countries", f"code-{code}", lambda: self._countries.get_by_code(code), Country.from_dict
        )

    def get_countries_by_region(self, region: str) -> List[Country]:
        if region == "All":
            return self.get_all_countries()
        # Writing a region key evicts the other region lists first
        return self._cached(
            "countries",
            f"region-{region}",
            lambda: self._countries.get_by_region(region),
            decode_list(Country),
        )

    # ------------------------------------------------------------------
    # Weather
    # ------------------------------------------------------------------

    def get_weather(self, city: str, country_code: Optional[str] = None) -> Optional[Weather]:
        """Current weather, or None if the key is missing or the city is unknown."""
        if not self._weather.is_available:
            logger.warning("Weather API key not configured")
            return None
        key = f"{city}-{country_code}" if country_code else city
        return self._cached(
            "weather",
            key.lower(),
            lambda: self._weather.get_by_city(city, country_code),
            Weather.from_dict,
        )

    # ------------------------------------------------------------------
    # News
    # ------------------------------------------------------------------

    def get_headlines(self, country_code: str, page: int = 1) -> NewsPage:
        return self._cached(
            "news",
            f"country-{country_code}-page-{page}",
            lambda: self._news.top_headlines(country_code, page),
            NewsPage.from_dict,
        )

    def search_news(self, query: str, page: int = 1) -> NewsPage:
        if not query or not query.strip():
            raise ValueError("Search query is required")
        return self._cached(
            "news",
            f"search-{_normalise(query)}-page-{page}",
            lambda: self._news.search(query, page),
            NewsPage.from_dict,
        )

    # ------------------------------------------------------------------
    # Crypto
    # ------------------------------------------------------------------

    def get_top_crypto(self, limit: int = 50) -> List[CryptoCurrency]:
        return self._cached(
            "crypto",
            f"top-{limit}",
            lambda: self._crypto.top_markets(limit),
            decode_list(CryptoCurrency),
        )

    def search_crypto(self, query: str) -> List[CryptoCurrency]:
        return self._cached(
            "crypto",
            f"search-{_normalise(query)}",
            lambda: self._crypto.search(query),
            decode_list(CryptoCurrency),
        )

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def search_images(self, query: str, per_page: int = 12) -> List[UnsplashImage]:
        if not self._images.is_available or not query or not query.strip():
            return []
        images = self._cached(
            "images",
            f"{_normalise(query)}-{per_page}",
            lambda: self._images.search(query, per_page),
            decode_list(UnsplashImage),
        )
        return images or []

    # ------------------------------------------------------------------
    # Jokes
    # ------------------------------------------------------------------

    def get_random_joke(self) -> Optional[Joke]:
        """One joke per hour; the cached joke is reused until it expires."""
        return self._cached("jokes", "random-joke", self._jokes.random_joke, Joke.from_dict)

    def next_joke(self) -> Optional[Joke]:
        """Replace the cached joke with a fresh one."""
        self._cache.clear("jokes")
        return self.get_random_joke()

    # ------------------------------------------------------------------
    # Sports
    # ------------------------------------------------------------------

    def get_sport_categories(self) -> List[SportCategory]:
        return self._cached(
            "sports",
            "sports-categories",
            self._sports.get_categories,
            decode_list(SportCategory),
            ttl_ms=SPORTS_TTL_MS,
        )

    def get_matches(self, category: str) -> List[dict]:
        if not category or not category.strip():
            raise ValueError("Category is required")
        return self._cached(
            "sports",
            f"matches-{category.lower()}",
            lambda: self._sports.get_matches(category),
            ttl_ms=SPORTS_TTL_MS,
        )

    def get_match_detail(self, category: str, match_id: str) -> Any:
        return self._cached(
            "sports",
            f"match-detail-{category.lower()}-{match_id}",
            lambda: self._sports.get_match_detail(category, match_id),
            ttl_ms=SPORTS_TTL_MS,
        )

    def get_results(self, kind: str, league: Optional[str] = None) -> Any:
        return self._cached(
            "sports",
            f"results-{kind}-{league or 'all'}",
            lambda: self._sports.get_results(kind, league),
            ttl_ms=SPORTS_TTL_MS,
        )

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def refresh(self, namespace: Optional[str] = None) -> int:
        """Drop cached data for one namespace (or all) so the next call refetches."""
        removed = self._cache.clear(namespace)
        logger.info(f"DataService: cache cleared ({namespace or 'all'}).")
        return removed


def build_default_service(
    storage_path: str = STORAGE_PATH,
    quota_bytes: int = STORAGE_QUOTA_BYTES,
) -> DataService:
    """DataService over the JSON-file storage configured in .env."""
    storage = JsonFileStorage(storage_path, quota_bytes=quota_bytes)
    return DataService(CacheEngine(storage))
