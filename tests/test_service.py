"""
Tests for DataService: cache-then-fetch behaviour over mocked providers.
"""

from __future__ import annotations

import json
from unittest.mock import Mock

import pytest

from opendata.cache import CacheEngine
from opendata.config import SPORTS_TTL_MS
from opendata.models import Country, Joke, NewsArticle, NewsPage, UnsplashImage, Weather
from opendata.providers.countries_provider import CountriesProvider
from opendata.providers.crypto_provider import CryptoProvider
from opendata.providers.image_provider import ImageProvider
from opendata.providers.joke_provider import JokeProvider
from opendata.providers.news_provider import NewsProvider
from opendata.providers.sports_provider import SportsProvider
from opendata.providers.weather_provider import WeatherProvider
from opendata.service import DataService, build_default_service
from opendata.storage import MemoryStorage

from .conftest import FakeClock


def make_country(name: str, cca3: str, region: str = "Europe") -> Country:
    return Country(
        name=name, official_name=f"Republic of {name}", cca2=cca3[:2], cca3=cca3,
        capitals=["Capital"], population=1000, region=region, flag_png="https://flag/png",
    )


FRANCE = make_country("France", "FRA")
JAPAN = make_country("Japan", "JPN", region="Asia")

PARIS = Weather(
    city="Paris", country="FR", temperature=21.5, feels_like=20.0, humidity=40,
    condition="Clear", description="clear sky", icon="01d", wind_speed=3.1,
)


@pytest.fixture
def providers() -> dict:
    mocks = {
        "countries": Mock(spec=CountriesProvider),
        "weather": Mock(spec=WeatherProvider),
        "news": Mock(spec=NewsProvider),
        "crypto": Mock(spec=CryptoProvider),
        "images": Mock(spec=ImageProvider),
        "jokes": Mock(spec=JokeProvider),
        "sports": Mock(spec=SportsProvider),
    }
    mocks["weather"].is_available = True
    mocks["news"].is_available = True
    mocks["images"].is_available = True
    return mocks


@pytest.fixture
def service(engine: CacheEngine, providers: dict) -> DataService:
    return DataService(engine, **providers)


class TestCountries:

    def test_miss_fetches_then_hit_uses_cache(self, service: DataService, providers: dict) -> None:
        providers["countries"].get_all.return_value = [FRANCE, JAPAN]

        assert service.get_all_countries() == [FRANCE, JAPAN]
        assert service.get_all_countries() == [FRANCE, JAPAN]
        providers["countries"].get_all.assert_called_once()

    def test_survives_a_new_engine_over_the_same_storage(
        self, storage: MemoryStorage, clock: FakeClock, providers: dict
    ) -> None:
        providers["countries"].get_all.return_value = [FRANCE]
        DataService(CacheEngine(storage, clock=clock), **providers).get_all_countries()

        restarted = DataService(CacheEngine(storage, clock=clock), **providers)
        assert restarted.get_all_countries() == [FRANCE]
        providers["countries"].get_all.assert_called_once()

    def test_search_key_is_normalised(self, service: DataService, providers: dict, storage: MemoryStorage) -> None:
        providers["countries"].search.return_value = [FRANCE]

        service.search_countries("  France ")
        service.search_countries("france")

        providers["countries"].search.assert_called_once_with("France")
        assert "opendata-canvas-countries-search-france" in storage

    def test_blank_search_returns_all(self, service: DataService, providers: dict) -> None:
        providers["countries"].get_all.return_value = [FRANCE, JAPAN]
        assert service.search_countries("   ") == [FRANCE, JAPAN]
        providers["countries"].search.assert_not_called()

    def test_empty_search_result_is_cached(self, service: DataService, providers: dict) -> None:
        providers["countries"].search.return_value = []
        assert service.search_countries("atlantis") == []
        assert service.search_countries("atlantis") == []
        providers["countries"].search.assert_called_once()

    def test_get_country_by_code(self, service: DataService, providers: dict) -> None:
        providers["countries"].get_by_code.return_value = FRANCE
        assert service.get_country("FRA") == FRANCE
        assert service.get_country("FRA") == FRANCE
        providers["countries"].get_by_code.assert_called_once_with("FRA")

    def test_only_latest_region_is_kept(self, service: DataService, providers: dict, storage: MemoryStorage) -> None:
        providers["countries"].get_by_region.side_effect = lambda region: {
            "Asia": [JAPAN],
            "Europe": [FRANCE],
        }[region]

        service.get_countries_by_region("Asia")
        service.get_countries_by_region("Europe")

        region_keys = [k for k in storage.keys() if "-region-" in k]
        assert region_keys == ["opendata-canvas-countries-region-Europe"]

    def test_all_region_uses_full_list(self, service: DataService, providers: dict) -> None:
        providers["countries"].get_all.return_value = [FRANCE, JAPAN]
        assert service.get_countries_by_region("All") == [FRANCE, JAPAN]
        providers["countries"].get_by_region.assert_not_called()


class TestWeather:

    def test_cached_by_city_and_country(self, service: DataService, providers: dict, storage: MemoryStorage) -> None:
        providers["weather"].get_by_city.return_value = PARIS

        assert service.get_weather("Paris", "FR") == PARIS
        assert service.get_weather("Paris", "FR") == PARIS
        providers["weather"].get_by_city.assert_called_once_with("Paris", "FR")
        assert "opendata-canvas-weather-paris-fr" in storage

    def test_unknown_city_is_not_cached(self, service: DataService, providers: dict) -> None:
        providers["weather"].get_by_city.return_value = None

        assert service.get_weather("Atlantis") is None
        assert service.get_weather("Atlantis") is None
        assert providers["weather"].get_by_city.call_count == 2

    def test_no_key_skips_provider(self, service: DataService, providers: dict) -> None:
        providers["weather"].is_available = False
        assert service.get_weather("Paris") is None
        providers["weather"].get_by_city.assert_not_called()

    def test_expired_weather_is_refetched(
        self, service: DataService, providers: dict, clock: FakeClock
    ) -> None:
        providers["weather"].get_by_city.return_value = PARIS
        service.get_weather("Paris")
        clock.advance(10 * 60 * 1000 + 1)
        service.get_weather("Paris")
        assert providers["weather"].get_by_city.call_count == 2


class TestNews:

    def _page(self) -> NewsPage:
        article = NewsArticle(
            title="Headline", description="Body", url="https://news/1",
            published_at="2024-01-01T00:00:00Z", source="Wire",
        )
        return NewsPage(articles=[article], total_results=1, status="ok")

    def test_headlines_decode_to_news_page(self, service: DataService, providers: dict, storage: MemoryStorage) -> None:
        providers["news"].top_headlines.return_value = self._page()

        service.get_headlines("us")
        cached = service.get_headlines("us")

        assert cached == self._page()
        assert isinstance(cached.articles[0], NewsArticle)
        assert "opendata-canvas-news-country-us-page-1" in storage
        providers["news"].top_headlines.assert_called_once_with("us", 1)

    def test_search_requires_query(self, service: DataService) -> None:
        with pytest.raises(ValueError):
            service.search_news("  ")

    def test_provider_errors_propagate_and_are_not_cached(
        self, service: DataService, providers: dict, storage: MemoryStorage
    ) -> None:
        providers["news"].search.side_effect = RuntimeError("rate limited")

        with pytest.raises(RuntimeError):
            service.search_news("python")
        assert len(storage) == 0

    def test_corrupt_cached_page_is_refetched(
        self, service: DataService, providers: dict, storage: MemoryStorage, clock: FakeClock
    ) -> None:
        storage.set_item(
            "opendata-canvas-news-country-us-page-1",
            json.dumps({"data": {"articles": "nope"}, "timestamp": clock.now, "expiresIn": 60_000}),
        )
        providers["news"].top_headlines.return_value = self._page()

        assert service.get_headlines("us") == self._page()
        providers["news"].top_headlines.assert_called_once()


class TestImagesAndJokes:

    def test_image_error_is_not_cached(self, service: DataService, providers: dict, storage: MemoryStorage) -> None:
        providers["images"].search.return_value = None

        assert service.search_images("mountains") == []
        assert len(storage) == 0

    def test_images_cached_per_query_and_page_size(self, service: DataService, providers: dict) -> None:
        image = UnsplashImage(
            id="1", url="u", raw_url="r", full_url="f", thumb_url="t", description="peak",
            width=100, height=50, author="Ann", author_url="https://unsplash.com/ann",
        )
        providers["images"].search.return_value = [image]

        assert service.search_images("Mountains") == [image]
        assert service.search_images("mountains") == [image]
        providers["images"].search.assert_called_once_with("Mountains", 12)

    def test_next_joke_replaces_cached_joke(self, service: DataService, providers: dict) -> None:
        first = Joke(category="Pun", type="single", source="JokeAPI", joke="first")
        second = Joke(category="Pun", type="single", source="JokeAPI", joke="second")
        providers["jokes"].random_joke.side_effect = [first, second]

        assert service.get_random_joke() == first
        assert service.get_random_joke() == first
        assert service.next_joke() == second


class TestSports:

    def test_sports_entries_use_one_minute_ttl(self, service: DataService, providers: dict, storage: MemoryStorage) -> None:
        providers["sports"].get_matches.return_value = [{"id": "m1"}]

        service.get_matches("Football")

        raw = storage.get_item("opendata-canvas-sports-matches-football")
        assert json.loads(raw)["expiresIn"] == SPORTS_TTL_MS

    def test_matches_require_category(self, service: DataService) -> None:
        with pytest.raises(ValueError):
            service.get_matches("")

    def test_results_key_defaults_league(self, service: DataService, providers: dict, storage: MemoryStorage) -> None:
        providers["sports"].get_results.return_value = {"results": []}
        service.get_results("football")
        assert "opendata-canvas-sports-results-football-all" in storage


class TestRefresh:

    def test_refresh_namespace(self, service: DataService, providers: dict) -> None:
        providers["crypto"].top_markets.return_value = []
        providers["countries"].get_all.return_value = [FRANCE]
        service.get_top_crypto(10)
        service.get_all_countries()

        assert service.refresh("crypto") == 1
        service.get_top_crypto(10)
        service.get_all_countries()

        assert providers["crypto"].top_markets.call_count == 2
        providers["countries"].get_all.assert_called_once()


class TestBuildDefaultService:

    def test_builds_file_backed_service(self, tmp_path) -> None:
        service = build_default_service(str(tmp_path / "store.json"), quota_bytes=1024)
        assert service.cache.storage.quota_bytes == 1024
