"""
Configuration for the OpenData data service.
Reads upstream API keys and storage settings from the .env file in the project root.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).parent.parent / ".env"
load_dotenv(_env_path)

# Upstream API keys (countries, crypto, jokes and sports need none)
WEATHER_API_KEY: str = os.getenv("WEATHER_API_KEY", "")
NEWS_API_KEY: str = os.getenv("NEWS_API_KEY", "")
UNSPLASH_API_KEY: str = os.getenv("UNSPLASH_API_KEY", "")

API_ENDPOINTS = {
    "countries": "https://restcountries.com/v3.1",
    "weather": "https://api.openweathermap.org/data/2.5",
    "news": "https://newsapi.org/v2",
    "crypto": "https://api.coingecko.com/api/v3",
    "images": "https://api.unsplash.com",
    "jokes": "https://v2.jokeapi.dev/joke",
    "sports": "https://api.sportsrc.org",
}

REQUEST_TIMEOUT_SECONDS: int = int(os.getenv("OPENDATA_REQUEST_TIMEOUT", "10"))

# Persistent medium: one JSON file stands in for the origin's local storage
STORAGE_PATH: str = os.getenv(
    "OPENDATA_STORAGE_PATH",
    str(Path(__file__).parent.parent / "data" / "local_storage.json"),
)
# Browsers give an origin roughly 5 MB of local storage
STORAGE_QUOTA_BYTES: int = int(os.getenv("OPENDATA_STORAGE_QUOTA_BYTES", str(5 * 1024 * 1024)))

# Cache engine
CACHE_PREFIX = "opendata-canvas-"
MAX_ENTRY_BYTES = 3 * 1024 * 1024
LARGEST_EVICTION_COUNT = 5
FALLBACK_TTL_MS = 60 * 60 * 1000

_MINUTE_MS = 60 * 1000
_HOUR_MS = 60 * _MINUTE_MS

DEFAULT_TTL_MS = {
    "countries": 12 * _HOUR_MS,
    "news": 30 * _MINUTE_MS,
    "weather": 10 * _MINUTE_MS,
    "crypto": 2 * _MINUTE_MS,
    "images": _HOUR_MS,
    "jokes": _HOUR_MS,
}

# Live scores go stale fast; passed explicitly by the sports lookups
SPORTS_TTL_MS = _MINUTE_MS
