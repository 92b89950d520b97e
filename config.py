"""
Configuration for the OpenData Canvas dashboard
"""
from pathlib import Path

# Paths
BASE_DIR = Path(__file__).parent
LOGS_DIR = BASE_DIR / "logs"

# Keys outside the cache prefix, so cache clears never touch them
STORAGE_KEYS = {
    "favorites": "opendata_favorites",
    "last_country": "opendata_last_country",
}

FAVORITE_TYPES = ("country", "news", "crypto", "sports")

# Country explorer region filter
REGIONS = ["All", "Africa", "Americas", "Asia", "Europe", "Oceania"]

# News page country selector (NewsAPI top-headlines country codes)
NEWS_COUNTRIES = {
    "United States": "us",
    "United Kingdom": "gb",
    "Canada": "ca",
    "Australia": "au",
    "India": "in",
    "Germany": "de",
    "France": "fr",
}

CRYPTO_LIMITS = [10, 25, 50, 100]

SPORTS_RESULT_KINDS = ["leagues", "tables", "scores"]

# Logging
LOG_LEVEL = "INFO"
