"""
OpenData Canvas data service.

Usage:
    from opendata import build_default_service
    service = build_default_service()

    # Country directory (cached 12h)
    countries = service.get_all_countries()

    # Weather for a capital (cached 10 min)
    weather = service.get_weather("Paris", "FR")

    # Crypto markets (cached 2 min)
    coins = service.get_top_crypto(limit=50)

    # Drop one namespace, or everything
    service.refresh("news")
    service.refresh()
"""
from .cache import CACHE_NAMESPACES, CacheEngine
from .service import DataService, build_default_service
from .storage import JsonFileStorage, MemoryStorage, WriteResult

__all__ = [
    "CACHE_NAMESPACES",
    "CacheEngine",
    "DataService",
    "JsonFileStorage",
    "MemoryStorage",
    "WriteResult",
    "build_default_service",
]
