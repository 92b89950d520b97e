"""
OpenWeatherMap provider: current conditions by city.
Source: api.openweathermap.org (requires WEATHER_API_KEY, metric units).
Gracefully degrades to None if the key is missing or the city is unknown.
"""
import logging
from typing import Optional

import requests

from ..config import API_ENDPOINTS, REQUEST_TIMEOUT_SECONDS, WEATHER_API_KEY
from ..models import Weather

logger = logging.getLogger(__name__)


def _to_weather(raw: dict) -> Weather:
    main = raw.get("main") or {}
    conditions = raw.get("weather") or [{}]
    return Weather(
        city=raw.get("name", ""),
        country=(raw.get("sys") or {}).get("country"),
        temperature=float(main.get("temp", 0)),
        feels_like=float(main.get("feels_like", 0)),
        humidity=int(main.get("humidity", 0)),
        condition=conditions[0].get("main", ""),
        description=conditions[0].get("description", ""),
        icon=conditions[0].get("icon", ""),
        wind_speed=float((raw.get("wind") or {}).get("speed", 0)),
    )


class WeatherProvider:

    def __init__(self, api_key: str = WEATHER_API_KEY, base_url: str = API_ENDPOINTS["weather"]):
        self._api_key = api_key
        self._base_url = base_url
        if not api_key:
            logger.info("Weather: WEATHER_API_KEY not configured, weather lookups disabled.")

    @property
    def is_available(self) -> bool:
        return bool(self._api_key)

    def _query(self, q: str) -> requests.Response:
        return requests.get(
            f"{self._base_url}/weather",
            params={"q": q, "appid": self._api_key, "units": "metric"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )

    def get_by_city(self, city: str, country_code: Optional[str] = None) -> Optional[Weather]:
        """
        Current weather for a city. Tries "city,CC" first when a country code
        is given (more accurate), then the city alone.
        Returns None when unavailable.
        """
        if not self._api_key:
            return None

        if country_code:
            try:
                resp = self._query(f"{city},{country_code}")
                if resp.ok:
                    return _to_weather(resp.json())
            except requests.RequestException as exc:
                logger.warning(f"Weather: lookup with country code failed, trying city only: {exc}")

        try:
            resp = self._query(city)
            if resp.status_code == 404:
                suffix = f", {country_code}" if country_code else ""
                logger.warning(f"Weather: not found for {city}{suffix}")
                return None
            if not resp.ok:
                logger.error(f"Weather: API error ({resp.status_code}) for {city}")
                return None
            return _to_weather(resp.json())
        except (requests.RequestException, ValueError) as exc:
            logger.error(f"Weather: fetch failed for {city}: {exc}")
            return None
