"""
Data models for the OpenData service.
Pure Python dataclasses with no UI dependencies.

Cached payloads are stored as plain dicts (dataclasses.asdict) and rebuilt
with from_dict() on read. from_dict() raises TypeError/ValueError when the
stored shape no longer matches, which the cache treats as a corrupt entry.
"""
import json
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


def _reject_constant(name: str):
    raise ValueError(f"non-standard JSON constant {name}")


def _build(cls, data):
    if not isinstance(data, dict):
        raise TypeError(f"{cls.__name__}: expected dict, got {type(data).__name__}")
    return cls(**data)


def decode_list(cls) -> Callable[[Any], list]:
    """Decoder for a cached list of `cls` items."""
    def _decode(data):
        if not isinstance(data, list):
            raise TypeError(f"expected list of {cls.__name__}, got {type(data).__name__}")
        return [cls.from_dict(item) for item in data]
    return _decode


@dataclass(frozen=True)
class CacheEntry:
    """
    One persisted cache record.
    Wire format: {"data": ..., "timestamp": <epoch-ms>, "expiresIn": <ms>}
    """
    data: Any
    written_at: int
    ttl_ms: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms - self.written_at > self.ttl_ms

    def to_json(self) -> str:
        return json.dumps(
            {"data": self.data, "timestamp": self.written_at, "expiresIn": self.ttl_ms},
            allow_nan=False,
        )

    @classmethod
    def from_json(cls, raw: str) -> "CacheEntry":
        """Parse a stored entry. Raises ValueError/TypeError if malformed."""
        item = json.loads(raw, parse_constant=_reject_constant)
        if not isinstance(item, dict) or "data" not in item:
            raise ValueError("cache entry is not an object with a data field")

        timestamp = item.get("timestamp")
        expires_in = item.get("expiresIn")
        for name, value in (("timestamp", timestamp), ("expiresIn", expires_in)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"cache entry {name} is not a number")
            # NaN compares False both ways, so such an entry would never expire
            if not math.isfinite(value):
                raise ValueError(f"cache entry {name} is not finite")
        if expires_in <= 0:
            raise ValueError("cache entry expiresIn must be positive")

        return cls(data=item["data"], written_at=timestamp, ttl_ms=expires_in)


@dataclass
class Country:
    """Country directory record (restcountries.com)."""
    name: str
    official_name: str
    cca2: str
    cca3: str
    capitals: List[str]
    population: int
    region: str
    flag_png: str
    flag_svg: str = ""
    flag_alt: Optional[str] = None
    subregion: Optional[str] = None
    area: Optional[float] = None
    languages: Dict[str, str] = field(default_factory=dict)
    currencies: Dict[str, str] = field(default_factory=dict)
    timezones: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "Country":
        return _build(cls, data)


@dataclass
class Weather:
    """Current conditions for one city (OpenWeatherMap, metric units)."""
    city: str
    country: Optional[str]
    temperature: float
    feels_like: float
    humidity: int
    condition: str
    description: str
    icon: str
    wind_speed: float

    @classmethod
    def from_dict(cls, data: dict) -> "Weather":
        return _build(cls, data)


@dataclass
class NewsArticle:
    title: str
    description: str
    url: str
    published_at: str
    source: str
    image_url: Optional[str] = None
    author: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "NewsArticle":
        return _build(cls, data)


@dataclass
class NewsPage:
    """One page of NewsAPI results."""
    articles: List[NewsArticle]
    total_results: int
    status: str

    @classmethod
    def from_dict(cls, data: dict) -> "NewsPage":
        if not isinstance(data, dict):
            raise TypeError(f"NewsPage: expected dict, got {type(data).__name__}")
        fields = dict(data)
        fields["articles"] = decode_list(NewsArticle)(fields.get("articles"))
        return cls(**fields)


@dataclass
class CryptoCurrency:
    """Market snapshot for one coin (CoinGecko, USD)."""
    id: str
    symbol: str
    name: str
    image: str
    current_price: Optional[float]
    price_change_percentage_24h: Optional[float]
    market_cap: Optional[float]
    market_cap_rank: Optional[int]

    @classmethod
    def from_dict(cls, data: dict) -> "CryptoCurrency":
        return _build(cls, data)


@dataclass
class UnsplashImage:
    id: str
    url: str
    raw_url: str
    full_url: str
    thumb_url: str
    description: str
    width: int
    height: int
    author: str
    author_url: str

    @classmethod
    def from_dict(cls, data: dict) -> "UnsplashImage":
        return _build(cls, data)


@dataclass
class Joke:
    """
    A joke from one of several public joke APIs.
    type is "single" (joke set) or "twopart" (setup + delivery set).
    """
    category: str
    type: str
    source: str
    joke: Optional[str] = None
    setup: Optional[str] = None
    delivery: Optional[str] = None
    id: Optional[str] = None
    safe: Optional[bool] = None

    @property
    def text(self) -> str:
        if self.type == "single":
            return self.joke or ""
        return f"{self.setup or ''}\n\n{self.delivery or ''}".strip()

    @classmethod
    def from_dict(cls, data: dict) -> "Joke":
        joke = _build(cls, data)
        if joke.type not in ("single", "twopart"):
            raise ValueError(f"Joke: unknown type {joke.type!r}")
        return joke


@dataclass
class SportCategory:
    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict) -> "SportCategory":
        return _build(cls, data)
