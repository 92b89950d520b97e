"""
Joke provider: one random joke from a rotating set of free joke APIs.
None of the sources need a key. Any source may be down at any time, so
each is tried in random order until one answers.
"""
import logging
import random
from typing import Callable, List, Optional

import requests

from ..config import API_ENDPOINTS, REQUEST_TIMEOUT_SECONDS
from ..models import Joke

logger = logging.getLogger(__name__)


def _get_json(url: str, **kwargs) -> Optional[dict]:
    try:
        resp = requests.get(url, timeout=REQUEST_TIMEOUT_SECONDS, **kwargs)
        if not resp.ok:
            return None
        return resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.debug(f"Jokes: {url} failed: {exc}")
        return None


def _id(value) -> Optional[str]:
    return None if value is None else str(value)


def jokeapi_joke(category: str = "Any") -> Optional[Joke]:
    data = _get_json(
        f"{API_ENDPOINTS['jokes']}/{category}",
        params={"safe-mode": "", "type": "single,twopart"},
    )
    if not data or data.get("error"):
        return None
    return Joke(
        category=data.get("category") or category,
        type="single" if data.get("type") == "single" else "twopart",
        joke=data.get("joke"),
        setup=data.get("setup"),
        delivery=data.get("delivery"),
        id=_id(data.get("id")),
        safe=data.get("safe"),
        source="JokeAPI",
    )


def official_joke(path: str = "random", category: str = None) -> Optional[Joke]:
    data = _get_json(f"https://official-joke-api.appspot.com/jokes/{path}")
    if isinstance(data, list):
        data = data[0] if data else None
    if not data:
        return None
    return Joke(
        category=category or data.get("type") or "General",
        type="twopart",
        setup=data.get("setup"),
        delivery=data.get("punchline"),
        id=_id(data.get("id")),
        source="Official Joke API",
    )


def dad_joke() -> Optional[Joke]:
    data = _get_json("https://icanhazdadjoke.com/", headers={"Accept": "application/json"})
    if not data:
        return None
    return Joke(category="Dad Joke", type="single", joke=data.get("joke"),
                id=_id(data.get("id")), source="icanhazdadjoke")


def chuck_norris_joke() -> Optional[Joke]:
    data = _get_json("https://api.chucknorris.io/jokes/random")
    if not data:
        return None
    return Joke(category="Chuck Norris", type="single", joke=data.get("value"),
                id=_id(data.get("id")), source="Chuck Norris API")


def geek_joke() -> Optional[Joke]:
    data = _get_json("https://geek-jokes.sameerkumar.website/api", params={"format": "json"})
    if not data:
        return None
    return Joke(category="Geek", type="single", joke=data.get("joke"), source="Geek Jokes")


def funny_quote() -> Optional[Joke]:
    data = _get_json("https://api.quotable.io/random", params={"tags": "funny"})
    if not data:
        return None
    return Joke(
        category="Funny Quote",
        type="single",
        joke=f"\"{data.get('content', '')}\" - {data.get('author', 'Unknown')}",
        id=_id(data.get("_id")),
        source="Quotable",
    )


DEFAULT_SOURCES: List[Callable[[], Optional[Joke]]] = [
    lambda: jokeapi_joke("Any"),
    lambda: jokeapi_joke("Programming"),
    lambda: jokeapi_joke("Miscellaneous"),
    lambda: jokeapi_joke("Pun"),
    official_joke,
    dad_joke,
    chuck_norris_joke,
    geek_joke,
    lambda: official_joke("programming/random", category="Programming"),
    funny_quote,
]


class JokeProvider:

    def __init__(self, sources: List[Callable[[], Optional[Joke]]] = None):
        self._sources = list(sources if sources is not None else DEFAULT_SOURCES)

    def random_joke(self) -> Optional[Joke]:
        """First joke from the shuffled sources, or None if every source fails."""
        shuffled = random.sample(self._sources, len(self._sources))
        for source in shuffled:
            joke = source()
            if joke is not None:
                return joke
        logger.warning("Jokes: every joke source failed")
        return None
