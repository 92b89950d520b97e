"""
CoinGecko provider: cryptocurrency market snapshots in USD.
Source: api.coingecko.com v3 (free, no API key).
"""
import logging
from typing import List

import requests

from ..config import API_ENDPOINTS, REQUEST_TIMEOUT_SECONDS
from ..exceptions import UpstreamError
from ..models import CryptoCurrency

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 20


def _to_coin(raw: dict) -> CryptoCurrency:
    return CryptoCurrency(
        id=raw.get("id", ""),
        symbol=raw.get("symbol", ""),
        name=raw.get("name", ""),
        image=raw.get("image", ""),
        current_price=raw.get("current_price"),
        price_change_percentage_24h=raw.get("price_change_percentage_24h"),
        market_cap=raw.get("market_cap"),
        market_cap_rank=raw.get("market_cap_rank"),
    )


class CryptoProvider:

    def __init__(self, base_url: str = API_ENDPOINTS["crypto"]):
        self._base_url = base_url

    def _markets(self, **params) -> List[CryptoCurrency]:
        resp = requests.get(
            f"{self._base_url}/coins/markets",
            params={
                "vs_currency": "usd",
                "order": "market_cap_desc",
                "page": 1,
                "sparkline": "false",
                **params,
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        if not resp.ok:
            raise UpstreamError(
                f"Failed to fetch cryptocurrency market data: {resp.status_code}",
                resp.status_code,
            )
        return [_to_coin(raw) for raw in resp.json()]

    def top_markets(self, limit: int = 50) -> List[CryptoCurrency]:
        """Top `limit` coins by market cap."""
        return self._markets(per_page=limit)

    def search(self, query: str) -> List[CryptoCurrency]:
        """
        Coins matching `query`. Two calls: /search resolves ids, then
        /coins/markets prices the first MAX_SEARCH_RESULTS of them.
        """
        resp = requests.get(
            f"{self._base_url}/search",
            params={"query": query},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        if not resp.ok:
            raise UpstreamError(f"Failed to search cryptocurrencies: {resp.status_code}", resp.status_code)

        coins = resp.json().get("coins") or []
        ids = [c["id"] for c in coins[:MAX_SEARCH_RESULTS] if c.get("id")]
        if not ids:
            return []
        return self._markets(ids=",".join(ids), per_page=MAX_SEARCH_RESULTS)
