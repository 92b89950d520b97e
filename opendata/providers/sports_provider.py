"""
SportSRC provider: sport categories, fixtures, match detail and league results.
Source: api.sportsrc.org (free, no API key).
Responses come wrapped as {"success": true, "data": [...]}; list helpers unwrap them.
"""
import logging
import re
from typing import Any, List, Optional

import requests

from ..config import API_ENDPOINTS, REQUEST_TIMEOUT_SECONDS
from ..exceptions import NotFoundError, UpstreamError
from ..models import SportCategory

logger = logging.getLogger(__name__)

RESULT_KINDS = ("leagues", "tables", "scores")

_LEAGUE_CHARS = re.compile(r"[^a-zA-Z0-9:._-]")


def _unwrap_list(payload: Any) -> List[Any]:
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"] if isinstance(payload["data"], list) else []
    if isinstance(payload, list):
        return payload
    return []


class SportsProvider:

    def __init__(self, base_url: str = API_ENDPOINTS["sports"]):
        self._base_url = base_url

    def _fetch(self, **params) -> Any:
        try:
            resp = requests.get(f"{self._base_url}/", params=params, timeout=REQUEST_TIMEOUT_SECONDS)
        except requests.ConnectionError as exc:
            raise UpstreamError("Network error. Please check your internet connection.") from exc

        if resp.status_code == 404:
            raise NotFoundError("404 Not Found")
        if resp.status_code == 503:
            raise UpstreamError("Service temporarily unavailable. Please try again later.", 503)
        if not resp.ok:
            raise UpstreamError(f"API error: {resp.status_code} {resp.reason}", resp.status_code)
        return resp.json()

    def get_categories(self) -> List[SportCategory]:
        return [
            SportCategory(id=str(c.get("id", "")), name=str(c.get("name", "")))
            for c in _unwrap_list(self._fetch(data="sports"))
            if isinstance(c, dict)
        ]

    def get_matches(self, category: str) -> List[dict]:
        if not category or not category.strip():
            raise ValueError("Category is required")
        return _unwrap_list(self._fetch(data="matches", category=category.lower()))

    def get_match_detail(self, category: str, match_id: str) -> Any:
        if not category or not category.strip():
            raise ValueError("Category is required")
        if not match_id or not match_id.strip():
            raise ValueError("Match ID is required")
        return self._fetch(data="detail", category=category.lower(), id=match_id)

    def get_results(self, kind: str, league: Optional[str] = None) -> Any:
        """
        Leagues, tables or scores. `league` applies to tables and scores only;
        characters outside [A-Za-z0-9:._-] are stripped.
        """
        if kind not in RESULT_KINDS:
            raise ValueError("Category is required (leagues, tables, or scores)")

        params = {"data": "results", "category": kind}
        if league and kind in ("tables", "scores"):
            clean_league = _LEAGUE_CHARS.sub("", league.strip())
            if clean_league:
                params["league"] = clean_league

        try:
            return self._fetch(**params)
        except NotFoundError:
            if kind in ("tables", "scores"):
                raise NotFoundError(
                    f'League "{league}" not found. Please check the league code. '
                    'Common formats: "PL" (Premier League), "NBA", "c:1", etc. '
                    "Try fetching leagues first to see available options."
                )
            raise NotFoundError("No leagues found for this category. Please try a different sport.")
