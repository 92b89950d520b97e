"""
REST Countries provider: country directory lookups.
Source: restcountries.com v3.1 (free, no API key).
"""
import logging
from typing import List
from urllib.parse import quote

import requests

from ..config import API_ENDPOINTS, REQUEST_TIMEOUT_SECONDS
from ..exceptions import UpstreamError
from ..models import Country

logger = logging.getLogger(__name__)

# Small field set keeps the full directory well under the cache's size ceiling
BASIC_FIELDS = "name,flags,capital,population,cca3,cca2,region"


def _to_country(raw: dict) -> Country:
    name = raw.get("name") or {}
    flags = raw.get("flags") or {}
    currencies = raw.get("currencies") or {}
    return Country(
        name=name.get("common", ""),
        official_name=name.get("official", name.get("common", "")),
        cca2=raw.get("cca2", ""),
        cca3=raw.get("cca3", ""),
        capitals=list(raw.get("capital") or []),
        population=int(raw.get("population") or 0),
        region=raw.get("region", ""),
        flag_png=flags.get("png", ""),
        flag_svg=flags.get("svg", ""),
        flag_alt=flags.get("alt"),
        subregion=raw.get("subregion"),
        area=raw.get("area"),
        languages=dict(raw.get("languages") or {}),
        currencies={
            code: (c.get("name", code) if isinstance(c, dict) else str(c))
            for code, c in currencies.items()
        },
        timezones=list(raw.get("timezones") or []),
    )


class CountriesProvider:
    """
    Fetches country records from REST Countries.
    List endpoints request BASIC_FIELDS first and fall back to the full
    record when the API rejects the fields parameter (HTTP 400).
    """

    def __init__(self, base_url: str = API_ENDPOINTS["countries"]):
        self._base_url = base_url

    def _get(self, path: str, basic_fields: bool = True) -> requests.Response:
        url = f"{self._base_url}/{path}"
        params = {"fields": BASIC_FIELDS} if basic_fields else None
        resp = requests.get(
            url,
            params=params,
            headers={"Accept": "application/json"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        if resp.status_code == 400 and basic_fields:
            logger.warning(f"Countries: fields parameter rejected for {path}, fetching full records")
            return self._get(path, basic_fields=False)
        return resp

    def _get_list(self, path: str, what: str, missing_ok: bool = False) -> List[Country]:
        resp = self._get(path)
        if resp.status_code == 404 and missing_ok:
            return []
        if not resp.ok:
            raise UpstreamError(f"Failed to {what}: {resp.status_code}", resp.status_code)
        return [_to_country(raw) for raw in resp.json()]

    def get_all(self) -> List[Country]:
        return self._get_list("all", "fetch countries")

    def search(self, name: str) -> List[Country]:
        """Countries whose name matches `name`. No match → empty list."""
        return self._get_list(
            f"name/{quote(name, safe='')}",
            "search countries",
            missing_ok=True,
        )

    def get_by_region(self, region: str) -> List[Country]:
        return self._get_list(
            f"region/{quote(region, safe='')}",
            "fetch countries by region",
        )

    def get_by_code(self, code: str) -> Country:
        """Full record for one country (all fields, for the detail view)."""
        resp = self._get(f"alpha/{quote(code, safe='')}", basic_fields=False)
        if not resp.ok:
            raise UpstreamError(f"Failed to fetch country: {resp.status_code}", resp.status_code)
        data = resp.json()
        return _to_country(data[0] if isinstance(data, list) else data)
