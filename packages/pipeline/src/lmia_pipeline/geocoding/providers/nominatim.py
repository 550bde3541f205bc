"""
providers/nominatim.py — OpenStreetMap Nominatim postal-code search.

Endpoint:
  GET /search?postalcode={code}&country=CA&format=json&limit=1

Response shape:
  [ { "lat": "47.5630653", "lon": "-52.7076773", "display_name": "...", ... } ]

An empty list means no match. Nominatim's usage policy allows one request
per second and requires an identifying User-Agent.
"""

from __future__ import annotations

from typing import Any

import httpx

from lmia_pipeline.geocoding.providers.base import GeocodingProvider, ProviderMiss, validate_coordinates
from lmia_shared.config import settings


class NominatimProvider(GeocodingProvider):
    """Free community geocoder; first in the standard chain."""

    name = "nominatim"

    def __init__(self, *, base_url: str | None = None, user_agent: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("pacing_delay", settings.effective_sleep_timer)
        super().__init__(**kwargs)
        self._url = base_url or settings.nominatim_url
        self._user_agent = user_agent or settings.geocoding_user_agent

    async def _request(self, client: httpx.AsyncClient, code: str) -> httpx.Response:
        params = {"postalcode": code, "country": "CA", "format": "json", "limit": "1"}
        return await client.get(
            self._url,
            params=params,
            headers={"User-Agent": self._user_agent},
            timeout=self._timeout,
        )

    def parse(self, response: httpx.Response) -> tuple[str, str]:
        payload = response.json()
        if not payload:
            raise ProviderMiss("no results")
        first = payload[0]
        return validate_coordinates(first.get("lat"), first.get("lon"))
