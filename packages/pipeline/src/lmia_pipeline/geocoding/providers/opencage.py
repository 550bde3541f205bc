"""
providers/opencage.py — OpenCage geocoder (premium).

Endpoint:
  GET /geocode/v1/json?q={code}&countrycode=ca&limit=1&no_annotations=1&key=...

Response shape:
  { "status": { "code": 200 }, "results": [ { "geometry": { "lat": 47.56, "lng": -52.70 } } ] }

The free tier allows one request per second.
"""

from __future__ import annotations

from typing import Any

import httpx

from lmia_pipeline.geocoding.postal import display_form
from lmia_pipeline.geocoding.providers.base import GeocodingProvider, ProviderMiss, validate_coordinates
from lmia_shared.config import settings
from lmia_shared.constants import PROVIDER_PACING


class OpenCageProvider(GeocodingProvider):
    name = "opencage"
    premium = True

    def __init__(self, api_key: str, *, base_url: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("pacing_delay", PROVIDER_PACING[self.name])
        super().__init__(**kwargs)
        self._api_key = api_key
        self._url = base_url or settings.opencage_url

    async def _request(self, client: httpx.AsyncClient, code: str) -> httpx.Response:
        params = {
            "q": display_form(code),
            "key": self._api_key,
            "countrycode": "ca",
            "limit": "1",
            "no_annotations": "1",
        }
        return await client.get(self._url, params=params, timeout=self._timeout)

    def parse(self, response: httpx.Response) -> tuple[str, str]:
        results = response.json().get("results") or []
        if not results:
            raise ProviderMiss("no results")
        geometry = results[0].get("geometry") or {}
        return validate_coordinates(geometry.get("lat"), geometry.get("lng"))
