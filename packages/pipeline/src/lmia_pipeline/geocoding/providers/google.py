"""
providers/google.py — Google Geocoding API (premium).

Endpoint:
  GET /maps/api/geocode/json?address={A1C 6C9}&components=country:CA&key=...

Response shape:
  { "status": "OK",
    "results": [ { "geometry": { "location": { "lat": 47.56, "lng": -52.70 } } } ] }

Any status other than OK (ZERO_RESULTS, OVER_QUERY_LIMIT, REQUEST_DENIED,
INVALID_REQUEST) is a miss. Billed per request; turbo mode puts this
provider first when a key is configured.
"""

from __future__ import annotations

from typing import Any

import httpx

from lmia_pipeline.geocoding.postal import display_form
from lmia_pipeline.geocoding.providers.base import GeocodingProvider, ProviderMiss, validate_coordinates
from lmia_shared.config import settings
from lmia_shared.constants import PROVIDER_PACING


class GoogleProvider(GeocodingProvider):
    name = "google"
    premium = True

    def __init__(self, api_key: str, *, base_url: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("pacing_delay", PROVIDER_PACING[self.name])
        super().__init__(**kwargs)
        self._api_key = api_key
        self._url = base_url or settings.google_geocoding_url

    async def _request(self, client: httpx.AsyncClient, code: str) -> httpx.Response:
        params = {
            "address": display_form(code),
            "components": "country:CA",
            "key": self._api_key,
        }
        return await client.get(self._url, params=params, timeout=self._timeout)

    def parse(self, response: httpx.Response) -> tuple[str, str]:
        payload = response.json()
        status = payload.get("status")
        if status != "OK":
            raise ProviderMiss(f"status {status}")
        results = payload.get("results") or []
        if not results:
            raise ProviderMiss("empty results")
        location = results[0]["geometry"]["location"]
        return validate_coordinates(location.get("lat"), location.get("lng"))
