"""
providers/mapbox.py — Mapbox forward geocoding (premium).

Endpoint:
  GET /geocoding/v5/mapbox.places/{code}.json?country=ca&types=postcode&limit=1&access_token=...

Response shape (GeoJSON, note lon/lat order):
  { "features": [ { "center": [-52.7076, 47.5630], "place_type": ["postcode"] } ] }
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from lmia_pipeline.geocoding.providers.base import GeocodingProvider, ProviderMiss, validate_coordinates
from lmia_shared.config import settings
from lmia_shared.constants import PROVIDER_PACING


class MapboxProvider(GeocodingProvider):
    name = "mapbox"
    premium = True

    def __init__(self, access_token: str, *, base_url: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("pacing_delay", PROVIDER_PACING[self.name])
        super().__init__(**kwargs)
        self._token = access_token
        self._url = base_url or settings.mapbox_geocoding_url

    async def _request(self, client: httpx.AsyncClient, code: str) -> httpx.Response:
        params = {
            "access_token": self._token,
            "country": "ca",
            "types": "postcode",
            "limit": "1",
        }
        return await client.get(
            f"{self._url}/{quote(code)}.json", params=params, timeout=self._timeout
        )

    def parse(self, response: httpx.Response) -> tuple[str, str]:
        features = response.json().get("features") or []
        if not features:
            raise ProviderMiss("no features")
        first = features[0]
        coords = first.get("center") or (first.get("geometry") or {}).get("coordinates")
        if not coords or len(coords) < 2:
            raise ProviderMiss("feature without coordinates")
        lon, lat = coords[0], coords[1]
        return validate_coordinates(lat, lon)
