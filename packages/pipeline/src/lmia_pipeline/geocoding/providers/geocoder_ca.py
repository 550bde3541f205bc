"""
providers/geocoder_ca.py — geocoder.ca postal-code lookup.

Endpoint:
  GET /?postal={code}&geoit=XML

Response shape (success):
  <geodata><latt>47.563065</latt><longt>-52.707677</longt>...</geodata>

Response shape (failure):
  <geodata><error><code>008</code><description>...</description></error></geodata>

Throttled to 2 requests/second on the free tier.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any

import httpx

from lmia_pipeline.geocoding.providers.base import GeocodingProvider, ProviderMiss, validate_coordinates
from lmia_shared.config import settings
from lmia_shared.constants import PROVIDER_PACING


class GeocoderCaProvider(GeocodingProvider):
    """Secondary free geocoder; second in the standard chain."""

    name = "geocoder_ca"

    def __init__(self, *, base_url: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("pacing_delay", PROVIDER_PACING[self.name])
        super().__init__(**kwargs)
        self._url = (base_url or settings.geocoder_ca_url) + "/"

    async def _request(self, client: httpx.AsyncClient, code: str) -> httpx.Response:
        return await client.get(
            self._url,
            params={"postal": code, "geoit": "XML"},
            timeout=self._timeout,
        )

    def parse(self, response: httpx.Response) -> tuple[str, str]:
        root = ET.fromstring(response.text)
        error = root.find("error")
        if error is not None:
            raise ProviderMiss(
                f"geocoder.ca error {error.findtext('code', '')}: "
                f"{error.findtext('description', '')}".strip()
            )
        return validate_coordinates(root.findtext("latt"), root.findtext("longt"))
