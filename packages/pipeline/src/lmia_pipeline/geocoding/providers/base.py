"""
providers/base.py — Abstract base class for geocoding provider adapters.

Each concrete provider must implement:
  _request()  — build and send one HTTP request for a canonical postal code
  parse()     — pull (latitude, longitude) strings out of the response

geocode() wraps both: it never raises for provider-side trouble. Network
errors, timeouts, non-2xx responses, provider-reported "no match", and
null/malformed coordinates all come back as GeocodeResult.not_found().
After every call, success or failure, the provider sleeps for its pacing
delay so its rate limit is respected.
"""

from __future__ import annotations

import asyncio
import math
import time
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

import httpx
import structlog

from lmia_pipeline.utils.retry import with_retry
from lmia_shared.config import settings
from lmia_shared.models.geocoding import GeocodeResult

log = structlog.get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

# Anything in here means "this provider did not find it".
PROVIDER_MISS_ERRORS: tuple[type[Exception], ...] = (
    httpx.HTTPError,
    ValueError,
    KeyError,
    IndexError,
    TypeError,
    AttributeError,
    ET.ParseError,
)


class ProviderMiss(ValueError):
    """The provider answered, but without usable coordinates."""


def validate_coordinates(latitude: object, longitude: object) -> tuple[str, str]:
    """
    Return the pair as decimal strings, or raise ProviderMiss.

    Rejects None, "null", empty strings, NaN, and out-of-range values.
    """
    if latitude is None or longitude is None:
        raise ProviderMiss("null coordinates")
    lat_s, lon_s = str(latitude).strip(), str(longitude).strip()
    if not lat_s or not lon_s or "null" in (lat_s.lower(), lon_s.lower()):
        raise ProviderMiss("empty coordinates")
    lat, lon = float(lat_s), float(lon_s)
    if math.isnan(lat) or math.isnan(lon):
        raise ProviderMiss("NaN coordinates")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise ProviderMiss(f"coordinates out of range: {lat_s},{lon_s}")
    return lat_s, lon_s


class GeocodingProvider(ABC):
    """Abstract base for postal-code geocoding services."""

    # Override in subclass; used in logs and GeocodeResult.provider
    name: str = "unknown"
    # Paid / higher-throughput services sit behind the premium budget
    premium: bool = False

    def __init__(
        self,
        *,
        pacing_delay: float = 1.0,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.pacing_delay = pacing_delay
        self._timeout = timeout if timeout is not None else settings.geocoding_timeout
        self._client = client
        self._sleep = sleep
        self._log = log.bind(provider=self.name)

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @abstractmethod
    async def _request(self, client: httpx.AsyncClient, code: str) -> httpx.Response:
        """Send one request for canonical postal code *code*."""
        ...

    @abstractmethod
    def parse(self, response: httpx.Response) -> tuple[str, str]:
        """
        Extract (latitude, longitude) from a 2xx response.

        Raises:
            ProviderMiss (or any PROVIDER_MISS_ERRORS type) when the
            response holds no usable coordinate pair.
        """
        ...

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    @with_retry(max_attempts=2, base_delay=0.25, max_delay=2.0, retry_on=(httpx.TransportError,))
    async def _fetch(self, code: str) -> httpx.Response:
        if self._client is not None:
            response = await self._request(self._client, code)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await self._request(client, code)
        response.raise_for_status()
        return response

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    async def geocode(self, code: str) -> GeocodeResult:
        """Resolve one canonical postal code. Never raises for provider failures."""
        t0 = time.monotonic()
        try:
            response = await self._fetch(code)
            latitude, longitude = self.parse(response)
        except PROVIDER_MISS_ERRORS as exc:
            self._log.warning(
                "provider_miss",
                postal_code=code,
                error_type=type(exc).__name__,
                error=str(exc),
                duration_ms=int((time.monotonic() - t0) * 1000),
            )
            return GeocodeResult.not_found()
        finally:
            if self.pacing_delay > 0:
                await self._sleep(self.pacing_delay)

        self._log.info(
            "provider_hit",
            postal_code=code,
            latitude=latitude,
            longitude=longitude,
            duration_ms=int((time.monotonic() - t0) * 1000),
        )
        return GeocodeResult.found(latitude, longitude, self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(pacing_delay={self.pacing_delay})"
