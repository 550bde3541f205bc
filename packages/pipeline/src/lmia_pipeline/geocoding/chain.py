"""
geocoding/chain.py — Ordered provider fallback chain.

Standard order:   nominatim → geocoder_ca → google → mapbox → opencage
                  (premium providers only when their credential is set)
Turbo order:      google → nominatim → geocoder_ca → mapbox → opencage
                  (only when turbo mode is on AND a Google key is set;
                  otherwise turbo changes nothing about the order)

The chain stops at the first provider that returns coordinates. A
provider miss of any kind moves on to the next entry; the chain itself
never raises.

Premium providers can be capped with a per-chain call budget
(settings.geocoding_premium_budget, 0 = unlimited). Once spent, premium
providers are skipped and only the free services are tried.

Usage:
    chain = ProviderChain.from_settings()
    result = await chain.resolve("A1C6C9")
"""

from __future__ import annotations

from collections.abc import Sequence

import httpx
import structlog

from lmia_pipeline.geocoding.providers.base import GeocodingProvider
from lmia_pipeline.geocoding.providers.geocoder_ca import GeocoderCaProvider
from lmia_pipeline.geocoding.providers.google import GoogleProvider
from lmia_pipeline.geocoding.providers.mapbox import MapboxProvider
from lmia_pipeline.geocoding.providers.nominatim import NominatimProvider
from lmia_pipeline.geocoding.providers.opencage import OpenCageProvider
from lmia_shared.config import Settings, settings as default_settings
from lmia_shared.models.geocoding import GeocodeResult

log = structlog.get_logger(__name__)

TURBO_PROVIDER = "google"


class ProviderChain:
    """Fixed, ordered sequence of providers tried until one succeeds."""

    def __init__(
        self,
        providers: Sequence[GeocodingProvider],
        *,
        turbo: bool = False,
        premium_budget: int = 0,
    ) -> None:
        self._standard = list(providers)
        self.turbo = turbo
        self.premium_budget = premium_budget
        self.premium_calls = 0
        self._budget_logged = False

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> "ProviderChain":
        """Build the standard chain from configured credentials."""
        cfg = config or default_settings
        common = {"timeout": cfg.geocoding_timeout, "client": client}

        providers: list[GeocodingProvider] = [
            NominatimProvider(
                base_url=cfg.nominatim_url,
                user_agent=cfg.geocoding_user_agent,
                pacing_delay=cfg.effective_sleep_timer,
                **common,
            ),
            GeocoderCaProvider(base_url=cfg.geocoder_ca_url, **common),
        ]
        if cfg.google_geocoding_api_key:
            providers.append(
                GoogleProvider(cfg.google_geocoding_api_key, base_url=cfg.google_geocoding_url, **common)
            )
        if cfg.mapbox_access_token:
            providers.append(
                MapboxProvider(cfg.mapbox_access_token, base_url=cfg.mapbox_geocoding_url, **common)
            )
        if cfg.opencage_api_key:
            providers.append(
                OpenCageProvider(cfg.opencage_api_key, base_url=cfg.opencage_url, **common)
            )

        chain = cls(
            providers,
            turbo=cfg.geocoding_turbo_mode,
            premium_budget=cfg.geocoding_premium_budget,
        )
        log.info(
            "provider_chain_built",
            order=chain.names(),
            turbo=chain.turbo,
            premium_budget=chain.premium_budget or "unlimited",
            credentials=cfg.configured_providers(),
        )
        return chain

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def ordered(self) -> list[GeocodingProvider]:
        """Providers in the order they will be tried."""
        if not self.turbo:
            return list(self._standard)
        premium_first = [p for p in self._standard if p.name == TURBO_PROVIDER]
        if not premium_first:
            return list(self._standard)
        return premium_first + [p for p in self._standard if p.name != TURBO_PROVIDER]

    def names(self) -> list[str]:
        return [p.name for p in self.ordered()]

    def __len__(self) -> int:
        return len(self._standard)

    # ------------------------------------------------------------------
    # Budget
    # ------------------------------------------------------------------

    def _budget_allows(self, provider: GeocodingProvider) -> bool:
        if not provider.premium or self.premium_budget <= 0:
            return True
        if self.premium_calls < self.premium_budget:
            return True
        if not self._budget_logged:
            log.warning(
                "premium_budget_exhausted",
                premium_budget=self.premium_budget,
                premium_calls=self.premium_calls,
            )
            self._budget_logged = True
        return False

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, code: str) -> GeocodeResult:
        """Try each provider in order; first Found wins. Never raises."""
        tried: list[str] = []
        for provider in self.ordered():
            if not self._budget_allows(provider):
                continue
            if provider.premium:
                self.premium_calls += 1
            tried.append(provider.name)
            result = await provider.geocode(code)
            if result.is_found:
                return result
        log.info("provider_chain_exhausted", postal_code=code, tried=tried)
        return GeocodeResult.not_found()
