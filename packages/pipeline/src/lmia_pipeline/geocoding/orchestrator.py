"""
geocoding/orchestrator.py — Public entry point for postal-code resolution.

Per request:

    empty code ──► NotFound (no counters touched)
    CacheCheck ──hit──► cache_hits += 1 ──► Found
        │miss
    BogonCheck ──bogon──► NotFound
        │
    ProviderChain (api_calls += 1)
        ├─ first provider hit ──► Found
        └─ all missed ──► failed_lookups += 1, mark bogon ──► NotFound

Cache and bogon checks never sleep and never touch the network. The
orchestrator does not write the cache on success: the caller holds the
sample address/employer that belongs in the row, so it calls
LocationCache.insert() itself (resolve_and_cache() does exactly that).

Usage:
    orchestrator = GeocodingOrchestrator.from_settings()
    result = await orchestrator.resolve("A1C 6C9")
    text = await orchestrator.lookup_text("A1C6C9")   # "47.56,-52.70" or ","
"""

from __future__ import annotations

import httpx
import structlog

from lmia_pipeline.geocoding.bogons import BogonStore
from lmia_pipeline.geocoding.cache import LocationCache
from lmia_pipeline.geocoding.chain import ProviderChain
from lmia_pipeline.geocoding.postal import normalize_postal_code
from lmia_pipeline.geocoding.stats import StatsCollector
from lmia_shared.config import Settings, settings as default_settings
from lmia_shared.models.geocoding import GeocodeResult, StatsSnapshot

log = structlog.get_logger(__name__)


class GeocodingOrchestrator:
    def __init__(
        self,
        cache: LocationCache,
        bogons: BogonStore,
        chain: ProviderChain,
        stats: StatsCollector | None = None,
    ) -> None:
        self.cache = cache
        self.bogons = bogons
        self.chain = chain
        self.stats = stats or StatsCollector()

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> "GeocodingOrchestrator":
        """Wire cache, bogons, and provider chain from configuration; initialize the cache."""
        cfg = config or default_settings
        cache = LocationCache(cfg.geocoding_cache_file)
        cache.initialize()
        bogons = BogonStore(cfg.geocoding_bogons_file)
        bogons.load()
        chain = ProviderChain.from_settings(cfg, client=client)
        return cls(cache, bogons, chain)

    async def resolve(self, code: str | None) -> GeocodeResult:
        key = normalize_postal_code(code)
        if not key:
            return GeocodeResult.not_found()

        entry = self.cache.lookup(key)
        if entry is not None:
            self.stats.record_cache_hit()
            log.debug("cache_hit", postal_code=key)
            return GeocodeResult.found(entry.latitude, entry.longitude, "cache")

        if self.bogons.is_bogon(key):
            log.debug("bogon_skip", postal_code=key)
            return GeocodeResult.not_found()

        self.stats.record_api_call()
        log.info("geocode_lookup", postal_code=key, api_call=self.stats.api_calls)
        result = await self.chain.resolve(key)

        if result.is_found:
            self.stats.record_provider_hit(result.provider)
            log.info(
                "geocode_found",
                postal_code=key,
                latitude=result.latitude,
                longitude=result.longitude,
                provider=result.provider,
            )
            return result

        self.stats.record_failure()
        self.bogons.mark_bogon(key)
        log.warning("geocode_exhausted", postal_code=key, providers=self.chain.names())
        return GeocodeResult.not_found()

    async def lookup_text(self, code: str | None) -> str:
        """Resolve and render at the text boundary: `"lat,lon"` or `","`."""
        return (await self.resolve(code)).to_text()

    async def resolve_and_cache(
        self,
        code: str | None,
        address: str | None = None,
        employer: str | None = None,
    ) -> GeocodeResult:
        """Resolve, then persist a new Found result with its sample address/employer."""
        result = await self.resolve(code)
        if result.is_found and result.provider != "cache":
            self.cache.insert(code, result.latitude, result.longitude, address, employer)
        return result

    def snapshot(self) -> StatsSnapshot:
        return self.stats.snapshot(self.cache, self.bogons)

    def log_summary(self) -> StatsSnapshot:
        return self.stats.log_summary(self.cache, self.bogons)
