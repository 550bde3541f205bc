"""
geocoding/stats.py — Per-run geocoding counters.

A StatsCollector is created per orchestrator (never a module global), so
two orchestrators in the same process, as in tests, keep separate counts.

Counters:
  cache_hits      requests answered from the location cache
  api_calls       requests that entered the provider chain (once per
                  request, not once per provider tried)
  failed_lookups  requests where every provider missed
  provider_hits   successful resolutions, by provider name
"""

from __future__ import annotations

from collections import Counter

import structlog

from lmia_pipeline.geocoding.bogons import BogonStore
from lmia_pipeline.geocoding.cache import LocationCache
from lmia_shared.models.geocoding import StatsSnapshot

log = structlog.get_logger(__name__)


def _percent(ratio: float | None) -> str:
    return "n/a" if ratio is None else f"{ratio * 100:.0f}%"


class StatsCollector:
    def __init__(self) -> None:
        self.cache_hits = 0
        self.api_calls = 0
        self.failed_lookups = 0
        self.provider_hits: Counter[str] = Counter()

    def record_cache_hit(self) -> None:
        self.cache_hits += 1

    def record_api_call(self) -> None:
        self.api_calls += 1

    def record_failure(self) -> None:
        self.failed_lookups += 1

    def record_provider_hit(self, provider: str | None) -> None:
        if provider:
            self.provider_hits[provider] += 1

    def snapshot(
        self,
        cache: LocationCache | None = None,
        bogons: BogonStore | None = None,
    ) -> StatsSnapshot:
        return StatsSnapshot(
            cache_entries_total=cache.count() if cache is not None else 0,
            cache_hits=self.cache_hits,
            api_calls=self.api_calls,
            failed_lookups=self.failed_lookups,
            bogon_count=bogons.count() if bogons is not None else 0,
        )

    def summary_lines(self, snapshot: StatsSnapshot) -> list[str]:
        """Human-readable run summary, one line per figure."""
        lines = [
            "Geocoding performance summary:",
            f"   Cache entries: {snapshot.cache_entries_total}",
            f"   Cache hits: {snapshot.cache_hits}",
            f"   API calls: {snapshot.api_calls}",
            f"   Failed lookups: {snapshot.failed_lookups}",
            f"   Bogons: {snapshot.bogon_count}",
            f"   API success rate: {_percent(snapshot.success_rate)}",
            f"   Cache hit ratio: {_percent(snapshot.cache_hit_ratio)}",
        ]
        for provider, hits in sorted(self.provider_hits.items()):
            lines.append(f"   Resolved by {provider}: {hits}")
        return lines

    def log_summary(
        self,
        cache: LocationCache | None = None,
        bogons: BogonStore | None = None,
    ) -> StatsSnapshot:
        snap = self.snapshot(cache, bogons)
        log.info(
            "geocoding_summary",
            **snap.model_dump(),
            success_rate=snap.success_rate,
            cache_hit_ratio=snap.cache_hit_ratio,
            provider_hits=dict(self.provider_hits),
        )
        return snap
