"""
tests/test_geocoding/test_stats.py — StatsCollector counters and summary text.
"""

from __future__ import annotations

from pathlib import Path

from conftest import write_cache
from lmia_pipeline.geocoding.bogons import BogonStore
from lmia_pipeline.geocoding.cache import LocationCache
from lmia_pipeline.geocoding.stats import StatsCollector
from lmia_shared.models.geocoding import StatsSnapshot


class TestStatsCollector:
    def test_counters_start_at_zero(self):
        snap = StatsCollector().snapshot()
        assert snap == StatsSnapshot()
        assert snap.success_rate is None
        assert snap.cache_hit_ratio is None

    def test_snapshot_reads_store_sizes(self, cache_path: Path, bogons_path: Path):
        write_cache(cache_path, "A1C6C9;47.5;-52.7;a;e", "K1A0A6;45.4;-75.7;a;e")
        bogons = BogonStore(bogons_path)
        bogons.mark_bogon("Z9Z9Z9")
        snap = StatsCollector().snapshot(LocationCache(cache_path), bogons)
        assert snap.cache_entries_total == 2
        assert snap.bogon_count == 1

    def test_ratios(self):
        stats = StatsCollector()
        stats.record_cache_hit()
        for _ in range(4):
            stats.record_api_call()
        stats.record_failure()
        snap = stats.snapshot()
        assert snap.success_rate == 0.75
        assert snap.cache_hit_ratio == 0.2

    def test_collectors_are_independent(self):
        a, b = StatsCollector(), StatsCollector()
        a.record_api_call()
        assert b.api_calls == 0

    def test_provider_hits(self):
        stats = StatsCollector()
        stats.record_provider_hit("nominatim")
        stats.record_provider_hit("nominatim")
        stats.record_provider_hit(None)
        assert dict(stats.provider_hits) == {"nominatim": 2}


class TestSummaryLines:
    def test_summary_with_activity(self):
        stats = StatsCollector()
        stats.record_api_call()
        stats.record_api_call()
        stats.record_failure()
        stats.record_provider_hit("geocoder_ca")
        lines = stats.summary_lines(stats.snapshot())

        assert lines[0] == "Geocoding performance summary:"
        assert "   API calls: 2" in lines
        assert "   Failed lookups: 1" in lines
        assert "   API success rate: 50%" in lines
        assert lines[-1] == "   Resolved by geocoder_ca: 1"

    def test_summary_without_calls(self):
        stats = StatsCollector()
        lines = stats.summary_lines(stats.snapshot())
        assert "   API success rate: n/a" in lines
        assert "   Cache hit ratio: n/a" in lines

    def test_log_summary_returns_snapshot(self):
        stats = StatsCollector()
        stats.record_cache_hit()
        assert stats.log_summary().cache_hits == 1
