"""
lmia_pipeline — postal-code geocoding for LMIA employer reports.

Architecture:
  geocoding/   — postal code extraction, location cache, bogon list,
                 provider chain, orchestrator, run statistics
  transforms/  — normalization of the employer and quarterly record formats
  pipelines/   — augment one CSV with coordinates; warm the cache from a directory
  utils/       — structlog configuration, exponential-backoff retry decorator

Quick start:
    import asyncio
    from lmia_pipeline.geocoding import GeocodingOrchestrator

    orchestrator = GeocodingOrchestrator.from_settings()
    print(asyncio.run(orchestrator.lookup_text("K1A 0A6")))

CLI:
    lmia-geocoder lookup K1A0A6
    lmia-geocoder augment outputs/csv/unprocessed/quarterly_format/2024q1.csv --format quarterly
    lmia-geocoder update-cache
    lmia-geocoder stats
"""

__version__ = "0.1.0"
