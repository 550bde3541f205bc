"""
lmia_shared.models — Pydantic models shared by the geocoder and pipelines.

All models are immutable; the cache row model provides
  .from_fields(fields) -> CacheEntry
  .to_row() -> str
"""

from lmia_shared.models.geocoding import CacheEntry, GeocodeResult, StatsSnapshot

__all__ = [
    "CacheEntry",
    "GeocodeResult",
    "StatsSnapshot",
]
