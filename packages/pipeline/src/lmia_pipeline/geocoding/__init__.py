"""
lmia_pipeline.geocoding — postal-code resolution with persistent caching.

  postal        — extract/normalize Canadian postal codes from free text
  cache         — LocationCache: postal code → coordinates table
  bogons        — BogonStore: codes every provider failed to resolve
  providers/    — one adapter per external geocoding service
  chain         — ProviderChain: ordered fallback, turbo mode, premium budget
  orchestrator  — GeocodingOrchestrator: cache → bogons → chain
  stats         — StatsCollector: per-run counters and summary
  maintenance   — statistics, repair, and bogon reset for the stored files
"""

from lmia_pipeline.geocoding.bogons import BogonStore
from lmia_pipeline.geocoding.cache import LocationCache
from lmia_pipeline.geocoding.chain import ProviderChain
from lmia_pipeline.geocoding.errors import (
    BogonPersistenceError,
    CachePersistenceError,
    GeocodingError,
)
from lmia_pipeline.geocoding.orchestrator import GeocodingOrchestrator
from lmia_pipeline.geocoding.postal import PostalCodeExtractor, extract_postal_code
from lmia_pipeline.geocoding.stats import StatsCollector

__all__ = [
    "BogonStore",
    "LocationCache",
    "ProviderChain",
    "GeocodingOrchestrator",
    "PostalCodeExtractor",
    "extract_postal_code",
    "StatsCollector",
    "GeocodingError",
    "CachePersistenceError",
    "BogonPersistenceError",
]
