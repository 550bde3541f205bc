"""
lmia_pipeline.geocoding.providers — geocoding service adapters.

Each provider wraps one external service:
  NominatimProvider   — OpenStreetMap Nominatim (free)
  GeocoderCaProvider  — geocoder.ca (free)
  GoogleProvider      — Google Geocoding API (premium, key required)
  MapboxProvider      — Mapbox Geocoding (premium, token required)
  OpenCageProvider    — OpenCage (premium, key required)
"""

from lmia_pipeline.geocoding.providers.base import GeocodingProvider, ProviderMiss
from lmia_pipeline.geocoding.providers.geocoder_ca import GeocoderCaProvider
from lmia_pipeline.geocoding.providers.google import GoogleProvider
from lmia_pipeline.geocoding.providers.mapbox import MapboxProvider
from lmia_pipeline.geocoding.providers.nominatim import NominatimProvider
from lmia_pipeline.geocoding.providers.opencage import OpenCageProvider

__all__ = [
    "GeocodingProvider",
    "ProviderMiss",
    "NominatimProvider",
    "GeocoderCaProvider",
    "GoogleProvider",
    "MapboxProvider",
    "OpenCageProvider",
]
