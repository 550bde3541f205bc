"""
lmia_shared — shared configuration, constants, and models for the LMIA geocoder.

Usage:
    from lmia_shared.config import settings
    from lmia_shared.models.geocoding import CacheEntry, GeocodeResult
    from lmia_shared.geo import fsa_to_province_code
    from lmia_shared.constants import CACHE_HEADER, PROVINCE_ABBREVIATIONS
"""

__version__ = "0.1.0"
