"""
constants.py — shared constants used across the geocoder and pipelines.

Cache table layout, provider names, LMIA record formats, and province
codes are defined here so every module agrees on them.
"""

from __future__ import annotations

from typing import Final, Literal

# ---------------------------------------------------------------------------
# Location cache table
# ---------------------------------------------------------------------------
CACHE_DELIMITER: Final[str] = ";"
CACHE_COLUMNS: Final[tuple[str, ...]] = (
    "Postal Code",
    "Latitude",
    "Longitude",
    "Sample Address",
    "Sample Employer",
)
CACHE_HEADER: Final[str] = CACHE_DELIMITER.join(CACHE_COLUMNS)

# Placeholder written when a sample field is empty after sanitization
UNKNOWN_PLACEHOLDER: Final[str] = "Unknown"

# Free-text fields are capped before being persisted
MAX_SAMPLE_FIELD_LENGTH: Final[int] = 200

# Sentinel at the text boundary for "no coordinates"
EMPTY_COORDINATES: Final[str] = ","

# ---------------------------------------------------------------------------
# Geocoding providers
# ---------------------------------------------------------------------------
# Pacing delay applied after every call, in seconds.
# Nominatim uses settings.effective_sleep_timer instead of a fixed value.
PROVIDER_PACING: Final[dict[str, float]] = {
    "geocoder_ca": 0.5,   # max 2 requests/second
    "google": 0.05,
    "mapbox": 0.1,
    "opencage": 1.0,      # free tier: 1 request/second
}

# ---------------------------------------------------------------------------
# LMIA record formats
# ---------------------------------------------------------------------------
RecordFormat = Literal["employer", "quarterly"]

EMPLOYER_FORMAT_COLUMNS: Final[tuple[str, ...]] = (
    "Province/Territory",
    "Employer",
    "Address",
    "Occupation",
    "Approved Positions",
)

QUARTERLY_FORMAT_COLUMNS: Final[tuple[str, ...]] = (
    "Province/Territory",
    "Program Stream",
    "Employer",
    "Address",
    "Occupation",
    "Incorporate Status",
    "Approved LMIAs",
    "Approved Positions",
)

# Output columns appended to every augmented file
OUTPUT_COLUMNS: Final[tuple[str, ...]] = ("Postal Code", "Latitude", "Longitude")

# ---------------------------------------------------------------------------
# Provinces and territories: SGC code -> abbreviation
# ---------------------------------------------------------------------------
PROVINCE_ABBREVIATIONS: Final[dict[str, str]] = {
    "10": "NL",
    "11": "PE",
    "12": "NS",
    "13": "NB",
    "24": "QC",
    "35": "ON",
    "46": "MB",
    "47": "SK",
    "48": "AB",
    "59": "BC",
    "60": "YT",
    "61": "NT",
    "62": "NU",
}
