"""
models/geocoding.py — Pydantic models for postal-code geocoding.

CacheEntry     one row of the location cache table
GeocodeResult  outcome of a single resolution (found or not found)
StatsSnapshot  read-only view of a run's geocoding counters
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from lmia_shared.constants import CACHE_COLUMNS, CACHE_DELIMITER, EMPTY_COORDINATES


class CacheEntry(BaseModel):
    """Matches one row of the location cache table exactly."""

    model_config = ConfigDict(frozen=True)

    postal_code: str
    latitude: str
    longitude: str
    sample_address: str
    sample_employer: str

    @property
    def coordinates(self) -> str:
        return f"{self.latitude},{self.longitude}"

    @classmethod
    def from_fields(cls, fields: list[str] | tuple[str, ...]) -> "CacheEntry":
        if len(fields) != len(CACHE_COLUMNS):
            raise ValueError(
                f"cache row must have {len(CACHE_COLUMNS)} fields, got {len(fields)}"
            )
        postal_code, latitude, longitude, address, employer = fields
        return cls(
            postal_code=postal_code,
            latitude=latitude,
            longitude=longitude,
            sample_address=address,
            sample_employer=employer,
        )

    def to_row(self) -> str:
        """Serialize as a single delimited line (no trailing newline)."""
        return CACHE_DELIMITER.join(
            (
                self.postal_code,
                self.latitude,
                self.longitude,
                self.sample_address,
                self.sample_employer,
            )
        )


class GeocodeResult(BaseModel):
    """
    Either Found(latitude, longitude, provider) or NotFound.

    NotFound is represented by all fields being None; use the
    `found()` / `not_found()` constructors rather than building one by hand.
    """

    model_config = ConfigDict(frozen=True)

    latitude: str | None = None
    longitude: str | None = None
    provider: str | None = None

    @classmethod
    def found(cls, latitude: str, longitude: str, provider: str) -> "GeocodeResult":
        return cls(latitude=latitude, longitude=longitude, provider=provider)

    @classmethod
    def not_found(cls) -> "GeocodeResult":
        return cls()

    @property
    def is_found(self) -> bool:
        return bool(self.latitude) and bool(self.longitude)

    def to_text(self) -> str:
        """`"lat,lon"` when found, otherwise the `","` empty pair."""
        if not self.is_found:
            return EMPTY_COORDINATES
        return f"{self.latitude},{self.longitude}"


class StatsSnapshot(BaseModel):
    """Counters for one geocoding run, plus derived ratios."""

    model_config = ConfigDict(frozen=True)

    cache_entries_total: int = 0
    cache_hits: int = 0
    api_calls: int = 0
    failed_lookups: int = 0
    bogon_count: int = 0

    @property
    def success_rate(self) -> float | None:
        """Share of provider-chain requests that resolved; None before any call."""
        if self.api_calls == 0:
            return None
        return (self.api_calls - self.failed_lookups) / self.api_calls

    @property
    def cache_hit_ratio(self) -> float | None:
        total = self.cache_hits + self.api_calls
        if total == 0:
            return None
        return self.cache_hits / total
