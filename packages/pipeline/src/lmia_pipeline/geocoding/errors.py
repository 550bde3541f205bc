"""
geocoding/errors.py — Exceptions raised by the geocoding subsystem.

Misses (no postal code, cache miss, provider miss, exhausted chain) are
normal control flow and never raise. Only persistence failures do, and
they are fatal to the run.
"""

from __future__ import annotations

from pathlib import Path


class GeocodingError(Exception):
    """Base class for geocoding subsystem errors."""


class PersistenceError(GeocodingError):
    """A persistent store could not be read or written."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class CachePersistenceError(PersistenceError):
    """The location cache table could not be read or written."""


class BogonPersistenceError(PersistenceError):
    """The bogon list could not be read or written."""
