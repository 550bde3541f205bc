"""
tests/conftest.py — Shared pytest fixtures for the pipeline test suite.

Provides:
  fixture_path()     — resolves paths to tests/fixtures/
  cache_path         — location cache file under tmp_path (not yet created)
  bogons_path        — bogon list file under tmp_path (not yet created)
  StubProvider       — in-memory provider with a fixed answer and a call count
  make_orchestrator  — factory wiring cache, bogons, and stub providers
  mock_http          — configured respx router for faking HTTP responses
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest
import respx

from lmia_pipeline.geocoding.bogons import BogonStore
from lmia_pipeline.geocoding.cache import LocationCache
from lmia_pipeline.geocoding.chain import ProviderChain
from lmia_pipeline.geocoding.orchestrator import GeocodingOrchestrator
from lmia_shared.constants import CACHE_HEADER
from lmia_shared.models.geocoding import GeocodeResult

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def fixture_path() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / "cache" / "location_cache.csv"


@pytest.fixture
def bogons_path(tmp_path: Path) -> Path:
    return tmp_path / "cache" / "bogons"


def write_cache(path: Path, *rows: str) -> Path:
    """Write a cache table with the standard header followed by *rows*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join([CACHE_HEADER, *rows]) + "\n", encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

class StubProvider:
    """
    Stands in for a GeocodingProvider: same name/premium/geocode() surface,
    no HTTP. `answers` maps canonical code → (lat, lon); anything else misses.
    """

    def __init__(
        self,
        name: str,
        answers: dict[str, tuple[str, str]] | None = None,
        *,
        premium: bool = False,
    ) -> None:
        self.name = name
        self.premium = premium
        self.answers = answers or {}
        self.calls: list[str] = []

    async def geocode(self, code: str) -> GeocodeResult:
        self.calls.append(code)
        if code in self.answers:
            lat, lon = self.answers[code]
            return GeocodeResult.found(lat, lon, self.name)
        return GeocodeResult.not_found()


@pytest.fixture
def make_orchestrator(
    cache_path: Path, bogons_path: Path
) -> Callable[..., GeocodingOrchestrator]:
    """
    Build an orchestrator over tmp-path stores.

    Usage in tests:
        orch = make_orchestrator([StubProvider("nominatim", {...})], turbo=True)
    """

    def _make(
        providers: Sequence[StubProvider] = (),
        *,
        turbo: bool = False,
        premium_budget: int = 0,
    ) -> GeocodingOrchestrator:
        cache = LocationCache(cache_path)
        cache.initialize()
        bogons = BogonStore(bogons_path)
        bogons.load()
        chain = ProviderChain(providers, turbo=turbo, premium_budget=premium_budget)  # type: ignore[arg-type]
        return GeocodingOrchestrator(cache, bogons, chain)

    return _make


# ---------------------------------------------------------------------------
# respx HTTP mock router
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_http():
    """
    Activate the respx mock router for all httpx requests.

    Usage in tests:
        def test_something(mock_http):
            mock_http.get("https://...").mock(return_value=httpx.Response(200, json={...}))
    """
    with respx.mock(assert_all_called=False) as router:
        yield router
