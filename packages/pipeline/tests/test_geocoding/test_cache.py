"""
tests/test_geocoding/test_cache.py — LocationCache persistence and lookups.

All files live under tmp_path; nothing touches the real outputs/ tree.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from conftest import write_cache
from lmia_pipeline.geocoding.cache import LocationCache, parse_cache_line
from lmia_pipeline.geocoding.errors import CachePersistenceError
from lmia_shared.constants import CACHE_HEADER
from lmia_shared.models.geocoding import CacheEntry

LUNENBURG_ROW = "B0J2C0;44.3698843;-64.2836766;PO Box219, Lunenburg, NS B0J2C0;Cilantro, The Cooks Shop Inc"


# ---------------------------------------------------------------------------
# parse_cache_line()
# ---------------------------------------------------------------------------

class TestParseCacheLine:
    def test_five_field_row(self):
        entry = parse_cache_line(LUNENBURG_ROW + "\n")
        assert entry == CacheEntry(
            postal_code="B0J2C0",
            latitude="44.3698843",
            longitude="-64.2836766",
            sample_address="PO Box219, Lunenburg, NS B0J2C0",
            sample_employer="Cilantro, The Cooks Shop Inc",
        )

    def test_header_is_skipped(self):
        assert parse_cache_line(CACHE_HEADER) is None

    def test_blank_is_skipped(self):
        assert parse_cache_line("\n") is None

    def test_missing_coordinates_is_skipped(self):
        assert parse_cache_line("A1C6C9;;;addr;emp") is None

    def test_extra_delimiters_fold_into_employer(self):
        entry = parse_cache_line("A1C6C9;47.5;-52.7;addr;Acme;Foods")
        assert entry is not None
        assert entry.sample_employer == "Acme;Foods"

    def test_three_field_row(self):
        entry = parse_cache_line("A1C6C9;47.5;-52.7")
        assert entry is not None
        assert entry.coordinates == "47.5,-52.7"
        assert entry.sample_address == ""

    def test_quoted_key_and_coordinates(self):
        entry = parse_cache_line('"A1C6C9";"47.5";"-52.7";"215 Water St";"Acme"')
        assert entry is not None
        assert entry.postal_code == "A1C6C9"
        assert entry.coordinates == "47.5,-52.7"

    def test_quoted_header_is_skipped(self):
        assert parse_cache_line('"Postal Code";"Latitude";"Longitude"') is None


# ---------------------------------------------------------------------------
# initialize() / load()
# ---------------------------------------------------------------------------

class TestInitialize:
    def test_creates_file_with_header(self, cache_path: Path):
        cache = LocationCache(cache_path)
        cache.initialize()
        assert cache_path.read_text() == CACHE_HEADER + "\n"
        assert len(cache) == 0

    def test_existing_file_is_untouched(self, cache_path: Path):
        write_cache(cache_path, LUNENBURG_ROW)
        before = cache_path.read_bytes()
        cache = LocationCache(cache_path)
        cache.initialize()
        assert cache_path.read_bytes() == before
        assert cache.count() == 1

    def test_unwritable_directory_raises(self, tmp_path: Path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        cache = LocationCache(blocker / "location_cache.csv")
        with pytest.raises(CachePersistenceError):
            cache.initialize()

    def test_missing_file_loads_empty(self, cache_path: Path):
        cache = LocationCache(cache_path)
        cache.load()
        assert cache.count() == 0
        assert not cache_path.exists()

    def test_duplicate_keys_keep_first(self, cache_path: Path):
        write_cache(cache_path, "A1C6C9;1.0;2.0;a;e", "A1C6C9;3.0;4.0;a;e")
        cache = LocationCache(cache_path)
        cache.load()
        assert cache.lookup("A1C6C9").coordinates == "1.0,2.0"

    def test_malformed_rows_are_skipped(self, cache_path: Path):
        write_cache(cache_path, "garbage", LUNENBURG_ROW, ";;;")
        cache = LocationCache(cache_path)
        cache.load()
        assert cache.count() == 1


# ---------------------------------------------------------------------------
# lookup()
# ---------------------------------------------------------------------------

class TestLookup:
    def test_lookup_normalizes_key(self, cache_path: Path):
        write_cache(cache_path, LUNENBURG_ROW)
        cache = LocationCache(cache_path)
        cache.initialize()
        entry = cache.lookup("b0j 2c0")
        assert entry is not None
        assert entry.coordinates == "44.3698843,-64.2836766"

    def test_miss_returns_none(self, cache_path: Path):
        cache = LocationCache(cache_path)
        cache.initialize()
        assert cache.lookup("K1A0A6") is None
        assert cache.lookup("") is None
        assert "K1A0A6" not in cache

    def test_entries_in_file_order(self, cache_path: Path):
        write_cache(cache_path, LUNENBURG_ROW, "A1C6C9;47.5;-52.7;a;e")
        cache = LocationCache(cache_path)
        assert [e.postal_code for e in cache.entries()] == ["B0J2C0", "A1C6C9"]

    def test_contains(self, cache_path: Path):
        write_cache(cache_path, LUNENBURG_ROW)
        cache = LocationCache(cache_path)
        assert "B0J2C0" in cache
        assert 42 not in cache


# ---------------------------------------------------------------------------
# insert()
# ---------------------------------------------------------------------------

class TestInsert:
    def test_insert_then_lookup(self, cache_path: Path):
        cache = LocationCache(cache_path)
        cache.initialize()
        assert cache.insert("A1C 6C9", "47.5630653", "-52.7076773", "215 Water St", "Acme") is True
        assert cache.lookup("A1C6C9").coordinates == "47.5630653,-52.7076773"

    def test_row_persists_with_five_fields(self, cache_path: Path):
        cache = LocationCache(cache_path)
        cache.initialize()
        cache.insert(
            "B0J2C0",
            "44.3698843",
            "-64.2836766",
            "PO Box219, Lunenburg, NS B0J2C0",
            "Cilantro; The Cooks Shop Inc",
        )
        lines = cache_path.read_text().splitlines()
        assert lines == [CACHE_HEADER, LUNENBURG_ROW]
        assert all(len(line.split(";")) == 5 for line in lines)

    def test_first_write_wins(self, cache_path: Path):
        cache = LocationCache(cache_path)
        cache.initialize()
        assert cache.insert("K1A0A6", "45.4", "-75.7") is True
        assert cache.insert("K1A0A6", "0.0", "0.0") is False
        assert cache.lookup("K1A0A6").coordinates == "45.4,-75.7"
        assert len(cache_path.read_text().splitlines()) == 2

    def test_missing_sample_fields_become_unknown(self, cache_path: Path):
        cache = LocationCache(cache_path)
        cache.initialize()
        cache.insert("K1A0A6", "45.4", "-75.7")
        assert cache_path.read_text().splitlines()[-1] == "K1A0A6;45.4;-75.7;Unknown;Unknown"

    @pytest.mark.parametrize("code, lat, lon", [("", "1", "2"), ("K1A0A6", "", "2"), ("K1A0A6", "1", None)])
    def test_incomplete_input_is_rejected(self, cache_path: Path, code, lat, lon):
        cache = LocationCache(cache_path)
        cache.initialize()
        assert cache.insert(code, lat, lon) is False
        assert cache.count() == 0

    def test_reload_sees_inserted_rows(self, cache_path: Path):
        cache = LocationCache(cache_path)
        cache.initialize()
        cache.insert("A1C6C9", "47.5", "-52.7", "addr", "emp")
        fresh = LocationCache(cache_path)
        fresh.load()
        assert fresh.lookup("A1C6C9") == cache.lookup("A1C6C9")

    def test_insert_repairs_missing_trailing_newline(self, cache_path: Path):
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text(CACHE_HEADER + "\n" + LUNENBURG_ROW)
        cache = LocationCache(cache_path)
        cache.load()
        cache.insert("K1A0A6", "45.4", "-75.7")
        assert cache_path.read_text().splitlines() == [
            CACHE_HEADER,
            LUNENBURG_ROW,
            "K1A0A6;45.4;-75.7;Unknown;Unknown",
        ]

    def test_insert_into_empty_file_writes_header(self, cache_path: Path):
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text("")
        cache = LocationCache(cache_path)
        cache.load()
        cache.insert("K1A0A6", "45.4", "-75.7")
        assert cache_path.read_text().splitlines()[0] == CACHE_HEADER

    def test_quoted_legacy_row_blocks_duplicate(self, cache_path: Path):
        write_cache(cache_path, '"A1C6C9";47.5;-52.7;"215 Water St";"Acme"')
        cache = LocationCache(cache_path)
        cache.initialize()
        assert cache.lookup("A1C6C9").coordinates == "47.5,-52.7"
        assert cache.insert("A1C6C9", "0.0", "0.0") is False
        assert cache_path.read_text().count("A1C6C9") == 1

    def test_row_appended_by_other_writer_wins(self, cache_path: Path):
        first = LocationCache(cache_path)
        first.initialize()
        second = LocationCache(cache_path)
        second.initialize()

        assert first.insert("K1A0A6", "45.4", "-75.7") is True
        # second has not reloaded, but must not append a competing row
        assert second.insert("K1A0A6", "0.0", "0.0") is False
        assert second.lookup("K1A0A6").coordinates == "45.4,-75.7"
        assert cache_path.read_text().count("K1A0A6") == 1

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
    def test_unwritable_file_raises(self, cache_path: Path):
        cache = LocationCache(cache_path)
        cache.initialize()
        cache_path.chmod(0o444)
        try:
            with pytest.raises(CachePersistenceError):
                cache.insert("K1A0A6", "45.4", "-75.7")
        finally:
            cache_path.chmod(0o644)
