"""
geocoding/cache.py — Durable postal code → coordinates cache.

The cache is a semicolon-delimited text table with a header row:

    Postal Code;Latitude;Longitude;Sample Address;Sample Employer
    B0J2C0;44.3698843;-64.2836766;PO Box219, Lunenburg, NS B0J2C0;Cilantro, The Cooks Shop Inc

Fields are never quoted. Free text is passed through sanitize_field(),
which removes the delimiter and quote characters, so every row splits
into exactly five fields.

The table is hydrated once into an in-memory dict (O(1) lookups) and is
append-only afterwards. Inserts are first-write-wins: an existing key is
never overwritten. Appends hold a file lock and first pick up any rows
another process appended since this process last read the file, so two
writers sharing one table cannot both add the same postal code.

Usage:
    cache = LocationCache(settings.geocoding_cache_file)
    cache.initialize()
    entry = cache.lookup("A1C 6C9")        # CacheEntry | None
    cache.insert("A1C6C9", "47.5630653", "-52.7076773", address, employer)
"""

from __future__ import annotations

from pathlib import Path

import structlog
from filelock import FileLock

from lmia_pipeline.geocoding.errors import CachePersistenceError
from lmia_pipeline.geocoding.postal import normalize_postal_code
from lmia_pipeline.geocoding.sanitize import sanitize_coordinate, sanitize_field, unquote
from lmia_shared.constants import CACHE_COLUMNS, CACHE_DELIMITER, CACHE_HEADER
from lmia_shared.models.geocoding import CacheEntry

log = structlog.get_logger(__name__)


def parse_cache_line(line: str) -> CacheEntry | None:
    """
    Parse one persisted row. Returns None for the header, blank lines, and
    rows without a postal code and both coordinates.

    Rows written before the delimiter discipline existed may carry extra
    delimiters in the employer field; those trailing fields are folded
    back into the employer rather than dropped.
    Quote characters around the key and coordinates, left by writers that
    used CSV quoting, are ignored so such rows index under the bare code.
    """
    line = line.rstrip("\r\n")
    if not line or line == CACHE_HEADER or line.startswith(CACHE_COLUMNS[0] + CACHE_DELIMITER):
        return None
    fields = line.split(CACHE_DELIMITER)
    if len(fields) < 3:
        return None
    if unquote(fields[0]) == CACHE_COLUMNS[0]:
        return None
    postal_code = normalize_postal_code(unquote(fields[0]))
    latitude, longitude = unquote(fields[1]), unquote(fields[2])
    if not postal_code or not latitude or not longitude:
        return None
    address = fields[3] if len(fields) > 3 else ""
    employer = CACHE_DELIMITER.join(fields[4:]) if len(fields) > 4 else ""
    return CacheEntry.from_fields([postal_code, latitude, longitude, address, employer])


class LocationCache:
    """Read-through, write-once cache keyed by canonical postal code."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = FileLock(str(self.path) + ".lock")
        self._entries: dict[str, CacheEntry] = {}
        self._offset = 0          # bytes of the file already hydrated
        self._loaded = False
        self._log = log.bind(cache_file=str(self.path))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Create the table with its header if missing; never touch an existing file."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock:
                if not self.path.exists():
                    self.path.write_text(CACHE_HEADER + "\n", encoding="utf-8")
                    self._log.info("cache_created")
        except OSError as exc:
            raise CachePersistenceError(self.path, str(exc)) from exc
        self.load()

    def load(self) -> None:
        """Hydrate the in-memory index from the table. A missing file is an empty cache."""
        self._entries.clear()
        self._offset = 0
        self._read_new_rows()
        self._loaded = True
        self._log.info("cache_loaded", entries=len(self._entries))

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _read_new_rows(self) -> int:
        """Index rows appended past self._offset. Existing keys keep their first value."""
        if not self.path.exists():
            return 0
        added = 0
        skipped = 0
        try:
            with self.path.open("rb") as fh:
                fh.seek(self._offset)
                for raw in fh:
                    complete = raw.endswith(b"\n")
                    # An unterminated last line is indexed but re-read next time.
                    if complete:
                        self._offset += len(raw)
                    entry = parse_cache_line(raw.decode("utf-8", errors="replace"))
                    if entry is None:
                        if raw.strip() and not raw.startswith(CACHE_COLUMNS[0].encode()):
                            skipped += 1
                        continue
                    if entry.postal_code not in self._entries:
                        self._entries[entry.postal_code] = entry
                        added += 1
        except OSError as exc:
            raise CachePersistenceError(self.path, str(exc)) from exc
        if skipped:
            self._log.warning("cache_rows_skipped", count=skipped)
        return added

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def lookup(self, code: str | None) -> CacheEntry | None:
        """Exact-match read by canonical key. A miss returns None."""
        key = normalize_postal_code(code)
        if not key:
            return None
        self._ensure_loaded()
        return self._entries.get(key)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and self.lookup(code) is not None

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._entries)

    def count(self) -> int:
        return len(self)

    def entries(self) -> list[CacheEntry]:
        self._ensure_loaded()
        return list(self._entries.values())

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def _ends_with_newline(self, size: int) -> bool:
        with self.path.open("rb") as fh:
            fh.seek(size - 1)
            return fh.read(1) == b"\n"

    def insert(
        self,
        code: str | None,
        latitude: str | float | None,
        longitude: str | float | None,
        address: str | None = None,
        employer: str | None = None,
    ) -> bool:
        """
        Append a row for *code* unless one already exists.

        Returns True if a row was written, False if the key was already
        cached or the input was incomplete.

        Raises:
            CachePersistenceError: the table could not be written.
        """
        key = normalize_postal_code(code)
        lat = sanitize_coordinate(latitude)
        lon = sanitize_coordinate(longitude)
        if not key or not lat or not lon:
            return False

        self._ensure_loaded()
        if key in self._entries:
            return False

        entry = CacheEntry(
            postal_code=key,
            latitude=lat,
            longitude=lon,
            sample_address=sanitize_field(address),
            sample_employer=sanitize_field(employer),
        )

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock:
                self._read_new_rows()
                if key in self._entries:
                    self._log.debug("cache_insert_lost_race", postal_code=key)
                    return False
                size = self.path.stat().st_size if self.path.exists() else 0
                prefix = ""
                if size == 0:
                    prefix = CACHE_HEADER + "\n"
                elif not self._ends_with_newline(size):
                    prefix = "\n"
                with self.path.open("a", encoding="utf-8", newline="\n") as fh:
                    fh.write(prefix + entry.to_row() + "\n")
                self._offset = self.path.stat().st_size
        except OSError as exc:
            raise CachePersistenceError(self.path, str(exc)) from exc

        self._entries[key] = entry
        self._log.info(
            "cache_insert",
            postal_code=key,
            latitude=lat,
            longitude=lon,
            employer=entry.sample_employer,
        )
        return True
