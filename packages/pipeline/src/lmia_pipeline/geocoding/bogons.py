"""
geocoding/bogons.py — Durable set of postal codes no provider could resolve.

One canonical postal code per line. A code lands here when the whole
provider chain was exhausted for it; the orchestrator consults this set
before any network call so a known-bad code never costs another
rate-limited request. Nothing removes entries automatically; use
`lmia-geocoder reset-bogons` to retry them.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from filelock import FileLock

from lmia_pipeline.geocoding.errors import BogonPersistenceError
from lmia_pipeline.geocoding.postal import normalize_postal_code

log = structlog.get_logger(__name__)


class BogonStore:
    """Plain set semantics over canonical postal codes, persisted as a line list."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = FileLock(str(self.path) + ".lock")
        self._codes: set[str] = set()
        self._loaded = False

    def load(self) -> None:
        try:
            lines = self.path.read_text(encoding="utf-8").splitlines() if self.path.exists() else []
        except OSError as exc:
            raise BogonPersistenceError(self.path, str(exc)) from exc
        self._codes = {c for c in (normalize_postal_code(line) for line in lines) if c}
        self._loaded = True
        log.debug("bogons_loaded", bogons_file=str(self.path), count=len(self._codes))

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def is_bogon(self, code: str | None) -> bool:
        key = normalize_postal_code(code)
        if not key:
            return False
        self._ensure_loaded()
        return key in self._codes

    def mark_bogon(self, code: str | None) -> bool:
        """
        Record *code* as unresolvable. Appends only if absent.

        Returns True if a line was written.

        Raises:
            BogonPersistenceError: the list could not be written.
        """
        key = normalize_postal_code(code)
        if not key:
            return False
        self._ensure_loaded()
        if key in self._codes:
            return False
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock:
                # Another process may have recorded it since we loaded.
                self.load()
                if key in self._codes:
                    return False
                needs_newline = self.path.exists() and self.path.stat().st_size > 0 and (
                    not self.path.read_bytes().endswith(b"\n")
                )
                with self.path.open("a", encoding="utf-8", newline="\n") as fh:
                    fh.write(("\n" if needs_newline else "") + key + "\n")
        except OSError as exc:
            raise BogonPersistenceError(self.path, str(exc)) from exc
        self._codes.add(key)
        log.info("bogon_marked", postal_code=key, bogons_file=str(self.path))
        return True

    def count(self) -> int:
        self._ensure_loaded()
        return len(self._codes)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and self.is_bogon(code)

    def codes(self) -> list[str]:
        self._ensure_loaded()
        return sorted(self._codes)
