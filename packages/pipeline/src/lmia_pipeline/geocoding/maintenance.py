"""
geocoding/maintenance.py — Offline maintenance of the cache and bogon files.

These operations rewrite files the geocoder otherwise only appends to, so
they take the same file locks and always leave a timestamped backup.

  cache_statistics()  summary figures for the web viewer / operators
  repair_cache()      normalize a table damaged by older writers
  reset_bogons()      manual retry: forget some or all bogons

Usage:
    from lmia_pipeline.geocoding.maintenance import cache_statistics, repair_cache

    stats = cache_statistics(settings.geocoding_cache_file)
    result = repair_cache(settings.geocoding_cache_file)
    print(result.rows_written, result.backup_path)
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import polars as pl
import structlog
from filelock import FileLock

from lmia_pipeline.geocoding.errors import BogonPersistenceError, CachePersistenceError
from lmia_pipeline.geocoding.postal import normalize_postal_code
from lmia_pipeline.geocoding.sanitize import sanitize_field, unquote
from lmia_shared.constants import CACHE_COLUMNS, CACHE_DELIMITER, CACHE_HEADER
from lmia_shared.geo import postal_code_province
from lmia_shared.models.geocoding import CacheEntry

log = structlog.get_logger(__name__)


def _human_size(num_bytes: int) -> str:
    size = float(num_bytes)
    for unit in ("B", "K", "M", "G"):
        if size < 1024 or unit == "G":
            return f"{size:.0f}{unit}" if unit == "B" else f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}G"


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


def _backup(path: Path) -> Path:
    backup = path.with_name(f"{path.name}.backup.{_timestamp()}")
    shutil.copy2(path, backup)
    return backup


def _atomic_write(path: Path, text: str) -> None:
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    os.replace(tmp, path)


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def read_cache_frame(path: Path | str) -> pl.DataFrame:
    """Load the cache table as an all-string polars DataFrame."""
    path = Path(path)
    if not path.exists() or path.stat().st_size == 0:
        return pl.DataFrame(schema={col: pl.String for col in CACHE_COLUMNS})
    return pl.read_csv(
        path,
        separator=CACHE_DELIMITER,
        quote_char=None,
        has_header=True,
        infer_schema_length=0,
        truncate_ragged_lines=True,
        encoding="utf8-lossy",
    )


def cache_statistics(path: Path | str) -> dict[str, Any]:
    """
    Summarize the cache table.

    Returns a JSON-serialisable dict:
      cache_statistics: total_postal_codes, unique_employers, unique_addresses,
                        by_province, file_size, last_updated, cache_file_exists
      metadata:         generated_at, cache_file_path
    """
    path = Path(path)
    exists = path.exists()
    df = read_cache_frame(path)
    df = df.filter(pl.col("Postal Code").is_not_null() & (pl.col("Postal Code") != ""))

    by_province: dict[str, int] = {}
    if not df.is_empty():
        provinces = df.select(
            pl.col("Postal Code")
            .map_elements(postal_code_province, return_dtype=pl.String)
            .fill_null("??")
            .alias("province")
        )
        counts = provinces.group_by("province").len().sort("province")
        by_province = dict(zip(counts["province"].to_list(), counts["len"].to_list()))

    stat = path.stat() if exists else None
    return {
        "cache_statistics": {
            "total_postal_codes": df.height,
            "unique_employers": df["Sample Employer"].drop_nulls().n_unique() if df.height else 0,
            "unique_addresses": df["Sample Address"].drop_nulls().n_unique() if df.height else 0,
            "by_province": by_province,
            "file_size": _human_size(stat.st_size) if stat else "0B",
            "last_updated": (
                datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
                if stat
                else ""
            ),
            "cache_file_exists": exists,
        },
        "metadata": {
            "generated_at": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"),
            "cache_file_path": str(path),
        },
    }


# ---------------------------------------------------------------------------
# Repair
# ---------------------------------------------------------------------------


@dataclass
class RepairResult:
    """Summary of a repair_cache() pass."""

    rows_read: int = 0
    rows_written: int = 0
    rows_dropped: int = 0
    duplicate_keys: int = 0
    fields_cleaned: int = 0
    backup_path: Path | None = None


def repair_cache(path: Path | str) -> RepairResult:
    """
    Rewrite the cache table into the clean five-field, unquoted layout.

    - rows without a postal code or coordinates are dropped
    - surplus delimiters in the employer field are folded back into it
    - quote characters around the key and coordinates are removed
    - quote characters, whitespace runs and exact whole-string duplicated
      text are cleaned by sanitize_field()
    - only the first row per postal code is kept

    Raises:
        CachePersistenceError: the table is missing or could not be rewritten.
    """
    path = Path(path)
    result = RepairResult()
    if not path.exists():
        raise CachePersistenceError(path, "cache file not found")

    try:
        with FileLock(str(path) + ".lock"):
            result.backup_path = _backup(path)
            seen: dict[str, CacheEntry] = {}
            for raw in path.read_text(encoding="utf-8", errors="replace").splitlines():
                if not raw.strip() or raw.startswith(CACHE_COLUMNS[0] + CACHE_DELIMITER):
                    continue
                fields = raw.split(CACHE_DELIMITER)
                if unquote(fields[0]) == CACHE_COLUMNS[0]:
                    continue
                result.rows_read += 1
                code = normalize_postal_code(unquote(fields[0]))
                latitude = unquote(fields[1]) if len(fields) > 1 else ""
                longitude = unquote(fields[2]) if len(fields) > 2 else ""
                if not code or not latitude or not longitude:
                    result.rows_dropped += 1
                    continue
                if code in seen:
                    result.duplicate_keys += 1
                    continue
                address = fields[3] if len(fields) > 3 else ""
                employer = ", ".join(fields[4:]) if len(fields) > 4 else ""
                clean_address, clean_employer = sanitize_field(address), sanitize_field(employer)
                result.fields_cleaned += (clean_address != address) + (clean_employer != employer)
                seen[code] = CacheEntry(
                    postal_code=code,
                    latitude=latitude,
                    longitude=longitude,
                    sample_address=clean_address,
                    sample_employer=clean_employer,
                )
            lines = [CACHE_HEADER, *(entry.to_row() for entry in seen.values())]
            _atomic_write(path, "\n".join(lines) + "\n")
            result.rows_written = len(seen)
    except OSError as exc:
        raise CachePersistenceError(path, str(exc)) from exc

    log.info(
        "cache_repaired",
        cache_file=str(path),
        rows_read=result.rows_read,
        rows_written=result.rows_written,
        rows_dropped=result.rows_dropped,
        duplicate_keys=result.duplicate_keys,
        fields_cleaned=result.fields_cleaned,
        backup=str(result.backup_path),
    )
    return result


# ---------------------------------------------------------------------------
# Bogon reset
# ---------------------------------------------------------------------------


def reset_bogons(path: Path | str, codes: list[str] | None = None) -> int:
    """
    Remove *codes* (or every entry, when None) from the bogon list.

    Returns the number of entries removed.

    Raises:
        BogonPersistenceError: the list could not be rewritten.
    """
    path = Path(path)
    if not path.exists():
        return 0
    targets = {normalize_postal_code(c) for c in codes} if codes is not None else None
    try:
        with FileLock(str(path) + ".lock"):
            current = [
                normalize_postal_code(line)
                for line in path.read_text(encoding="utf-8").splitlines()
                if line.strip()
            ]
            if targets is None:
                kept: list[str] = []
            else:
                kept = [c for c in current if c not in targets]
            removed = len(current) - len(kept)
            if removed:
                _backup(path)
                _atomic_write(path, "".join(f"{c}\n" for c in kept))
    except OSError as exc:
        raise BogonPersistenceError(path, str(exc)) from exc
    log.info("bogons_reset", bogons_file=str(path), removed=removed, remaining=len(kept))
    return removed
