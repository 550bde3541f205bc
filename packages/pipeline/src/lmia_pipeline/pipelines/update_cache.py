"""
pipelines/update_cache.py — Warm the location cache from unprocessed CSVs.

Walks the two layout directories under the unprocessed CSV root:

    <csv_dir>/employer_format/*.csv
    <csv_dir>/quarterly_format/*.csv

newest file first (file names start with the publish date), extracts
every postal code, skips the ones already cached, and resolves the rest.
Each new coordinate is cached with the first address/employer it was
seen with. Rows whose text contains "test " are fixtures left in some
releases and are ignored.

Usage:
    from lmia_pipeline.pipelines.update_cache import run
    result = await run()
    print(result.new_entries)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path

import polars as pl

from lmia_pipeline.geocoding.orchestrator import GeocodingOrchestrator
from lmia_pipeline.transforms.records import (
    ADDRESS_COL,
    EMPLOYER_COL,
    POSTAL_CODE_COL,
    add_postal_codes,
    first_samples,
    normalize_records,
    read_lmia_csv,
)
from lmia_pipeline.utils.logging import get_logger
from lmia_shared.config import settings
from lmia_shared.constants import RecordFormat

log = get_logger(__name__, pipeline="update_cache")

LAYOUT_DIRS: dict[RecordFormat, str] = {
    "employer": "employer_format",
    "quarterly": "quarterly_format",
}


@dataclass
class UpdateResult:
    """Summary of one cache warm-up run."""

    files_found: int = 0
    files_processed: int = 0
    files_failed: int = 0
    rows_processed: int = 0
    postal_codes_found: int = 0
    already_cached: int = 0
    new_entries: int = 0
    initial_cache_size: int = 0
    final_cache_size: int = 0
    duration_ms: int = 0


def discover_files(csv_dir: Path) -> list[tuple[RecordFormat, Path]]:
    """(layout, path) pairs, employer files first, each group newest first."""
    found: list[tuple[RecordFormat, Path]] = []
    for fmt, sub in LAYOUT_DIRS.items():
        folder = csv_dir / sub
        if folder.is_dir():
            found.extend((fmt, p) for p in sorted(folder.glob("*.csv"), reverse=True))
    return found


def _drop_test_rows(df: pl.DataFrame) -> pl.DataFrame:
    return df.filter(
        ~(pl.col(EMPLOYER_COL).str.contains("test ", literal=True)
          | pl.col(ADDRESS_COL).str.contains("test ", literal=True))
    )


async def run(
    csv_dir: Path | str | None = None,
    *,
    orchestrator: GeocodingOrchestrator | None = None,
) -> UpdateResult:
    """
    Resolve and cache every uncached postal code found under *csv_dir*.

    A file that does not fit its layout is logged and skipped. Persistence
    errors are not caught: an unwritable cache ends the run.
    """
    t0 = time.monotonic()
    root = Path(csv_dir) if csv_dir else settings.csv_unprocessed_dir
    orchestrator = orchestrator or GeocodingOrchestrator.from_settings()
    cache = orchestrator.cache

    result = UpdateResult(initial_cache_size=cache.count())
    files = discover_files(root)
    result.files_found = len(files)
    log.info(
        "update_cache_start",
        csv_dir=str(root),
        files=len(files),
        cache_size=result.initial_cache_size,
        turbo=orchestrator.chain.turbo,
    )

    for fmt, path in files:
        file_log = log.bind(source_file=path.name, record_format=fmt)
        try:
            df = add_postal_codes(normalize_records(read_lmia_csv(path), fmt))
        except (OSError, ValueError, pl.exceptions.PolarsError) as exc:
            result.files_failed += 1
            file_log.error("file_skipped", error=str(exc))
            continue

        df = _drop_test_rows(df)
        result.files_processed += 1
        result.rows_processed += df.height
        samples = first_samples(df)
        result.postal_codes_found += samples.height

        new_here = 0
        for row in samples.iter_rows(named=True):
            code = row[POSTAL_CODE_COL]
            if code in cache:
                result.already_cached += 1
                continue
            before = cache.count()
            await orchestrator.resolve_and_cache(code, row[ADDRESS_COL], row[EMPLOYER_COL])
            if cache.count() > before:
                new_here += 1
        result.new_entries += new_here
        file_log.info(
            "file_processed",
            rows=df.height,
            postal_codes=samples.height,
            new_entries=new_here,
        )

    result.final_cache_size = cache.count()
    result.duration_ms = int((time.monotonic() - t0) * 1000)
    log.info(
        "update_cache_complete",
        files_processed=result.files_processed,
        files_failed=result.files_failed,
        rows_processed=result.rows_processed,
        postal_codes_found=result.postal_codes_found,
        already_cached=result.already_cached,
        new_entries=result.new_entries,
        final_cache_size=result.final_cache_size,
        duration_ms=result.duration_ms,
    )
    orchestrator.log_summary()
    return result
