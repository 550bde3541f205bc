"""
pipelines/augment.py — Add postal code and coordinates to one LMIA CSV.

Orchestrates:
  1. Read the CSV (all columns as strings)
  2. Normalize the employer / quarterly layout → employer, address
  3. Extract a postal code per row
  4. Resolve each distinct postal code once (cache → bogons → providers);
     new results are cached with the first address/employer seen for them
  5. Write the original columns plus Postal Code, Latitude, Longitude.
     The three columns are always present; unresolved rows hold "".

Usage:
    from lmia_pipeline.pipelines.augment import run
    result = await run(Path("2024-06-01_tfwp_2024q1_pos_en.csv"), "quarterly")
    print(result.rows_geocoded, result.output_path)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path

import polars as pl

from lmia_pipeline.geocoding.orchestrator import GeocodingOrchestrator
from lmia_pipeline.transforms.records import (
    ADDRESS_COL,
    EMPLOYER_COL,
    HELPER_COLUMNS,
    POSTAL_CODE_COL,
    add_postal_codes,
    first_samples,
    normalize_records,
    read_lmia_csv,
)
from lmia_pipeline.utils.logging import get_logger
from lmia_shared.config import settings
from lmia_shared.constants import OUTPUT_COLUMNS, RecordFormat

log = get_logger(__name__, pipeline="augment")

PROGRESS_EVERY = 100


@dataclass
class AugmentResult:
    """Summary of one augmented file."""

    source_path: Path
    output_path: Path
    rows: int = 0
    rows_with_postal_code: int = 0
    rows_geocoded: int = 0
    distinct_postal_codes: int = 0
    duration_ms: int = 0
    unresolved: list[str] = field(default_factory=list)


def default_output_path(source: Path, fmt: RecordFormat) -> Path:
    return settings.csv_processed_dir / f"{fmt}_format" / source.name


async def geocode_frame(
    df: pl.DataFrame,
    orchestrator: GeocodingOrchestrator,
) -> dict[str, tuple[str, str]]:
    """
    Resolve every distinct postal code in *df* (which must carry the
    postal_code / address / employer helper columns).

    Returns {postal_code: (latitude, longitude)}, with ("", "") for misses.
    """
    samples = first_samples(df)
    coords: dict[str, tuple[str, str]] = {}
    total = samples.height
    for i, row in enumerate(samples.iter_rows(named=True), start=1):
        code = row[POSTAL_CODE_COL]
        result = await orchestrator.resolve_and_cache(code, row[ADDRESS_COL], row[EMPLOYER_COL])
        coords[code] = (result.latitude or "", result.longitude or "") if result.is_found else ("", "")
        if i % PROGRESS_EVERY == 0 or i == total:
            log.info("geocode_progress", done=i, total=total)
    return coords


async def run(
    path: Path | str,
    fmt: RecordFormat,
    *,
    output: Path | str | None = None,
    orchestrator: GeocodingOrchestrator | None = None,
) -> AugmentResult:
    """
    Augment *path* with Postal Code / Latitude / Longitude columns.

    Raises:
        ValueError: the file does not fit the requested layout.
        CachePersistenceError / BogonPersistenceError: a store is unwritable.
    """
    t0 = time.monotonic()
    source = Path(path)
    out_path = Path(output) if output else default_output_path(source, fmt)
    orchestrator = orchestrator or GeocodingOrchestrator.from_settings()
    run_log = log.bind(source_file=source.name, record_format=fmt)
    run_log.info("augment_start", output=str(out_path))

    raw = read_lmia_csv(source)
    df = add_postal_codes(normalize_records(raw, fmt))
    coords = await geocode_frame(df, orchestrator)

    lat_map = {code: lat for code, (lat, _) in coords.items()}
    lon_map = {code: lon for code, (_, lon) in coords.items()}
    postal, lat_col, lon_col = OUTPUT_COLUMNS
    out = df.with_columns(
        pl.col(POSTAL_CODE_COL).fill_null("").alias(postal),
        pl.col(POSTAL_CODE_COL).fill_null("").replace_strict(lat_map, default="", return_dtype=pl.String).alias(lat_col),
        pl.col(POSTAL_CODE_COL).fill_null("").replace_strict(lon_map, default="", return_dtype=pl.String).alias(lon_col),
    ).drop(list(HELPER_COLUMNS))

    out_path.parent.mkdir(parents=True, exist_ok=True)
    out.write_csv(out_path)

    result = AugmentResult(
        source_path=source,
        output_path=out_path,
        rows=out.height,
        rows_with_postal_code=out.filter(pl.col(postal) != "").height,
        rows_geocoded=out.filter(pl.col(lat_col) != "").height,
        distinct_postal_codes=len(coords),
        duration_ms=int((time.monotonic() - t0) * 1000),
        unresolved=sorted(code for code, (lat, _) in coords.items() if not lat),
    )
    run_log.info(
        "augment_complete",
        rows=result.rows,
        rows_with_postal_code=result.rows_with_postal_code,
        rows_geocoded=result.rows_geocoded,
        distinct_postal_codes=result.distinct_postal_codes,
        unresolved=len(result.unresolved),
        duration_ms=result.duration_ms,
    )
    return result
