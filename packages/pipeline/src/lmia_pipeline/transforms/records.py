"""
transforms/records.py — Normalization of the two LMIA record layouts.

ESDC publishes positive-LMIA employer lists in two layouts. The caller
says which one a file uses; nothing here guesses.

  employer   Province/Territory, Employer, Address, Occupation, Approved Positions
  quarterly  Province/Territory, Program Stream, Employer, Address, Occupation,
             Incorporate Status, Approved LMIAs, Approved Positions

Header wording changes between releases ("Employer Name", "Approved
Positions (#)" ...), so employer and address are taken by position, not
by name. Files converted from XLSX carry one or more title lines above
the header; read_lmia_csv() skips everything before the first line that
starts with "Province".

Usage:
    df = read_lmia_csv(path)
    df = normalize_records(df, "quarterly")   # adds _employer, _address
    df = add_postal_codes(df)                 # adds _postal_code
"""

from __future__ import annotations

from pathlib import Path

import polars as pl
import structlog

from lmia_pipeline.geocoding.postal import POSTAL_CODE_PATTERN
from lmia_shared.constants import (
    EMPLOYER_FORMAT_COLUMNS,
    QUARTERLY_FORMAT_COLUMNS,
    RecordFormat,
)

log = structlog.get_logger(__name__)

# (employer column index, address column index) per layout
FIELD_POSITIONS: dict[str, tuple[int, int]] = {
    "employer": (1, 2),
    "quarterly": (2, 3),
}

# Reference headers; wording varies between releases.
FORMAT_COLUMNS: dict[str, tuple[str, ...]] = {
    "employer": EMPLOYER_FORMAT_COLUMNS,
    "quarterly": QUARTERLY_FORMAT_COLUMNS,
}

EMPLOYER_COL = "_employer"
ADDRESS_COL = "_address"
POSTAL_CODE_COL = "_postal_code"
HELPER_COLUMNS = (EMPLOYER_COL, ADDRESS_COL, POSTAL_CODE_COL)


def find_header_row(path: Path) -> int:
    """Index of the first line starting with "Province" (0 when none does)."""
    with path.open("r", encoding="utf-8", errors="replace") as fh:
        for i, line in enumerate(fh):
            if line.lstrip("\ufeff\"").startswith("Province"):
                return i
            if i >= 20:
                break
    return 0


def read_lmia_csv(path: Path | str) -> pl.DataFrame:
    """Read an LMIA CSV as all-string columns, skipping any title lines."""
    path = Path(path)
    skip = find_header_row(path)
    df = pl.read_csv(
        path,
        skip_rows=skip,
        infer_schema_length=0,
        truncate_ragged_lines=True,
        encoding="utf8-lossy",
    )
    log.debug("lmia_csv_read", path=str(path), rows=df.height, cols=df.width, skipped_lines=skip)
    return df


def clean_string_columns(df: pl.DataFrame) -> pl.DataFrame:
    """Collapse whitespace runs and strip every String column."""
    return df.with_columns(
        [
            pl.col(c).str.replace_all(r"\s+", " ").str.strip_chars()
            for c in df.columns
            if df[c].dtype == pl.String
        ]
    )


def drop_all_null_rows(df: pl.DataFrame) -> pl.DataFrame:
    """Drop rows where every column is null or empty."""
    return df.filter(
        ~pl.all_horizontal(
            [pl.col(c).is_null() | (pl.col(c).cast(pl.String) == "") for c in df.columns]
        )
    )


def normalize_records(df: pl.DataFrame, fmt: RecordFormat) -> pl.DataFrame:
    """
    Add helper `_employer` and `_address` columns for the given layout.

    Original columns are preserved. Rows with no content at all, and the
    trailing footnote rows some releases carry, are dropped.

    Raises:
        ValueError: unknown layout, or too few columns for it.
    """
    if fmt not in FIELD_POSITIONS:
        raise ValueError(f"unknown record format: {fmt!r}")
    employer_idx, address_idx = FIELD_POSITIONS[fmt]
    if df.width <= address_idx:
        raise ValueError(
            f"{fmt} format needs at least {address_idx + 1} columns, got {df.width}"
        )

    expected = list(FORMAT_COLUMNS[fmt])
    if df.columns[: len(expected)] != expected:
        log.debug("header_variant", record_format=fmt, columns=df.columns)

    df = drop_all_null_rows(clean_string_columns(df))
    employer_src, address_src = df.columns[employer_idx], df.columns[address_idx]
    df = df.with_columns(
        pl.col(employer_src).fill_null("").alias(EMPLOYER_COL),
        pl.col(address_src).fill_null("").alias(ADDRESS_COL),
    )
    # Footnote rows only fill the first column.
    return df.filter((pl.col(EMPLOYER_COL) != "") | (pl.col(ADDRESS_COL) != ""))


def add_postal_codes(df: pl.DataFrame, address_col: str = ADDRESS_COL) -> pl.DataFrame:
    """Add `_postal_code` (canonical form, null when the address has none)."""
    return df.with_columns(
        pl.col(address_col)
        .str.extract(f"({POSTAL_CODE_PATTERN.pattern})", 1)
        .str.replace_all(" ", "", literal=True)
        .alias(POSTAL_CODE_COL)
    )


def first_samples(df: pl.DataFrame) -> pl.DataFrame:
    """
    One row per distinct postal code with the first address/employer seen.

    Order follows first appearance in the file.
    """
    return (
        df.filter(pl.col(POSTAL_CODE_COL).is_not_null())
        .select(POSTAL_CODE_COL, ADDRESS_COL, EMPLOYER_COL)
        .unique(subset=[POSTAL_CODE_COL], keep="first", maintain_order=True)
    )
