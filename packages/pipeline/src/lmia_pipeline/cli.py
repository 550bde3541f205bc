"""
cli.py — Click CLI entrypoint for the LMIA geocoder.

Usage:
    lmia-geocoder lookup K1A0A6 "A1C 6C9"
    lmia-geocoder extract "215 Water Street, St. John's, NL A1C 6C9"
    lmia-geocoder augment report.csv --format quarterly
    lmia-geocoder update-cache
    lmia-geocoder stats --json outputs/cache_statistics.json
    lmia-geocoder repair-cache
    lmia-geocoder reset-bogons Z9Z9Z9

Coordinates and extracted codes go to stdout; logs go to stderr.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click
import structlog

from lmia_pipeline.geocoding.errors import GeocodingError
from lmia_pipeline.geocoding.postal import extract_postal_code
from lmia_pipeline.utils.logging import configure_logging
from lmia_shared.config import settings

log = structlog.get_logger(__name__)


def _fail(exc: GeocodingError) -> None:
    log.error("run_aborted", error=str(exc))
    raise click.ClickException(str(exc))


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
@click.option(
    "--log-format",
    default=settings.log_format,
    type=click.Choice(["console", "json"]),
    help="Log renderer",
)
@click.option(
    "--turbo/--no-turbo",
    default=None,
    help="Try the premium provider first (needs GOOGLE_GEOCODING_API_KEY).",
)
def main(log_level: str, log_format: str, turbo: bool | None) -> None:
    """LMIA postal-code geocoder."""
    configure_logging(log_level, log_format)
    if turbo is not None:
        settings.geocoding_turbo_mode = turbo


@main.command()
@click.argument("codes", nargs=-1, required=True)
def lookup(codes: tuple[str, ...]) -> None:
    """Resolve postal codes; prints `lat,lon` (or `,`) per code."""
    from lmia_pipeline.geocoding.orchestrator import GeocodingOrchestrator

    async def _run() -> list[str]:
        orchestrator = GeocodingOrchestrator.from_settings()
        lines = [await orchestrator.lookup_text(code) for code in codes]
        orchestrator.log_summary()
        return lines

    try:
        for line in asyncio.run(_run()):
            click.echo(line)
    except GeocodingError as exc:
        _fail(exc)


@main.command()
@click.argument("address")
def extract(address: str) -> None:
    """Print the canonical postal code found in ADDRESS (nothing if none)."""
    code = extract_postal_code(address)
    if code:
        click.echo(code)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "fmt",
    required=True,
    type=click.Choice(["employer", "quarterly"]),
    help="Record layout of FILE.",
)
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
def augment(file: Path, fmt: str, output: Path | None) -> None:
    """Add Postal Code, Latitude and Longitude columns to FILE."""
    from lmia_pipeline.geocoding.orchestrator import GeocodingOrchestrator
    from lmia_pipeline.pipelines import augment as augment_pipeline

    async def _run() -> augment_pipeline.AugmentResult:
        orchestrator = GeocodingOrchestrator.from_settings()
        result = await augment_pipeline.run(file, fmt, output=output, orchestrator=orchestrator)  # type: ignore[arg-type]
        for line in orchestrator.stats.summary_lines(orchestrator.log_summary()):
            click.echo(line, err=True)
        return result

    try:
        result = asyncio.run(_run())
    except GeocodingError as exc:
        _fail(exc)
        return
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(
        f"{result.output_path}: {result.rows_geocoded}/{result.rows} rows geocoded "
        f"({result.distinct_postal_codes} postal codes, {len(result.unresolved)} unresolved)"
    )


@main.command("update-cache")
@click.argument(
    "csv_dir",
    required=False,
    type=click.Path(file_okay=False, path_type=Path),
)
def update_cache(csv_dir: Path | None) -> None:
    """Cache coordinates for every postal code found under CSV_DIR."""
    from lmia_pipeline.geocoding.orchestrator import GeocodingOrchestrator
    from lmia_pipeline.pipelines import update_cache as update_pipeline

    async def _run() -> update_pipeline.UpdateResult:
        orchestrator = GeocodingOrchestrator.from_settings()
        result = await update_pipeline.run(csv_dir, orchestrator=orchestrator)
        for line in orchestrator.stats.summary_lines(orchestrator.snapshot()):
            click.echo(line, err=True)
        return result

    try:
        result = asyncio.run(_run())
    except GeocodingError as exc:
        _fail(exc)
        return
    click.echo(
        f"Processed {result.files_processed}/{result.files_found} files: "
        f"{result.new_entries} new cache entries "
        f"(cache {result.initial_cache_size} -> {result.final_cache_size})"
    )


@main.command()
@click.option(
    "--json",
    "json_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write the statistics to this JSON file.",
)
def stats(json_path: Path | None) -> None:
    """Show location cache statistics."""
    from lmia_pipeline.geocoding.bogons import BogonStore
    from lmia_pipeline.geocoding.maintenance import cache_statistics

    data = cache_statistics(settings.geocoding_cache_file)
    data["cache_statistics"]["bogons"] = BogonStore(settings.geocoding_bogons_file).count()
    body = data["cache_statistics"]
    click.echo(f"Cache file:     {data['metadata']['cache_file_path']}")
    click.echo(f"Postal codes:   {body['total_postal_codes']}")
    click.echo(f"Employers:      {body['unique_employers']}")
    click.echo(f"Addresses:      {body['unique_addresses']}")
    click.echo(f"Bogons:         {body['bogons']}")
    click.echo(f"File size:      {body['file_size']}")
    click.echo(f"Last updated:   {body['last_updated'] or 'never'}")
    for province, count in body["by_province"].items():
        click.echo(f"  {province}: {count}")
    if json_path is not None:
        json_path.parent.mkdir(parents=True, exist_ok=True)
        json_path.write_text(json.dumps(data, indent=2))
        click.echo(f"Statistics written to {json_path}", err=True)


@main.command("repair-cache")
def repair_cache() -> None:
    """Rewrite the cache table in the clean five-field layout (backup kept)."""
    from lmia_pipeline.geocoding.maintenance import repair_cache as repair

    try:
        result = repair(settings.geocoding_cache_file)
    except GeocodingError as exc:
        _fail(exc)
        return
    click.echo(
        f"Rows read {result.rows_read}, written {result.rows_written}, "
        f"dropped {result.rows_dropped}, duplicate keys {result.duplicate_keys}, "
        f"fields cleaned {result.fields_cleaned}"
    )
    click.echo(f"Backup: {result.backup_path}")


@main.command("reset-bogons")
@click.argument("codes", nargs=-1)
def reset_bogons(codes: tuple[str, ...]) -> None:
    """Forget CODES from the bogon list (all bogons when none are given)."""
    from lmia_pipeline.geocoding.maintenance import reset_bogons as reset

    try:
        removed = reset(settings.geocoding_bogons_file, list(codes) if codes else None)
    except GeocodingError as exc:
        _fail(exc)
        return
    click.echo(f"Removed {removed} bogon(s)")


if __name__ == "__main__":
    main()
