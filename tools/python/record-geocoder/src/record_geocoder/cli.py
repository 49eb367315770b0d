"""
Record Geocoder — CLI Entry Point
=================================
Installed as the ``geo-record-geocode`` command via ``pyproject.toml``.

Usage:
    # Import a file into a fresh store and geocode it
    geo-record-geocode -f data/addresses.csv -t csv -a street,city,country \\
                       -h localhost -p 8080 -s 0.5

    # Resume an interrupted run from its store
    geo-record-geocode -f data/addresses.csv -t csv -a street,city,country \\
                       -d data/addresses.db.jsonl
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from record_geocoder.address import parse_field_list
from record_geocoder.client import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_TIMEOUT, GeocodeClient
from record_geocoder.formats import FORMATS, JSON
from record_geocoder.pipeline import RecordGeocoder
from record_geocoder.throttle import ThrottlePolicy
from shared.python.exceptions import RecordGeocoderError


class _ProgressReporter:
    """Drives a :func:`click.progressbar` from pipeline progress callbacks."""

    def __init__(self) -> None:
        self._bar = None

    def __call__(self, processed: int, total: int) -> None:
        if self._bar is None:
            self._bar = click.progressbar(length=total, label="Geocoding records")
            self._bar.__enter__()
        self._bar.update(1)
        if processed >= total:
            self.close()

    def close(self) -> None:
        if self._bar is not None:
            self._bar.__exit__(None, None, None)
            self._bar = None


@click.command(
    name="geo-record-geocode",
    help="Geocode a JSON or CSV file of records through a Google-style geocoder.",
)
@click.option(
    "--file", "-f", "input_path",
    default=None,
    type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
    help="JSON or CSV file to be geocoded (names the output when --database is used).",
)
@click.option(
    "--fields", "-a",
    required=True,
    help="Comma-separated list of address fields, in order.",
)
@click.option(
    "--type", "-t", "file_format",
    type=click.Choice(list(FORMATS), case_sensitive=False),
    default=JSON,
    show_default=True,
    help="Whether the file is JSON or CSV.",
)
@click.option(
    "--database", "-d",
    default=None,
    type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
    help="Existing record store to resume. If given, file input is ignored.",
)
@click.option(
    "--host", "-h",
    default=DEFAULT_HOST,
    show_default=True,
    envvar="GEOCODER_HOST",
    help="Geocoder host. Can also be set via GEOCODER_HOST.",
)
@click.option(
    "--port", "-p",
    default=DEFAULT_PORT,
    show_default=True,
    type=int,
    envvar="GEOCODER_PORT",
    help="Geocoder port. Can also be set via GEOCODER_PORT.",
)
@click.option(
    "--throttle", "-s",
    default=0.0,
    show_default=True,
    type=click.FloatRange(min=0),
    help="Seconds to wait between geocoding requests.",
)
@click.option(
    "--timeout",
    default=DEFAULT_TIMEOUT,
    show_default=True,
    type=float,
    help="HTTP timeout (seconds) for each geocoding request.",
)
@click.option(
    "--output", "-o", "output_path",
    default=None,
    type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
    help="Output file. Defaults to <base>-output.<type> beside the input.",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def main(
    input_path: Path | None,
    fields: str,
    file_format: str,
    database: Path | None,
    host: str,
    port: int,
    throttle: float,
    timeout: float,
    output_path: Path | None,
    verbose: bool,
) -> None:
    """CLI entry point — wires Click options into RecordGeocoder."""
    if input_path is None and database is None:
        click.echo("Error: --file or --database is required.", err=True)
        sys.exit(1)

    progress = _ProgressReporter()
    try:
        tool = RecordGeocoder(
            input_path=input_path,
            address_fields=parse_field_list(fields),
            file_format=file_format,
            database=database,
            output_path=output_path,
            client=GeocodeClient(host=host, port=port, timeout=timeout),
            throttle=ThrottlePolicy(throttle),
            progress=progress,
            verbose=verbose,
        )
        tool.run()
    except RecordGeocoderError as exc:
        click.echo(f"Error: {exc.message}", err=True)
        sys.exit(1)
    finally:
        progress.close()

    click.echo("Summary:")
    click.echo(tool.summary.format_table() if tool.summary else "{}")
    click.echo(f"\nRecords written to: {tool.output_path}")


if __name__ == "__main__":
    main()
