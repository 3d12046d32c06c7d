"""
placement — CLI Entry Point
===========================
Installed as the ``placement`` command via ``pyproject.toml``.

Usage:
    placement clean --input data/addresses.csv --output output/clean.csv

    placement geocode --input data/addresses.csv --output output/geo.csv \\
                      --address-col full_address --clean --add-date today

    placement drive-time --input data/trips.csv --output output/trips.csv \\
                         --auth work --units imperial

Credentials are read from ``GOOGLE_MAPS_API_KEY`` (standard API) or
``GOOGLE_MAPS_CLIENT_ID`` / ``GOOGLE_MAPS_PRIVATE_KEY`` (Google for Work)
when not given on the command line.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import click

from shared.python.exceptions import PlacementError
from src.placement.batch import AddressCleanerTool, DriveTimeTool, GeocodeTool
from src.placement.geocoder import AUTH_MODES, DATE_MODES, RequestOptions
from src.placement.signer import TRAVEL_MODES, UNITS
from src.placement.transport import DEFAULT_TIMEOUT


def _io_options(func: Callable) -> Callable:
    func = click.option(
        "--output", "-o", "output_path",
        required=True,
        type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
        help="Path for the output CSV file.",
    )(func)
    func = click.option(
        "--input", "-i", "input_path",
        required=True,
        type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
        help="Path to the input CSV file.",
    )(func)
    return func


def _request_options(func: Callable) -> Callable:
    options = [
        click.option(
            "--auth",
            type=click.Choice(AUTH_MODES),
            default="standard_api",
            show_default=True,
            help="Plain API key or Google for Work signed requests.",
        ),
        click.option(
            "--api-key",
            default=None,
            envvar="GOOGLE_MAPS_API_KEY",
            help="Standard API key. Also read from GOOGLE_MAPS_API_KEY.",
        ),
        click.option(
            "--client-id",
            default=None,
            envvar="GOOGLE_MAPS_CLIENT_ID",
            help="Google for Work client ID. Also read from GOOGLE_MAPS_CLIENT_ID.",
        ),
        click.option(
            "--private-key",
            default=None,
            envvar="GOOGLE_MAPS_PRIVATE_KEY",
            help="Google for Work private key. Also read from GOOGLE_MAPS_PRIVATE_KEY.",
        ),
        click.option("--clean", is_flag=True, default=False, help="Clean addresses first."),
        click.option(
            "--add-date",
            type=click.Choice(DATE_MODES),
            default="none",
            show_default=True,
            help="Add a geocode_dt column: today, or today plus 1-30 random days.",
        ),
        click.option(
            "--timeout",
            type=float,
            default=DEFAULT_TIMEOUT,
            show_default=True,
            help="Seconds to wait for each request.",
        ),
        click.option("--dryrun", is_flag=True, default=False, help="Write URLs without fetching."),
        click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_options(
    auth: str,
    api_key: str | None,
    client_id: str | None,
    private_key: str | None,
    clean: bool,
    add_date: str,
    timeout: float,
) -> RequestOptions:
    return RequestOptions(
        auth=auth,
        private_key=private_key if auth == "work" else api_key,
        client_id=client_id,
        clean=clean,
        add_date=add_date,
        timeout=timeout,
    )


def _run(tool: AddressCleanerTool | GeocodeTool | DriveTimeTool) -> None:
    try:
        tool.run()
    except PlacementError as exc:
        click.echo(f"Error: {exc.message}", err=True)
        sys.exit(1)

    click.echo(f"\nOutput written to: {tool.output_path}")
    if tool.rows_ok is not None:
        click.echo(f"Status OK: {tool.rows_ok}/{tool.rows_written} rows.")


@click.group(name="placement", help="Tools for the Google Maps Geocoding and Distance Matrix APIs.")
def main() -> None:
    """CLI entry point."""


@main.command(name="clean", help="Add a clean_address column to a CSV of addresses.")
@_io_options
@click.option("--address-col", default="address", show_default=True, help="Address column.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log each cleaning step.")
def clean_command(input_path: Path, output_path: Path, address_col: str, verbose: bool) -> None:
    _run(AddressCleanerTool(input_path, output_path, address_col, verbose=verbose))


@main.command(name="geocode", help="Geocode a CSV of addresses.")
@_io_options
@click.option("--address-col", default="address", show_default=True, help="Address column.")
@_request_options
def geocode_command(
    input_path: Path,
    output_path: Path,
    address_col: str,
    auth: str,
    api_key: str | None,
    client_id: str | None,
    private_key: str | None,
    clean: bool,
    add_date: str,
    timeout: float,
    dryrun: bool,
    verbose: bool,
) -> None:
    options = _build_options(auth, api_key, client_id, private_key, clean, add_date, timeout)
    _run(
        GeocodeTool(
            input_path,
            output_path,
            address_col,
            options,
            dryrun=dryrun,
            verbose=verbose,
        )
    )


@main.command(name="drive-time", help="Distance and travel time for origin/destination pairs.")
@_io_options
@click.option("--origin-col", default="origin", show_default=True, help="Origin column.")
@click.option("--destination-col", default="destination", show_default=True, help="Destination column.")
@click.option(
    "--travel-mode",
    type=click.Choice(TRAVEL_MODES, case_sensitive=False),
    default="driving",
    show_default=True,
)
@click.option("--units", type=click.Choice(UNITS), default="metric", show_default=True)
@click.option("--language", default="en-EN", show_default=True)
@_request_options
def drive_time_command(
    input_path: Path,
    output_path: Path,
    origin_col: str,
    destination_col: str,
    travel_mode: str,
    units: str,
    language: str,
    auth: str,
    api_key: str | None,
    client_id: str | None,
    private_key: str | None,
    clean: bool,
    add_date: str,
    timeout: float,
    dryrun: bool,
    verbose: bool,
) -> None:
    options = _build_options(auth, api_key, client_id, private_key, clean, add_date, timeout)
    _run(
        DriveTimeTool(
            input_path,
            output_path,
            origin_col,
            destination_col,
            options,
            travel_mode=travel_mode,
            units=units,
            language=language,
            dryrun=dryrun,
            verbose=verbose,
        )
    )


if __name__ == "__main__":
    main()
