"""
CSV Batch Tools
===============
File-driven wrappers around the placement entry points: read addresses
from a CSV, run them through the cleaner / geocoder / distance matrix, and
write the resulting table back out as CSV.

Classes:
    AddressCleanerTool  Adds a cleaned-address column.
    GeocodeTool         Writes one geocode row per input address.
    DriveTimeTool       Writes one distance row per origin/destination pair.

Usage::

    from pathlib import Path
    from src.placement.batch import GeocodeTool
    from src.placement.geocoder import RequestOptions

    tool = GeocodeTool(
        input_path=Path("data/stores.csv"),
        output_path=Path("output/stores_geocoded.csv"),
        address_col="full_address",
        options=RequestOptions(private_key="<your-api-key>"),
    )
    tool.run()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pandas as pd

from shared.python.base_tool import GeoTool
from shared.python.exceptions import OutputWriteError
from shared.python.validators import Validators
from src.placement.cleaner import clean_addresses
from src.placement.geocoder import RequestOptions, drive_time, geocode_url

logger = logging.getLogger("placement.batch")


class _CSVTool(GeoTool):
    """Shared CSV read/validate/write plumbing."""

    required_columns: list[str]

    def __init__(self, input_path: Path, output_path: Path, *, verbose: bool = False) -> None:
        super().__init__(input_path, output_path, verbose=verbose)
        self._result: pd.DataFrame | list[str] | None = None

    def validate_inputs(self) -> None:
        Validators.assert_file_exists(self.input_path)
        Validators.assert_supported_extension(self.input_path, [".csv"])
        Validators.assert_output_dir_writable(self.output_path)

        df_peek = pd.read_csv(self.input_path, nrows=0)
        Validators.assert_columns_exist(df_peek, self.required_columns)
        logger.debug("Inputs validated successfully.")

    def _read_column(self, df: pd.DataFrame, column: str) -> list[str]:
        return df[column].fillna("").astype(str).tolist()

    def _write(self, result: pd.DataFrame | list[str]) -> None:
        frame = pd.DataFrame({"input_url": result}) if isinstance(result, list) else result
        try:
            frame.to_csv(self.output_path, index=False)
        except OSError as exc:
            raise OutputWriteError(str(self.output_path), str(exc)) from exc
        self._result = result
        statuses = frame["status"].tolist() if "status" in frame else None
        self._record_rows(len(frame), statuses)

    @property
    def result(self) -> pd.DataFrame | list[str] | None:
        """The table (or dry-run URLs) from the last run, or ``None``."""
        return self._result


class AddressCleanerTool(_CSVTool):
    """Copy a CSV, adding a ``clean_address`` column next to *address_col*."""

    def __init__(
        self,
        input_path: Path,
        output_path: Path,
        address_col: str = "address",
        *,
        verbose: bool = False,
    ) -> None:
        super().__init__(input_path, output_path, verbose=verbose)
        self.address_col = address_col
        self.required_columns = [address_col]

    def process(self) -> None:
        df = pd.read_csv(self.input_path)
        df["clean_address"] = clean_addresses(
            self._read_column(df, self.address_col),
            observer=logger.info if self.verbose else None,
        )
        self._write(df)


class GeocodeTool(_CSVTool):
    """Geocode every address in a CSV and write the result table.

    Args:
        input_path: Input CSV.
        output_path: Output CSV.
        address_col: Column holding the addresses.
        options: Authentication, cleaning and date options.
        dryrun: Write the request URLs instead of fetching them.
    """

    def __init__(
        self,
        input_path: Path,
        output_path: Path,
        address_col: str = "address",
        options: RequestOptions | None = None,
        *,
        dryrun: bool = False,
        verbose: bool = False,
    ) -> None:
        super().__init__(input_path, output_path, verbose=verbose)
        self.address_col = address_col
        self.options = options or RequestOptions()
        self.dryrun = dryrun
        self.required_columns = [address_col]

    def validate_inputs(self) -> None:
        super().validate_inputs()
        self.options.validate()

    def process(self) -> None:
        df = pd.read_csv(self.input_path)
        result = geocode_url(
            self._read_column(df, self.address_col),
            dryrun=self.dryrun,
            verbose=self.verbose,
            **_option_kwargs(self.options),
        )
        self._write(result)


class DriveTimeTool(_CSVTool):
    """Request a distance for every origin/destination row of a CSV."""

    def __init__(
        self,
        input_path: Path,
        output_path: Path,
        origin_col: str = "origin",
        destination_col: str = "destination",
        options: RequestOptions | None = None,
        *,
        travel_mode: str = "driving",
        units: str = "metric",
        language: str = "en-EN",
        dryrun: bool = False,
        verbose: bool = False,
    ) -> None:
        super().__init__(input_path, output_path, verbose=verbose)
        self.origin_col = origin_col
        self.destination_col = destination_col
        self.options = options or RequestOptions()
        self.travel_mode = travel_mode
        self.units = units
        self.language = language
        self.dryrun = dryrun
        self.required_columns = [origin_col, destination_col]

    def validate_inputs(self) -> None:
        super().validate_inputs()
        self.options.validate()

    def process(self) -> None:
        df = pd.read_csv(self.input_path)
        result = drive_time(
            self._read_column(df, self.origin_col),
            self._read_column(df, self.destination_col),
            travel_mode=self.travel_mode,
            units=self.units,
            language=self.language,
            dryrun=self.dryrun,
            verbose=self.verbose,
            **_option_kwargs(self.options),
        )
        self._write(result)


def _option_kwargs(options: RequestOptions) -> dict[str, Any]:
    return {
        "auth": options.auth,
        "private_key": options.private_key,
        "client_id": options.client_id,
        "clean": options.clean,
        "add_date": options.add_date,
        "timeout": options.timeout,
    }
