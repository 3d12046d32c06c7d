"""
Tests — Geocoder
================
Tests for :func:`~src.placement.geocoder.geocode_url` and
:func:`~src.placement.geocoder.drive_time`.

All HTTP calls are mocked via the ``responses`` library, so no real
network requests are made during testing.
"""

from __future__ import annotations

import base64
import datetime

import pandas as pd
import pytest
import requests
import responses as rsps_lib

from shared.python.exceptions import InputValidationError, ResponseParseError
from src.placement.geocoder import (
    DATE_COLUMN,
    DRIVE_TIME_COLUMNS,
    GEOCODE_COLUMNS,
    RequestOptions,
    drive_time,
    geocode_url,
)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
DISTANCE_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"

EMPIRE_STATE = "350 5th Ave, New York, NY 10118, USA"
CLIENT_ID = "gme-testcompany"
PRIVATE_KEY = base64.urlsafe_b64encode(b"not-a-real-private-key!!").decode()
TODAY = datetime.date(2024, 3, 1)


def _geocode_hit(lat: float, lng: float, display: str) -> dict:
    """Build a mock Google Geocoding JSON response."""
    return {
        "status": "OK",
        "results": [
            {
                "formatted_address": display,
                "geometry": {"location": {"lat": lat, "lng": lng}, "location_type": "ROOFTOP"},
            }
        ],
    }


def _distance_hit(metres: int, seconds: int) -> dict:
    """Build a mock Google Distance Matrix JSON response."""
    return {
        "status": "OK",
        "origin_addresses": ["New York, NY, USA"],
        "destination_addresses": ["Mountain View, CA, USA"],
        "rows": [
            {
                "elements": [
                    {
                        "status": "OK",
                        "distance": {"value": metres, "text": f"{metres / 1000:.0f} km"},
                        "duration": {"value": seconds, "text": "1 day 18 hours"},
                    }
                ]
            }
        ],
    }


class _SequenceRandom:
    """Stands in for ``random.Random``; hands out fixed offsets in order."""

    def __init__(self, values: list[int]) -> None:
        self._values = iter(values)
        self.calls: list[tuple[int, int]] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        return next(self._values)


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class TestRequestOptions:
    def test_defaults_are_valid(self) -> None:
        RequestOptions(private_key="k").validate()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"auth": "oauth"},
            {"add_date": "yesterday"},
            {"auth": "work", "private_key": PRIVATE_KEY},
            {"auth": "work", "client_id": CLIENT_ID},
        ],
    )
    def test_invalid(self, kwargs: dict) -> None:
        with pytest.raises(InputValidationError):
            RequestOptions(**kwargs).validate()


# ---------------------------------------------------------------------------
# Dry runs
# ---------------------------------------------------------------------------


class TestGeocodeDryRun:
    def test_standard_api_url(self) -> None:
        urls = geocode_url([EMPIRE_STATE], auth="standard_api", private_key="", clean=True, dryrun=True)
        assert len(urls) == 1
        assert "address=350%205th%20Ave" in urls[0]
        assert "&signature=" not in urls[0]
        assert urls[0].endswith("&key=")

    def test_work_url_is_signed(self) -> None:
        urls = geocode_url(
            [EMPIRE_STATE, "1600 Amphitheatre Pkwy"],
            auth="work",
            private_key=PRIVATE_KEY,
            client_id=CLIENT_ID,
            dryrun=True,
        )
        assert len(urls) == 2
        assert all(f"&client={CLIENT_ID}&signature=" in u for u in urls)

    def test_clean_applied_before_encoding(self) -> None:
        [url] = geocode_url(['"350 5th Ave" c/o Someone'], private_key="k", clean=True, dryrun=True)
        assert "address=350%205th%20Ave%20Someone&" in url

    def test_bad_auth_fails_before_network(self) -> None:
        with pytest.raises(InputValidationError):
            geocode_url([EMPIRE_STATE], auth="premium", dryrun=True)

    def test_work_requires_credentials(self) -> None:
        with pytest.raises(InputValidationError):
            geocode_url([EMPIRE_STATE], auth="work", private_key=PRIVATE_KEY, dryrun=True)

    def test_bare_string_rejected(self) -> None:
        with pytest.raises(InputValidationError):
            geocode_url(EMPIRE_STATE, dryrun=True)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Geocoding (mocked HTTP)
# ---------------------------------------------------------------------------


class TestGeocodeUrl:
    @rsps_lib.activate
    def test_one_row_per_address(self) -> None:
        rsps_lib.add(
            rsps_lib.GET, GEOCODE_URL,
            json=_geocode_hit(40.7484, -73.9857, EMPIRE_STATE), status=200,
        )
        rsps_lib.add(rsps_lib.GET, GEOCODE_URL, json={"status": "ZERO_RESULTS", "results": []})

        df = geocode_url([EMPIRE_STATE, "nowhere"], private_key="k")

        assert list(df.columns) == GEOCODE_COLUMNS
        assert len(df) == 2
        first, second = df.iloc[0], df.iloc[1]
        assert first["latitude"] == pytest.approx(40.7484)
        assert first["longitude"] == pytest.approx(-73.9857)
        assert first["location_type"] == "ROOFTOP"
        assert first["status"] == "OK"
        assert first["locations"] == EMPIRE_STATE
        assert first["input_url"].startswith(GEOCODE_URL)
        assert second["status"] == "ZERO_RESULTS"
        assert pd.isna(second["latitude"])
        assert pd.isna(second["formatted_address"])

    @rsps_lib.activate
    def test_locations_keep_raw_input_when_cleaning(self) -> None:
        rsps_lib.add(rsps_lib.GET, GEOCODE_URL, json=_geocode_hit(1.0, 2.0, "X"))
        df = geocode_url(["  1 Main St,, "], private_key="k", clean=True)
        assert df.iloc[0]["locations"] == "  1 Main St,, "
        assert df.iloc[0]["address"] == "1 Main St"

    @rsps_lib.activate
    def test_unreachable_row_does_not_abort_batch(self) -> None:
        rsps_lib.add(rsps_lib.GET, GEOCODE_URL, body=requests.ConnectionError("down"))
        rsps_lib.add(rsps_lib.GET, GEOCODE_URL, json=_geocode_hit(1.0, 2.0, "B"))

        df = geocode_url(["A", "B"], private_key="k")

        assert list(df["status"]) == ["CONNECTION_ERROR", "OK"]
        assert df.iloc[0]["error_message"] == "URL was unreachable. Check your network connection."
        assert df.iloc[1]["formatted_address"] == "B"

    @rsps_lib.activate
    def test_invalid_signature_row(self) -> None:
        rsps_lib.add(
            rsps_lib.GET, GEOCODE_URL,
            body="Unable to authenticate the request. Provided 'signature' is not valid.",
            status=403,
        )
        df = geocode_url(
            ["A"], auth="work", private_key=PRIVATE_KEY, client_id=CLIENT_ID,
        )
        assert df.iloc[0]["status"] == "INVALID_SIGNATURE"
        assert pd.isna(df.iloc[0]["latitude"])

    @rsps_lib.activate
    def test_non_ok_status_has_null_geometry(self) -> None:
        payload = _geocode_hit(1.0, 2.0, "Somewhere")
        payload["status"] = "UNKNOWN_ERROR"
        rsps_lib.add(rsps_lib.GET, GEOCODE_URL, json=payload)

        df = geocode_url(["A"], private_key="k")

        assert df.iloc[0]["status"] == "UNKNOWN_ERROR"
        assert pd.isna(df.iloc[0]["latitude"])
        assert pd.isna(df.iloc[0]["longitude"])
        assert pd.isna(df.iloc[0]["formatted_address"])

    @rsps_lib.activate
    def test_parse_error_propagates(self) -> None:
        rsps_lib.add(rsps_lib.GET, GEOCODE_URL, body="not json", status=200)
        with pytest.raises(ResponseParseError):
            geocode_url(["A"], private_key="k")

    @rsps_lib.activate
    def test_non_object_json_is_parse_error(self) -> None:
        rsps_lib.add(rsps_lib.GET, GEOCODE_URL, json=[])
        with pytest.raises(ResponseParseError):
            geocode_url(["A"], private_key="k")

    @rsps_lib.activate
    def test_add_date_today(self) -> None:
        rsps_lib.add(rsps_lib.GET, GEOCODE_URL, json=_geocode_hit(1.0, 2.0, "X"))
        df = geocode_url(["A", "B"], private_key="k", add_date="today", today=TODAY)
        assert list(df[DATE_COLUMN]) == [TODAY, TODAY]

    @rsps_lib.activate
    def test_add_date_fuzzy_draws_per_row(self) -> None:
        rsps_lib.add(rsps_lib.GET, GEOCODE_URL, json=_geocode_hit(1.0, 2.0, "X"))
        rng = _SequenceRandom([3, 30, 1])

        df = geocode_url(
            ["A", "B", "C"], private_key="k", add_date="fuzzy", today=TODAY, rng=rng,  # type: ignore[arg-type]
        )

        assert rng.calls == [(1, 30)] * 3
        assert list(df[DATE_COLUMN]) == [
            datetime.date(2024, 3, 4),
            datetime.date(2024, 3, 31),
            datetime.date(2024, 3, 2),
        ]

    @rsps_lib.activate
    def test_add_date_none_has_no_column(self) -> None:
        rsps_lib.add(rsps_lib.GET, GEOCODE_URL, json=_geocode_hit(1.0, 2.0, "X"))
        df = geocode_url(["A"], private_key="k")
        assert DATE_COLUMN not in df.columns


# ---------------------------------------------------------------------------
# Distance matrix
# ---------------------------------------------------------------------------


class TestDriveTime:
    def test_dryrun_broadcasts_single_origin(self) -> None:
        urls = drive_time(
            ["New York"], ["Boston", "Chicago"],
            private_key="k", units="imperial", travel_mode="walking", dryrun=True,
        )
        assert len(urls) == 2
        assert "origins=New%20York&destinations=Boston&units=imperial&mode=walking" in urls[0]
        assert "destinations=Chicago" in urls[1]

    def test_length_mismatch(self) -> None:
        with pytest.raises(InputValidationError):
            drive_time(["a", "b"], ["c", "d", "e"], private_key="k", dryrun=True)

    def test_no_origins_rejected(self) -> None:
        with pytest.raises(InputValidationError):
            drive_time([], ["A", "B"], private_key="k", dryrun=True)

    def test_bad_units(self) -> None:
        with pytest.raises(InputValidationError):
            drive_time(["a"], ["b"], private_key="k", units="nautical", dryrun=True)

    @rsps_lib.activate
    def test_metric_row(self) -> None:
        rsps_lib.add(rsps_lib.GET, DISTANCE_URL, json=_distance_hit(4_700_000, 151_200))

        df = drive_time([EMPIRE_STATE], ["1600 Amphitheatre Pkwy"], private_key="k")

        assert list(df.columns) == DRIVE_TIME_COLUMNS
        row = df.iloc[0]
        assert row["origin"] == EMPIRE_STATE
        assert row["destination"] == "1600 Amphitheatre Pkwy"
        assert row["dist_num"] == pytest.approx(4700.0)
        assert row["dist_unit"] == "km"
        assert row["time_secs"] == 151_200
        assert row["time_mins"] == pytest.approx(2520.0)
        assert row["time_hours"] == pytest.approx(42.0)
        assert row["return_origin"] == "New York, NY, USA"
        assert row["status"] == "OK"

    @rsps_lib.activate
    def test_imperial_converts_to_miles(self) -> None:
        rsps_lib.add(rsps_lib.GET, DISTANCE_URL, json=_distance_hit(10_000, 600))
        df = drive_time(["a"], ["b"], private_key="k", units="imperial")
        assert df.iloc[0]["dist_num"] == pytest.approx(10 * 0.621371)
        assert df.iloc[0]["dist_unit"] == "mi"

    @rsps_lib.activate
    def test_element_status_reported(self) -> None:
        rsps_lib.add(
            rsps_lib.GET, DISTANCE_URL,
            json={
                "status": "OK",
                "origin_addresses": ["a"],
                "destination_addresses": [""],
                "rows": [{"elements": [{"status": "NOT_FOUND"}]}],
            },
        )
        df = drive_time(["a"], ["zzz"], private_key="k")
        assert df.iloc[0]["status"] == "NOT_FOUND"
        assert pd.isna(df.iloc[0]["dist_num"])

    @rsps_lib.activate
    def test_connection_error_row(self) -> None:
        rsps_lib.add(rsps_lib.GET, DISTANCE_URL, body=requests.ConnectionError("down"))
        rsps_lib.add(rsps_lib.GET, DISTANCE_URL, json=_distance_hit(1000, 60))

        df = drive_time(["home"], ["a", "b"], private_key="k", add_date="today", today=TODAY)

        assert list(df["origin"]) == ["home", "home"]
        assert list(df["status"]) == ["CONNECTION_ERROR", "OK"]
        assert list(df[DATE_COLUMN]) == [TODAY, TODAY]
