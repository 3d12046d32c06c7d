"""
Geocoder — Core Module
======================
Batch entry points for the Google Maps Geocoding and Distance Matrix
APIs. Each call cleans the input addresses (optionally), builds one
request URL per row, fetches them, and flattens the JSON payloads into a
``pandas.DataFrame`` with one row per input.

Authentication:
    ``auth="standard_api"``  plain API key appended as ``&key=``.
    ``auth="work"``          Google for Work client ID + HMAC-SHA1 signature.

Functions:
    geocode_url     Latitude/longitude for a list of addresses.
    drive_time      Travel distance and duration between address pairs.

Usage::

    from src.placement.geocoder import geocode_url

    df = geocode_url(
        ["350 5th Ave, New York, NY 10118, USA"],
        auth="standard_api",
        private_key="<your-api-key>",
        clean=True,
    )
"""

from __future__ import annotations

import datetime
import logging
import random
from dataclasses import dataclass
from typing import Any, Sequence

import pandas as pd
import requests

from shared.python.validators import Validators
from src.placement.cleaner import clean_addresses
from src.placement.distance import KM_TO_MILES
from src.placement.signer import (
    RequestDescriptor,
    RequestMode,
    build_descriptors,
    sign_request,
    standard_request_url,
)
from src.placement.transport import DEFAULT_TIMEOUT, fetch_json

logger = logging.getLogger("placement.geocoder")

AUTH_MODES = ("standard_api", "work")
DATE_MODES = ("none", "today", "fuzzy")
FUZZY_DAYS = (1, 30)

GEOCODE_COLUMNS = [
    "latitude",
    "longitude",
    "formatted_address",
    "location_type",
    "status",
    "error_message",
    "locations",
    "input_url",
    "address",
]

DRIVE_TIME_COLUMNS = [
    "origin",
    "destination",
    "dist_num",
    "dist_unit",
    "dist_txt",
    "time_secs",
    "time_mins",
    "time_hours",
    "time_txt",
    "return_origin",
    "return_destination",
    "status",
    "error_message",
    "input_url",
]

DATE_COLUMN = "geocode_dt"


# ---------------------------------------------------------------------------
# Per-call configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequestOptions:
    """Options shared by every request in one orchestrator call.

    Attributes:
        auth: ``"standard_api"`` or ``"work"``.
        private_key: API key (standard) or private cryptographic key (work).
        client_id: Google for Work client ID; ignored for the standard API.
        clean: Run the addresses through the address cleaner first.
        add_date: ``"none"``, ``"today"`` or ``"fuzzy"``.
        timeout: Seconds to wait for each request.
    """

    auth: str = "standard_api"
    private_key: str | None = None
    client_id: str | None = None
    clean: bool = False
    add_date: str = "none"
    timeout: float = DEFAULT_TIMEOUT

    def validate(self) -> None:
        """Raise :class:`InputValidationError` for any bad option."""
        Validators.assert_choice(self.auth, AUTH_MODES, "auth")
        Validators.assert_choice(self.add_date, DATE_MODES, "add_date")
        if self.auth == "work":
            Validators.assert_not_empty(self.client_id, "client ID to encode the URL")
            Validators.assert_not_empty(
                self.private_key, "Google for Work private key to encode the URL"
            )
        if self.auth == "standard_api" and not self.private_key:
            logger.warning("No API key supplied; the standard API will reject live requests.")

    def build_url(self, descriptor: RequestDescriptor) -> str:
        if self.auth == "work":
            return sign_request(descriptor, self.client_id, self.private_key)  # type: ignore[arg-type,return-value]
        return standard_request_url(descriptor, self.private_key)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _prepare(addresses: Sequence[str], name: str, options: RequestOptions, verbose: bool) -> list[str]:
    raw = Validators.assert_string_sequence(addresses, name)
    if not options.clean:
        return raw
    logger.info("Cleaning %d %s", len(raw), name)
    return clean_addresses(raw, observer=logger.info if verbose else None)


def _date_column(
    n_rows: int,
    add_date: str,
    today: datetime.date | None,
    rng: random.Random | None,
) -> list[datetime.date] | None:
    if add_date == "none":
        return None
    today = today or datetime.date.today()
    if add_date == "today":
        return [today] * n_rows
    rng = rng or random.Random()
    return [today + datetime.timedelta(days=rng.randint(*FUZZY_DAYS)) for _ in range(n_rows)]


def _geocode_fields(payload: dict[str, Any]) -> dict[str, Any]:
    results = payload.get("results") or []
    fields: dict[str, Any] = {
        "latitude": None,
        "longitude": None,
        "formatted_address": None,
        "location_type": None,
        "status": payload.get("status"),
        "error_message": payload.get("error_message"),
    }
    if fields["status"] != "OK" or not results:
        return fields

    if len(results) > 1:
        logger.debug("%d results returned; keeping the first.", len(results))
    first = results[0]
    geometry = first.get("geometry") or {}
    location = geometry.get("location") or {}
    fields.update(
        latitude=location.get("lat"),
        longitude=location.get("lng"),
        formatted_address=first.get("formatted_address"),
        location_type=geometry.get("location_type"),
    )
    return fields


def _first(values: list[Any] | None) -> Any:
    return values[0] if values else None


def _drive_time_fields(payload: dict[str, Any], units: str) -> dict[str, Any]:
    status = payload.get("status")
    element: dict[str, Any] = {}
    rows = payload.get("rows") or []
    if status == "OK" and rows and rows[0].get("elements"):
        element = rows[0]["elements"][0]
        status = element.get("status", status)

    distance = element.get("distance") or {}
    duration = element.get("duration") or {}
    metres = distance.get("value")
    seconds = duration.get("value")

    dist_num = None
    if metres is not None:
        dist_num = metres / 1000
        if units == "imperial":
            dist_num *= KM_TO_MILES

    return {
        "dist_num": dist_num,
        "dist_unit": "mi" if units == "imperial" else "km",
        "dist_txt": distance.get("text"),
        "time_secs": seconds,
        "time_mins": seconds / 60 if seconds is not None else None,
        "time_hours": seconds / 3600 if seconds is not None else None,
        "time_txt": duration.get("text"),
        "return_origin": _first(payload.get("origin_addresses")),
        "return_destination": _first(payload.get("destination_addresses")),
        "status": status,
        "error_message": payload.get("error_message"),
    }


def _finish(
    rows: list[dict[str, Any]],
    columns: list[str],
    options: RequestOptions,
    today: datetime.date | None,
    rng: random.Random | None,
) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=columns)
    dates = _date_column(len(df), options.add_date, today, rng)
    if dates is not None:
        df[DATE_COLUMN] = dates

    ok = int((df["status"] == "OK").sum()) if len(df) else 0
    logger.info("%d/%d request(s) returned status OK.", ok, len(df))
    return df


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def geocode_url(
    addresses: Sequence[str],
    auth: str = "standard_api",
    private_key: str | None = None,
    client_id: str | None = None,
    clean: bool = False,
    add_date: str = "none",
    dryrun: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
    verbose: bool = False,
    *,
    rng: random.Random | None = None,
    today: datetime.date | None = None,
    session: requests.Session | None = None,
) -> pd.DataFrame | list[str]:
    """Geocode a list of addresses.

    Args:
        addresses: Raw UTF-8 addresses, e.g.
            ``"350 5th Ave, New York, NY 10118, USA"``.
        auth: ``"standard_api"`` (plain key) or ``"work"`` (signed).
        private_key: API key for the standard API, or the private
            cryptographic key for Google for Work.
        client_id: Google for Work client ID (``gme-[company]``).
        clean: Run :func:`~src.placement.cleaner.clean_addresses` first.
        add_date: ``"none"``, ``"today"``, or ``"fuzzy"`` (today plus a
            random 1–30 days, drawn per row).
        dryrun: Return the request URLs without fetching them.
        timeout: Seconds to wait for each request.
        verbose: Log each cleaning step at INFO instead of DEBUG.
        rng: Random source for ``"fuzzy"`` dates.
        today: Date used for ``add_date``; defaults to today.
        session: Optional ``requests.Session`` to fetch with.

    Returns:
        The URLs when *dryrun* is set, otherwise a DataFrame with one row
        per address and the columns in :data:`GEOCODE_COLUMNS` (plus
        ``geocode_dt`` when *add_date* is not ``"none"``).

    Raises:
        InputValidationError: On bad options, before any request is sent.
        ResponseParseError: If the API returns a body that is not a JSON object.
    """
    options = RequestOptions(
        auth=auth,
        private_key=private_key,
        client_id=client_id,
        clean=clean,
        add_date=add_date,
        timeout=timeout,
    )
    options.validate()

    raw = Validators.assert_string_sequence(addresses, "addresses")
    sent = _prepare(raw, "addresses", options, verbose)
    descriptors = build_descriptors(sent, mode=RequestMode.GEOCODE, client_id=client_id)
    urls = [options.build_url(d) for d in descriptors]

    if dryrun:
        return urls

    logger.info("Geocoding %d address(es) via the %s API", len(urls), auth)
    payloads = fetch_json(urls, options.timeout, session=session)

    rows = [
        {**_geocode_fields(payload), "locations": original, "input_url": url, "address": text}
        for payload, original, url, text in zip(payloads, raw, urls, sent)
    ]
    return _finish(rows, GEOCODE_COLUMNS, options, today, rng)


def drive_time(
    origins: Sequence[str],
    destinations: Sequence[str],
    auth: str = "standard_api",
    private_key: str | None = None,
    client_id: str | None = None,
    clean: bool = False,
    travel_mode: str = "driving",
    units: str = "metric",
    language: str = "en-EN",
    add_date: str = "none",
    dryrun: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
    verbose: bool = False,
    *,
    rng: random.Random | None = None,
    today: datetime.date | None = None,
    session: requests.Session | None = None,
) -> pd.DataFrame | list[str]:
    """Estimate travel distance and time between address pairs.

    A single origin is paired with every destination; otherwise origins
    and destinations are paired position by position.

    Args:
        origins: Origin addresses (one, or as many as *destinations*).
        destinations: Destination addresses.
        travel_mode: driving, walking, bicycling or transit.
        units: ``"metric"`` (km) or ``"imperial"`` (miles).
        language: Localisation of the returned addresses.

        The remaining arguments behave as in :func:`geocode_url`.

    Returns:
        The URLs when *dryrun* is set, otherwise a DataFrame with the
        columns in :data:`DRIVE_TIME_COLUMNS`.

    Raises:
        InputValidationError: On bad options or mismatched lengths.
        ResponseParseError: If the API returns a body that is not a JSON object.
    """
    options = RequestOptions(
        auth=auth,
        private_key=private_key,
        client_id=client_id,
        clean=clean,
        add_date=add_date,
        timeout=timeout,
    )
    options.validate()

    raw_origins = Validators.assert_string_sequence(origins, "origins")
    raw_dests = Validators.assert_string_sequence(destinations, "destinations")
    descriptors = build_descriptors(
        _prepare(raw_origins, "origins", options, verbose),
        _prepare(raw_dests, "destinations", options, verbose),
        mode=RequestMode.DISTANCE,
        travel_mode=travel_mode,
        units=units,
        language=language,
        client_id=client_id,
    )
    urls = [options.build_url(d) for d in descriptors]

    if dryrun:
        return urls

    if len(raw_origins) == 1:
        raw_origins = raw_origins * len(raw_dests)

    logger.info("Requesting %d distance(s) via the %s API", len(urls), auth)
    payloads = fetch_json(urls, options.timeout, session=session)

    rows = [
        {
            "origin": origin,
            "destination": dest,
            **_drive_time_fields(payload, units),
            "input_url": url,
        }
        for payload, origin, dest, url in zip(payloads, raw_origins, raw_dests, urls)
    ]
    return _finish(rows, DRIVE_TIME_COLUMNS, options, today, rng)
