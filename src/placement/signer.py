"""
Request Signer
==============
Builds Google Maps Geocoding and Distance Matrix request URLs, either as
plain standard-API URLs (``&key=``) or as Google for Work URLs signed with
the account's private cryptographic key.

Signing follows Google's published procedure:

1. Build the path + query string to sign (no domain).
2. Decode the private key from URL-safe Base64.
3. HMAC-SHA1 the path with the decoded key.
4. Base64-encode the raw digest and make it URL-safe.
5. Append ``&signature=<sig>`` to domain + path.

Reference:
    https://developers.google.com/maps/premium/previous-licenses/webservices/auth

Classes:
    RequestMode           Geocode or distance-matrix request.
    RequestDescriptor     Immutable parameters for one request URL.
    SignatureDiagnostics  Every intermediate value of one signature.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Sequence
from urllib.parse import quote, unquote

import pandas as pd

from shared.python.exceptions import InputValidationError
from shared.python.validators import Validators

logger = logging.getLogger("placement.signer")

MAPS_DOMAIN = "https://maps.googleapis.com"
GEOCODE_PATH = "/maps/api/geocode/json"
DISTANCE_MATRIX_PATH = "/maps/api/distancematrix/json"

UNITS = ("metric", "imperial")
TRAVEL_MODES = ("driving", "walking", "bicycling", "transit")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


class RequestMode(str, Enum):
    """Which Maps web service a request targets."""

    GEOCODE = "geocode"
    DISTANCE = "distance"

    @classmethod
    def parse(cls, value: "RequestMode | str") -> "RequestMode":
        """Coerce *value* to a :class:`RequestMode`.

        ``"dtime"`` is accepted as an alias for distance requests.

        Raises:
            InputValidationError: For any other value.
        """
        if isinstance(value, cls):
            return value
        if value == "dtime":
            return cls.DISTANCE
        try:
            return cls(value)
        except ValueError as exc:
            raise InputValidationError(
                f"mode must be 'geocode' or 'distance', got {value!r}."
            ) from exc


@dataclass(frozen=True)
class RequestDescriptor:
    """Immutable parameters for one Maps API request.

    Attributes:
        mode: Geocode or distance-matrix request.
        address: Address to geocode, or the origin for distance requests.
        destination: Destination address (distance requests only).
        travel_mode: driving, walking, bicycling or transit.
        units: metric or imperial.
        language: Localisation of the returned object, e.g. ``"en-EN"``.
        client_id: Google for Work client ID (``gme-[company]``).
    """

    mode: RequestMode
    address: str
    destination: str | None = None
    travel_mode: str = "driving"
    units: str = "metric"
    language: str = "en-EN"
    client_id: str | None = None


@dataclass(frozen=True)
class SignatureDiagnostics:
    """Every intermediate value of a signature, for debugging rejected URLs.

    Attributes:
        raw_address: The address (or origin) before URL encoding.
        unsigned_path: Path + query string that was signed.
        decoded_key: The private key after URL-safe Base64 decoding.
        signature: Standard Base64 of the HMAC-SHA1 digest.
        url_signature: The URL-safe form appended to the URL.
        url: The fully formed, signed URL.
    """

    raw_address: str
    unsigned_path: str
    decoded_key: bytes
    signature: str
    url_signature: str
    url: str


# ---------------------------------------------------------------------------
# URL construction
# ---------------------------------------------------------------------------


def _encode(value: str, urlencode: bool) -> str:
    return quote(value, safe="") if urlencode else value


def build_request_path(
    descriptor: RequestDescriptor,
    credential: tuple[str, str],
    *,
    urlencode: bool = True,
) -> str:
    """Return the path + query string for *descriptor* (no domain).

    Args:
        descriptor: The request parameters.
        credential: ``("client", client_id)`` for signed requests or
            ``("key", api_key)`` for the standard API.
        urlencode: Percent-encode the address and destination. Pass
            ``False`` when they are already URL-encoded.
    """
    name, value = credential
    address = _encode(descriptor.address, urlencode)

    if RequestMode.parse(descriptor.mode) is RequestMode.GEOCODE:
        return f"{GEOCODE_PATH}?address={address}&{name}={value}"

    destination = _encode(descriptor.destination or "", urlencode)
    return (
        f"{DISTANCE_MATRIX_PATH}?origins={address}"
        f"&destinations={destination}"
        f"&units={descriptor.units.lower()}"
        f"&mode={descriptor.travel_mode.lower()}"
        f"&language={descriptor.language}"
        f"&{name}={value}"
    )


def standard_request_url(
    descriptor: RequestDescriptor,
    api_key: str | None,
    *,
    urlencode: bool = True,
) -> str:
    """Return an unsigned standard-API URL carrying ``&key=<api_key>``."""
    descriptor = _validate_descriptor(descriptor)
    path = build_request_path(descriptor, ("key", api_key or ""), urlencode=urlencode)
    return MAPS_DOMAIN + path


def decode_private_key(private_key: str) -> bytes:
    """Decode a URL-safe Base64 private key into raw bytes.

    Raises:
        InputValidationError: If the key is not valid Base64.
    """
    try:
        return base64.urlsafe_b64decode(private_key.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise InputValidationError(
            "Private key is not valid URL-safe Base64. "
            "Check the key copied from your Google for Work account."
        ) from exc


def sign_request(
    descriptor: RequestDescriptor,
    client_id: str,
    private_key: str,
    *,
    debug: bool = False,
    urlencode: bool = True,
) -> str | SignatureDiagnostics:
    """Build a Google for Work URL signed with HMAC-SHA1.

    Signing is deterministic: the same descriptor, client ID and key
    always give the same URL.

    Args:
        descriptor: The request parameters.
        client_id: Google for Work client ID.
        private_key: URL-safe Base64 private cryptographic key.
        debug: Return a :class:`SignatureDiagnostics` instead of the URL.
        urlencode: Percent-encode the address and destination first.

    Returns:
        The signed URL, or its diagnostics when *debug* is ``True``.

    Raises:
        InputValidationError: If the client ID or key is missing, the key
            is not Base64, or a distance request lacks a destination.
    """
    Validators.assert_not_empty(client_id, "client ID to encode the URL")
    Validators.assert_not_empty(private_key, "Google for Work private key to encode the URL")
    descriptor = replace(_validate_descriptor(descriptor), client_id=client_id)
    unsigned_path = build_request_path(descriptor, ("client", client_id), urlencode=urlencode)
    decoded_key = decode_private_key(private_key)

    digest = hmac.new(decoded_key, unsigned_path.encode("utf-8"), hashlib.sha1).digest()
    signature = base64.b64encode(digest).decode("ascii")
    url_signature = signature.replace("/", "_").replace("+", "-")
    url = f"{MAPS_DOMAIN}{unsigned_path}&signature={url_signature}"

    if not debug:
        return url
    return SignatureDiagnostics(
        raw_address=unquote(descriptor.address) if not urlencode else descriptor.address,
        unsigned_path=unsigned_path,
        decoded_key=decoded_key,
        signature=signature,
        url_signature=url_signature,
        url=url,
    )


# ---------------------------------------------------------------------------
# Batch helpers
# ---------------------------------------------------------------------------


def _validate_descriptor(descriptor: RequestDescriptor) -> RequestDescriptor:
    """Check *descriptor* and return it with ``mode`` coerced to the enum."""
    mode = RequestMode.parse(descriptor.mode)
    if mode is RequestMode.DISTANCE:
        if descriptor.destination is None:
            raise InputValidationError("Distance requests need a destination.")
        Validators.assert_choice(descriptor.units.lower(), UNITS, "units")
    return replace(descriptor, mode=mode)


def build_descriptors(
    addresses: Sequence[str],
    destinations: Sequence[str] | None = None,
    *,
    mode: RequestMode | str = RequestMode.GEOCODE,
    travel_mode: str = "driving",
    units: str = "metric",
    language: str = "en-EN",
    client_id: str | None = None,
) -> list[RequestDescriptor]:
    """Build one :class:`RequestDescriptor` per row.

    In distance mode a single origin is paired with every destination;
    otherwise origins and destinations are paired position by position
    and must have the same length.

    Raises:
        InputValidationError: On a bad mode or units, missing
            destinations, or mismatched origin/destination lengths.
    """
    mode = RequestMode.parse(mode)
    addresses = Validators.assert_string_sequence(addresses, "addresses")

    if mode is RequestMode.GEOCODE:
        return [
            RequestDescriptor(mode=mode, address=a, client_id=client_id)
            for a in addresses
        ]

    if destinations is None:
        raise InputValidationError("Distance requests need destination addresses.")
    destinations = Validators.assert_string_sequence(destinations, "destinations")
    Validators.assert_choice(units, UNITS, "units")
    Validators.assert_choice(travel_mode.lower(), TRAVEL_MODES, "travel_mode")
    if not addresses and destinations:
        raise InputValidationError(
            f"Got no origins for {len(destinations)} destinations."
        )
    if len(addresses) > 1 and len(addresses) != len(destinations):
        raise InputValidationError(
            "Address must be singular or the same length as destination! "
            f"Got {len(addresses)} origins and {len(destinations)} destinations."
        )
    if len(addresses) == 1:
        addresses = addresses * len(destinations)

    return [
        RequestDescriptor(
            mode=mode,
            address=origin,
            destination=dest,
            travel_mode=travel_mode,
            units=units,
            language=language,
            client_id=client_id,
        )
        for origin, dest in zip(addresses, destinations)
    ]


def sign_requests(
    addresses: Sequence[str],
    destinations: Sequence[str] | None = None,
    *,
    client_id: str,
    private_key: str,
    mode: RequestMode | str = RequestMode.GEOCODE,
    travel_mode: str = "driving",
    units: str = "metric",
    language: str = "en-EN",
    urlencode: bool = True,
    debug: bool = False,
) -> list[str] | pd.DataFrame:
    """Sign a batch of requests.

    Returns:
        The signed URLs in input order, or with *debug* a DataFrame with
        one :class:`SignatureDiagnostics` row per request (``decoded_key``
        omitted so the table can be shared safely).
    """
    Validators.assert_not_empty(client_id, "client ID to encode the URL")
    Validators.assert_not_empty(private_key, "Google for Work private key to encode the URL")
    descriptors = build_descriptors(
        addresses,
        destinations,
        mode=mode,
        travel_mode=travel_mode,
        units=units,
        language=language,
        client_id=client_id,
    )
    logger.debug("Number of digital signatures to be generated: %d", len(descriptors))

    if not debug:
        return [
            sign_request(d, client_id, private_key, urlencode=urlencode)
            for d in descriptors
        ]

    diagnostics = [
        sign_request(d, client_id, private_key, debug=True, urlencode=urlencode)
        for d in descriptors
    ]
    return pd.DataFrame([asdict(diag) for diag in diagnostics]).drop(columns="decoded_key")
