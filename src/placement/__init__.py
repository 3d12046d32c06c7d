"""
placement
=========
Tools for the Google Maps Geocoding and Distance Matrix APIs: address
cleaning, Google for Work request signing, batch fetching, and tabular
results.

Public API::

    from src.placement import clean_addresses, geocode_url, drive_time
"""

from src.placement.cleaner import clean_address, clean_addresses
from src.placement.distance import great_circle_distance
from src.placement.geocoder import RequestOptions, drive_time, geocode_url
from src.placement.signer import (
    RequestDescriptor,
    RequestMode,
    SignatureDiagnostics,
    build_descriptors,
    sign_request,
    sign_requests,
    standard_request_url,
)
from src.placement.transport import FetchResult, FetchStatus, fetch_all, fetch_json

__all__ = [
    "clean_address",
    "clean_addresses",
    "great_circle_distance",
    "RequestDescriptor",
    "RequestMode",
    "SignatureDiagnostics",
    "build_descriptors",
    "sign_request",
    "sign_requests",
    "standard_request_url",
    "FetchResult",
    "FetchStatus",
    "fetch_all",
    "fetch_json",
    "RequestOptions",
    "geocode_url",
    "drive_time",
]
__version__ = "1.0.0"
