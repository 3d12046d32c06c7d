"""
Maps API Transport
==================
Fetches a batch of Maps API URLs one after another and parses each body
as JSON, containing failures per URL so one unreachable request never
aborts the batch.

* Connection failures and timeouts become a synthetic body with status
  ``CONNECTION_ERROR``; any other ``requests`` failure becomes
  ``CONNECTION_WARNING``.
* Google rejects a bad signature with a plain-text (non-JSON) body, so
  bodies are passed through :func:`classify_body` before parsing.
* A body that still is not JSON raises :class:`ResponseParseError`.

Usage::

    from src.placement.transport import fetch_json

    payloads = fetch_json(urls, timeout=20)
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

import requests

from shared.python.exceptions import ResponseParseError

logger = logging.getLogger("placement.transport")

DEFAULT_TIMEOUT = 10

UNREACHABLE_MESSAGE = "URL was unreachable. Check your network connection."
INVALID_SIGNATURE_MESSAGE = (
    "Unable to authenticate the request with the signature supplied. "
    "Check your client ID and private key."
)

_AUTH_FAILURE = re.compile(r"Unable to authenticate the request", re.IGNORECASE)
_SIGNATURE_DETAIL = re.compile(r"request\. Provided 'signature'[^\"]*")


class FetchStatus(str, Enum):
    """Outcome of the HTTP exchange for one URL."""

    SUCCESS = "SUCCESS"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    CONNECTION_WARNING = "CONNECTION_WARNING"


@dataclass(frozen=True)
class FetchResult:
    """Immutable result of fetching one URL.

    Attributes:
        url: The requested URL.
        status: Whether the server answered at all.
        body: The response body after :func:`classify_body`, or the
            synthetic error object when the server did not answer.
        payload: ``body`` parsed as JSON.
    """

    url: str
    status: FetchStatus
    body: str
    payload: dict[str, Any]

    @property
    def ok(self) -> bool:
        """``True`` when the server answered (the API status may still be an error)."""
        return self.status is FetchStatus.SUCCESS


def _error_body(message: str, status: str) -> str:
    return json.dumps({"error_message": message, "results": [], "status": status})


def classify_body(body: str) -> str:
    """Normalise a raw response body before JSON parsing.

    Truncates the verbose ``request. Provided 'signature' ...`` suffix to
    ``request.`` and replaces any authentication failure with a fixed
    ``INVALID_SIGNATURE`` JSON object. This is the only place that
    inspects body text for errors.
    """
    body = _SIGNATURE_DETAIL.sub("request.", body)
    if _AUTH_FAILURE.search(body):
        return _error_body(INVALID_SIGNATURE_MESSAGE, "INVALID_SIGNATURE")
    return body


def _parse(url: str, body: str) -> dict[str, Any]:
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise ResponseParseError(url, body) from exc
    if not isinstance(payload, dict):
        raise ResponseParseError(url, body)
    return payload


def _fetch_one(session: requests.Session, url: str, timeout: float) -> FetchResult:
    logger.debug("Reading: %s", url)
    try:
        response = session.get(url, timeout=timeout)
        status, body = FetchStatus.SUCCESS, response.text
    except (requests.ConnectionError, requests.Timeout) as exc:
        logger.warning("This URL is not reachable: %s (%s)", url, exc)
        status = FetchStatus.CONNECTION_ERROR
        body = _error_body(UNREACHABLE_MESSAGE, status.value)
    except requests.RequestException as exc:
        logger.warning("This URL triggered a warning: %s (%s)", url, exc)
        status = FetchStatus.CONNECTION_WARNING
        body = _error_body(UNREACHABLE_MESSAGE, status.value)

    body = classify_body(body)
    return FetchResult(url=url, status=status, body=body, payload=_parse(url, body))


def fetch_all(
    urls: Sequence[str],
    timeout: float = DEFAULT_TIMEOUT,
    *,
    session: requests.Session | None = None,
) -> list[FetchResult]:
    """Fetch every URL in order and return one :class:`FetchResult` each.

    Args:
        urls: Fully formed request URLs.
        timeout: Seconds to wait for the server before giving up on a URL.
        session: Optional session to reuse; one is created otherwise.

    Returns:
        Results in the same order as *urls*.

    Raises:
        ResponseParseError: If a body is not a JSON object.
    """
    owns_session = session is None
    session = session or requests.Session()
    try:
        results = [_fetch_one(session, url, timeout) for url in urls]
    finally:
        if owns_session:
            session.close()

    failed = sum(1 for r in results if not r.ok)
    logger.info("Fetched %d URL(s), %d connection failure(s).", len(results), failed)
    return results


def fetch_json(
    urls: Sequence[str],
    timeout: float = DEFAULT_TIMEOUT,
    *,
    session: requests.Session | None = None,
) -> list[dict[str, Any]]:
    """Like :func:`fetch_all` but return only the parsed payloads."""
    return [r.payload for r in fetch_all(urls, timeout, session=session)]
