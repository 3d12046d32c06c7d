"""
placement — Custom Exception Hierarchy
======================================
Every placement module raises exceptions from this module so callers can
catch them at the right level of granularity.

Hierarchy::

    PlacementError                       ← catch-all base
    ├── InputValidationError             ← bad parameters, files, columns
    │   └── ColumnNotFoundError          ← CSV/table column missing
    ├── GeocodingError                   ← Maps API failures
    │   └── ResponseParseError           ← body is not a JSON object
    └── OutputWriteError                 ← cannot write to output path

Transport and authentication problems are *not* raised: they are turned
into response rows carrying a ``CONNECTION_ERROR`` / ``INVALID_SIGNATURE``
status so one bad address never aborts a batch.

Usage::

    from shared.python.exceptions import InputValidationError

    raise InputValidationError("units must be 'metric' or 'imperial'")
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class PlacementError(Exception):
    """Base exception for the placement toolkit.

    Args:
        message: Human-readable description of the error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InputValidationError(PlacementError):
    """Raised when parameters fail validation, before any network activity.

    Always recoverable by the caller: fix the inputs and call again.
    """


class ColumnNotFoundError(InputValidationError):
    """Raised when an expected column is absent from a tabular dataset.

    Args:
        column: The name of the missing column.
        available: Column names that ARE present, used in the message.

    Example::

        raise ColumnNotFoundError("address", df.columns.tolist())
    """

    def __init__(self, column: str, available: list[str]) -> None:
        available_str = ", ".join(f"'{c}'" for c in available)
        super().__init__(
            f"Column '{column}' not found. Available columns: {available_str}"
        )
        self.column: str = column
        self.available: list[str] = available


# ---------------------------------------------------------------------------
# Geocoding
# ---------------------------------------------------------------------------


class GeocodingError(PlacementError):
    """Raised when a Maps API exchange fails in a way that cannot be
    represented as a response row."""


class ResponseParseError(GeocodingError):
    """Raised when a response body is not a JSON object.

    This signals an unanticipated response shape, so it is never folded
    into a status row.

    Args:
        url: The request URL whose body failed to parse.
        body: The (possibly truncated) offending body.
    """

    def __init__(self, url: str, body: str) -> None:
        snippet = body if len(body) <= 200 else body[:200] + "..."
        super().__init__(f"Response from '{url}' is not a JSON object: {snippet!r}")
        self.url: str = url
        self.body: str = body


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class OutputWriteError(PlacementError):
    """Raised when a tool cannot write its output file.

    Args:
        path: The output path that could not be written.
        reason: Underlying OS error message.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot write output to '{path}': {reason}")
        self.path: str = path
        self.reason: str = reason
