"""
placement — Shared Python Package
=================================
Re-exports the base tool class, exception hierarchy, and validator
utilities so modules can import from a single location::

    from shared.python import GeoTool, Validators
    from shared.python.exceptions import InputValidationError
"""

from shared.python.base_tool import GeoTool
from shared.python.exceptions import (
    ColumnNotFoundError,
    GeocodingError,
    InputValidationError,
    OutputWriteError,
    PlacementError,
    ResponseParseError,
)
from shared.python.validators import Validators

__all__ = [
    "GeoTool",
    "Validators",
    "PlacementError",
    "InputValidationError",
    "ColumnNotFoundError",
    "GeocodingError",
    "ResponseParseError",
    "OutputWriteError",
]
