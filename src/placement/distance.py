"""
Distance Calculator
===================
Straight-line ("as the crow flies") distance between two sets of WGS84
coordinates using the haversine formula.

Works on plain floats or, element-wise, on ``numpy`` arrays and ``pandas``
Series, so a whole table of geocoded origins and destinations can be
estimated in one call.

Reference:
    http://menugget.blogspot.com/2011/05/r-functions-for-earth-geographic_29.html
"""

from __future__ import annotations

from typing import Union

import numpy as np
import numpy.typing as npt

from shared.python.validators import Validators

EARTH_RADIUS_KM = 6378.145
KM_TO_MILES = 0.621371
UNITS = ("metric", "imperial")

Coordinate = Union[float, npt.ArrayLike]


def great_circle_distance(
    lon1: Coordinate,
    lat1: Coordinate,
    lon2: Coordinate,
    lat2: Coordinate,
    units: str = "metric",
) -> float | np.ndarray:
    """Return the great-circle distance between two points.

    Args:
        lon1: Longitude of location 1, in degrees.
        lat1: Latitude of location 1, in degrees.
        lon2: Longitude of location 2, in degrees.
        lat2: Latitude of location 2, in degrees.
        units: ``"metric"`` for kilometres or ``"imperial"`` for miles.

    Returns:
        A float for scalar input, otherwise an array of distances.

    Raises:
        InputValidationError: If *units* is not metric or imperial.

    Example::

        great_circle_distance(-73.9857, 40.7484, -122.0841, 37.4221)
        # ≈ 4110 km
    """
    Validators.assert_choice(units, UNITS, "units")

    a1 = np.radians(lat1)
    a2 = np.radians(lon1)
    b1 = np.radians(lat2)
    b2 = np.radians(lon2)
    dlon = b2 - a2
    dlat = b1 - a1

    a = np.sin(dlat / 2) ** 2 + np.cos(a1) * np.cos(b1) * np.sin(dlon / 2) ** 2
    a = np.clip(a, 0.0, 1.0)  # rounding can push antipodal points past 1
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    d = EARTH_RADIUS_KM * c

    if units == "imperial":
        d = d * KM_TO_MILES

    if np.ndim(d) == 0:
        return float(d)
    return np.asarray(d)
