"""
Coordinate formatting utilities for the Tapak Proyek exporter.

Converts decimal degrees into the degrees/minutes/seconds strings printed on
the map sheet, e.g. ``110° 30' 0.000" E``.

The operating region lies east of the prime meridian and south of the
equator, so longitudes always carry ``E`` and latitudes ``S``; the magnitude
of the value is what gets formatted.

Functions:
    format_coordinate: Decimal degrees to DMS display string
    format_lon_lat: Format a (lon, lat) pair
"""

import math
from typing import Tuple

from core.exceptions import CoordinateError

LONGITUDE = 'longitude'
LATITUDE = 'latitude'

HEMISPHERES = {
    LONGITUDE: 'E',
    LATITUDE: 'S',
}

# Seconds are kept to 3 decimals, so work in whole milliseconds of arc
_MS_PER_DEGREE = 3600 * 1000
_MS_PER_MINUTE = 60 * 1000


def format_coordinate(value: float, axis: str) -> str:
    """
    Format decimal degrees as a DMS string with hemisphere suffix.

    Degrees and minutes are truncated and seconds rounded to 3 decimals.
    Rounding is done once on the total arc, so a value whose seconds would
    round to 60.000 carries into the minutes (and minutes into degrees).

    Parameters:
    -----------
    value : float
        Decimal degrees; the sign is ignored
    axis : str
        'longitude' or 'latitude'

    Returns:
    --------
    str
        ``D° M' S.sss" H``

    Raises:
    -------
    CoordinateError
        NonFinite if value is NaN or infinite
    ValueError
        If axis is not 'longitude' or 'latitude'

    Example:
        >>> format_coordinate(110.5, 'longitude')
        '110° 30\\' 0.000" E'
        >>> format_coordinate(1.999999999, 'latitude')
        '2° 0\\' 0.000" S'
    """
    if axis not in HEMISPHERES:
        raise ValueError(f"Unknown axis {axis!r}, expected 'longitude' or 'latitude'")

    value = float(value)
    if not math.isfinite(value):
        raise CoordinateError(
            CoordinateError.NON_FINITE, f"Cannot format non-finite {axis} {value}"
        )

    total_ms = round(abs(value) * _MS_PER_DEGREE)
    degrees, remainder = divmod(total_ms, _MS_PER_DEGREE)
    minutes, seconds_ms = divmod(remainder, _MS_PER_MINUTE)
    seconds, millis = divmod(seconds_ms, 1000)

    return f"{degrees}° {minutes}' {seconds}.{millis:03d}\" {HEMISPHERES[axis]}"


def format_lon_lat(lon: float, lat: float) -> Tuple[str, str]:
    """Format a (lon, lat) pair as (longitude string, latitude string)."""
    return format_coordinate(lon, LONGITUDE), format_coordinate(lat, LATITUDE)
