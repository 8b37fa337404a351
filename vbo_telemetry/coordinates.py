"""
Coordinate System Detection for VBO Telemetry

VBO files do not declare how latitude and longitude are encoded. This module
infers the encoding from the values themselves and converts to decimal
degrees. Four encodings are recognised, checked in this priority order:

1. LOCAL: planar track coordinates (any sampled magnitude above 1000).
2. VBOX_MINUTES: total minutes, degrees * 60 + minutes (magnitudes 100-1000).
3. NMEA: degrees and decimal minutes packed as DDMM.mmmmm.
4. DECIMAL_DEGREES: already in degrees.

The thresholds live in CoordinatePolicy. With the default policy, NMEA is
never selected because every NMEA magnitude is above 1000 and is claimed by
LOCAL first. Files with NMEA coordinates need a policy with a higher
``local_threshold``.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple

import numpy as np

from . import constants


class CoordinateSystem(str, Enum):
    DECIMAL_DEGREES = "gps"
    NMEA = "nmea"
    VBOX_MINUTES = "vbox_minutes"
    LOCAL = "local"


@dataclass(frozen=True)
class CoordinatePolicy:
    """
    Thresholds for coordinate system detection.

    Attributes:
        local_threshold: Any sampled magnitude above this means LOCAL.
        minutes_lower: A magnitude above this (and below minutes_upper on
            both axes) allows VBOX_MINUTES.
        minutes_upper: Upper magnitude bound for VBOX_MINUTES.
        nmea_lower: A magnitude above this is required for NMEA.
        sample_size: Number of leading non-zero samples inspected.
    """

    local_threshold: float = constants.COORD_LOCAL_THRESHOLD
    minutes_lower: float = constants.COORD_MINUTES_LOWER
    minutes_upper: float = constants.COORD_MINUTES_UPPER
    nmea_lower: float = constants.COORD_NMEA_LOWER
    sample_size: int = constants.COORD_SAMPLE_SIZE


DEFAULT_POLICY = CoordinatePolicy()


def _could_be_vbox_minutes(lat: float, lon: float, policy: CoordinatePolicy) -> bool:
    abs_lat, abs_lon = abs(lat), abs(lon)
    return (
        abs_lat / 60 <= constants.MAX_LATITUDE_DEG
        and abs_lon / 60 <= constants.MAX_LONGITUDE_DEG
        and (abs_lat > policy.minutes_lower or abs_lon > policy.minutes_lower)
        and abs_lat < policy.minutes_upper
        and abs_lon < policy.minutes_upper
    )


def _could_be_nmea(lat: float, lon: float, policy: CoordinatePolicy) -> bool:
    abs_lat, abs_lon = abs(lat), abs(lon)
    lat_degrees = math.floor(abs_lat / 100)
    lat_minutes = abs_lat - lat_degrees * 100
    lon_degrees = math.floor(abs_lon / 100)
    lon_minutes = abs_lon - lon_degrees * 100
    return (
        lat_degrees <= constants.MAX_LATITUDE_DEG
        and lat_minutes < 60
        and lon_degrees <= constants.MAX_LONGITUDE_DEG
        and lon_minutes < 60
        and (abs_lat > policy.nmea_lower or abs_lon > policy.nmea_lower)
    )


def detect_coordinate_system(
    pairs: Sequence[Tuple[float, float]],
    policy: CoordinatePolicy = DEFAULT_POLICY,
) -> CoordinateSystem:
    """
    Classify the coordinate encoding of a session.

    Only pairs where both latitude and longitude are non-zero are considered
    (0 means no GPS fix), and only the first ``policy.sample_size`` of those.

    Args:
        pairs: (latitude, longitude) pairs in file order.
        policy: Detection thresholds.

    Returns:
        The detected CoordinateSystem. DECIMAL_DEGREES when nothing else
        matches or when no pair has a fix.
    """
    sample = [(lat, lon) for lat, lon in pairs if lat != 0 and lon != 0][: policy.sample_size]
    if not sample:
        return CoordinateSystem.DECIMAL_DEGREES

    if any(abs(lat) > policy.local_threshold or abs(lon) > policy.local_threshold for lat, lon in sample):
        return CoordinateSystem.LOCAL

    if any(_could_be_vbox_minutes(lat, lon, policy) for lat, lon in sample):
        return CoordinateSystem.VBOX_MINUTES

    if any(_could_be_nmea(lat, lon, policy) for lat, lon in sample):
        return CoordinateSystem.NMEA

    return CoordinateSystem.DECIMAL_DEGREES


def nmea_to_decimal(value: float) -> float:
    """
    Convert a DDMM.mmmmm coordinate to decimal degrees.

    Args:
        value: Packed degrees and minutes, signed.

    Returns:
        Decimal degrees with the sign of the input.
    """
    if value == 0:
        return 0.0
    magnitude = abs(value)
    decimal = math.floor(magnitude / 100) + (magnitude % 100) / 60
    return -decimal if value < 0 else decimal


def vbox_minutes_to_decimal(value: float) -> float:
    """Convert total minutes (degrees * 60 + minutes) to decimal degrees."""
    sign = 1.0 if value >= 0 else -1.0
    return sign * (abs(value) / 60)


def decimal_to_nmea(value: float) -> float:
    """
    Encode decimal degrees as DDMM.mmmmm.

    Inverse of nmea_to_decimal(); used to build fixtures and by callers
    writing coordinates back out in logger format.
    """
    magnitude = abs(value)
    degrees = math.floor(magnitude)
    packed = degrees * 100 + (magnitude - degrees) * 60
    return -packed if value < 0 else packed


def convert_coordinate(value: float, system: CoordinateSystem) -> float:
    """
    Convert one coordinate to decimal degrees.

    Zero (no fix) is returned unchanged, as are DECIMAL_DEGREES and LOCAL values.
    """
    if value == 0:
        return value
    if system == CoordinateSystem.NMEA:
        return nmea_to_decimal(value)
    if system == CoordinateSystem.VBOX_MINUTES:
        return vbox_minutes_to_decimal(value)
    return value


def convert_array(values: np.ndarray, system: CoordinateSystem) -> np.ndarray:
    """
    Vectorised convert_coordinate() over a whole column.

    Args:
        values: Latitude or longitude column.
        system: Detected coordinate system.

    Returns:
        New array; zeros are passed through unconverted.
    """
    values = np.asarray(values, dtype=float)
    magnitude = np.abs(values)
    sign = np.where(values < 0, -1.0, 1.0)

    if system == CoordinateSystem.NMEA:
        converted = sign * (np.floor(magnitude / 100) + np.mod(magnitude, 100) / 60)
    elif system == CoordinateSystem.VBOX_MINUTES:
        converted = sign * (magnitude / 60)
    else:
        return values.copy()

    return np.where(values != 0, converted, values)
