"""
Distance Metrics for VBO Telemetry

This module computes point-to-point and cumulative distances between samples.
Coordinates are either geographic (decimal degrees) or local planar track
coordinates in metres; any coordinate magnitude above
PLANAR_DISTANCE_THRESHOLD selects the planar formula.
"""

from typing import Sequence

import numpy as np

from . import constants
from .models import Sample


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Uses the Haversine formula to compute distance along the surface of a sphere.

    Args:
        lat1, lon1: Latitude and longitude of first point in degrees.
        lat2, lon2: Latitude and longitude of second point in degrees.

    Returns:
        Distance in meters between the two points.
    """
    R = constants.EARTH_RADIUS_M
    lat1_rad, lon1_rad = np.deg2rad(lat1), np.deg2rad(lon1)
    lat2_rad, lon2_rad = np.deg2rad(lat2), np.deg2rad(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = np.sin(dlat / 2) ** 2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return float(R * c)


def planar_distance_m(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two local track points."""
    return float(np.hypot(x2 - x1, y2 - y1))


def is_planar(*coordinates: float) -> bool:
    """True if any coordinate is too large to be decimal degrees."""
    return any(abs(c) > constants.PLANAR_DISTANCE_THRESHOLD for c in coordinates)


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Distance in metres between two coordinate pairs.

    Uses planar Euclidean distance when any coordinate magnitude exceeds
    PLANAR_DISTANCE_THRESHOLD (local coordinates), Haversine otherwise.

    Args:
        lat1, lon1: First point (degrees, or planar units).
        lat2, lon2: Second point (degrees, or planar units).

    Returns:
        Distance in meters. Identical points give exactly 0.
    """
    if is_planar(lat1, lon1, lat2, lon2):
        return planar_distance_m(lat1, lon1, lat2, lon2)
    return haversine_m(lat1, lon1, lat2, lon2)


def segment_distances(samples: Sequence[Sample]) -> np.ndarray:
    """
    Distance between each pair of consecutive samples.

    The distance mode is chosen per segment from that segment's own four
    coordinates, exactly as calculate_distance() would.

    Args:
        samples: Samples in order.

    Returns:
        Array of length ``len(samples) - 1`` (empty for fewer than 2 samples).
    """
    if len(samples) < 2:
        return np.zeros(0, dtype=float)

    lat = np.array([s.latitude for s in samples], dtype=float)
    lon = np.array([s.longitude for s in samples], dtype=float)
    lat1, lat2 = lat[:-1], lat[1:]
    lon1, lon2 = lon[:-1], lon[1:]

    # Haversine on every segment, planar where any coordinate is large
    R = constants.EARTH_RADIUS_M
    lat1_rad, lat2_rad = np.deg2rad(lat1), np.deg2rad(lat2)
    dlat = lat2_rad - lat1_rad
    dlon = np.deg2rad(lon2) - np.deg2rad(lon1)
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    great_circle = R * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    planar = np.hypot(lat2 - lat1, lon2 - lon1)
    magnitude = np.max(np.abs(np.vstack([lat1, lon1, lat2, lon2])), axis=0)

    return np.where(magnitude > constants.PLANAR_DISTANCE_THRESHOLD, planar, great_circle)


def cumulative_distance(samples: Sequence[Sample]) -> np.ndarray:
    """
    Cumulative point-to-point distance along a run of samples.

    Args:
        samples: Samples in order.

    Returns:
        Array of length ``len(samples)`` starting at 0.0 (empty for no samples).
    """
    if not samples:
        return np.zeros(0, dtype=float)
    return np.concatenate(([0.0], np.cumsum(segment_distances(samples))))
