"""
Geodesic helpers.

Great-circle distances on a spherical earth, used when a track carries no
cumulative distance of its own.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

EARTH_RADIUS_M = 6371000.0  # Mean radius (meters)


def haversine_distance(lat1: ArrayLike, lon1: ArrayLike, lat2: ArrayLike, lon2: ArrayLike):
    """
    Calculate great-circle distance between points.

    Accepts scalars or equal-length arrays.

    Args:
        lat1, lon1: First point coordinates in degrees
        lat2, lon2: Second point coordinates in degrees

    Returns:
        Distance in meters (scalar or array)
    """
    lat1_rad = np.radians(lat1)
    lat2_rad = np.radians(lat2)
    dlat = np.radians(np.subtract(lat2, lat1))
    dlon = np.radians(np.subtract(lon2, lon1))

    a = np.sin(dlat/2)**2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon/2)**2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1-a))

    return EARTH_RADIUS_M * c


def segment_distances(lat: NDArray[np.float64], lon: NDArray[np.float64]) -> NDArray[np.float64]:
    """Distance between consecutive points (length n-1)."""
    if len(lat) < 2:
        return np.zeros(0, dtype=np.float64)
    return haversine_distance(lat[:-1], lon[:-1], lat[1:], lon[1:])


def track_length(lat: NDArray[np.float64], lon: NDArray[np.float64]) -> float:
    """
    Total path length of a point sequence in meters.

    Legs touching a point with missing coordinates are skipped.
    """
    legs = segment_distances(np.asarray(lat, dtype=np.float64), np.asarray(lon, dtype=np.float64))
    return float(np.nansum(legs))
