from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
from geopy.distance import great_circle

from .constants import EARTH_RADIUS_KM, EARTH_RADIUS_M
from .models import Location


def point_distance_m(a: Location, b: Location) -> float:
    return great_circle(a.as_latlon, b.as_latlon, radius=EARTH_RADIUS_KM).meters


def haversine_vectorized(
    lat1: np.ndarray,
    lon1: np.ndarray,
    lat2: np.ndarray,
    lon2: np.ndarray,
) -> np.ndarray:
    lat1_rad = np.radians(lat1)
    lon1_rad = np.radians(lon1)
    lat2_rad = np.radians(lat2)
    lon2_rad = np.radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def path_distance_m(points: Sequence[Location]) -> int:
    """Rounded distance in metres along ``points``.

    Pairs ``(i, i + 1)`` are summed only while ``i + 1 < len(points) - 1``,
    so the closing pair of the path never contributes. Stored distances in
    existing exports were produced this way and are kept comparable.
    """

    if len(points) < 3:
        return 0
    coords_array = np.array([point.as_latlon for point in points], dtype=float)
    distances = haversine_vectorized(
        coords_array[:-2, 0],
        coords_array[:-2, 1],
        coords_array[1:-1, 0],
        coords_array[1:-1, 1],
    )
    return math.floor(float(distances.sum()) + 0.5)


def is_location_near(
    a: Optional[Location],
    b: Optional[Location],
    threshold_m: float,
) -> bool:
    if a is None or b is None:
        return False
    return point_distance_m(a, b) < threshold_m
